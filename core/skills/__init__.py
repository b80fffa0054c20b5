from core.skills.middleware import LOAD_SKILL_TOOL_NAME, SkillsMiddleware, parse_frontmatter

__all__ = ["LOAD_SKILL_TOOL_NAME", "SkillsMiddleware", "parse_frontmatter"]
