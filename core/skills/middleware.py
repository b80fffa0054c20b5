"""
Skills Middleware - Progressive disclosure of specialized capabilities

- Skills are SKILL.md files with frontmatter metadata (name, description)
- Only the index is advertised up front; bodies load on demand
- Tool-based invocation: load_skill returns a skill's instructions
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from langchain.agents.middleware import AgentMiddleware
from langchain.tools import tool

logger = logging.getLogger(__name__)

LOAD_SKILL_TOOL_NAME = "load_skill"

_FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


def parse_frontmatter(content: str) -> dict[str, str]:
    """Parse the flat key: value frontmatter block of a SKILL.md."""
    match = _FRONTMATTER.match(content)
    if not match:
        return {}

    metadata = {}
    for line in match.group(1).split("\n"):
        if ":" in line:
            key, value = line.split(":", 1)
            metadata[key.strip()] = value.strip().strip("\"'")
    return metadata


class SkillsMiddleware(AgentMiddleware):
    """Advertises skills found under the given directories through load_skill."""

    def __init__(self, skill_paths: list[str | Path]) -> None:
        AgentMiddleware.__init__(self)
        self.skill_paths = [Path(p).expanduser().resolve() for p in skill_paths]
        self._skills_index: dict[str, Path] = {}
        self._descriptions: dict[str, str] = {}
        self._load_skills_index()

        if self._skills_index:
            logger.info("[Skills] Available: %s", ", ".join(self._skills_index))

        @tool(LOAD_SKILL_TOOL_NAME, description=self._tool_description())
        def load_skill_tool(skill_name: str) -> str:
            """Load a skill's instructions by name."""
            return self.load_skill(skill_name)

        self._load_skill_tool = load_skill_tool
        self.tools = [load_skill_tool] if self._skills_index else []

    @property
    def skill_names(self) -> list[str]:
        return list(self._skills_index)

    def _load_skills_index(self) -> None:
        """Scan skill directories and build index from frontmatter"""
        for skill_dir in self.skill_paths:
            if not skill_dir.is_dir():
                continue

            for skill_file in sorted(skill_dir.rglob("SKILL.md")):
                try:
                    metadata = parse_frontmatter(skill_file.read_text(encoding="utf-8"))
                except OSError as e:
                    logger.warning("[Skills] Error loading %s: %s", skill_file, e)
                    continue

                name = metadata.get("name")
                if not name:
                    logger.debug("[Skills] %s has no name, skipped", skill_file)
                    continue
                # Later paths override earlier ones
                self._skills_index[name] = skill_file
                self._descriptions[name] = metadata.get("description", "")

    def _tool_description(self) -> str:
        listing = "\n".join(
            f"- {name}: {desc}" if desc else f"- {name}" for name, desc in self._descriptions.items()
        )
        return (
            "Load a specialized skill to access domain-specific knowledge and workflows.\n\n"
            f"Available skills:\n{listing}\n\n"
            "Returns the skill's instructions."
        )

    def load_skill(self, skill_name: str) -> str:
        if skill_name not in self._skills_index:
            available = ", ".join(self._skills_index)
            return f"Skill '{skill_name}' not found.\nAvailable skills: {available}"

        skill_file = self._skills_index[skill_name]
        try:
            content = skill_file.read_text(encoding="utf-8")
        except OSError as e:
            return f"Error loading skill '{skill_name}': {e}"
        # Strip frontmatter, return instructions only
        return f"Loaded skill: {skill_name}\n\n{_FRONTMATTER.sub('', content, count=1)}"
