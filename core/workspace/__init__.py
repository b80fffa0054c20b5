from core.workspace.tools import EXECUTE_TOOL_NAME, build_workspace_tools

__all__ = ["EXECUTE_TOOL_NAME", "build_workspace_tools"]
