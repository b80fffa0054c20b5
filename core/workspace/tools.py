"""Workspace tools exposed to the agent.

Thin LangChain tool wrappers over a Sandbox. Every path argument goes
through the sandbox's boundary guard; guard and I/O failures come back
as tool messages so the agent can correct itself.
"""

from __future__ import annotations

import asyncio
import logging
import re

from langchain.tools import tool
from langchain_core.tools import BaseTool

from sandbox.base import Sandbox

logger = logging.getLogger(__name__)

EXECUTE_TOOL_NAME = "execute"
DEFAULT_READ_LIMIT = 2000

_TOOL_ERRORS = (OSError, ValueError, re.error)


def _format_numbered(content: str, offset: int) -> str:
    lines = content.splitlines()
    if not lines:
        return "(empty file)"
    return "\n".join(f"{offset + i + 1:6}\t{line}" for i, line in enumerate(lines))


def build_workspace_tools(sandbox: Sandbox) -> list[BaseTool]:
    """Build the file and shell tools bound to one sandbox."""
    fs = sandbox.fs()
    shell = sandbox.shell()

    @tool("ls")
    async def ls_tool(path: str = "/") -> str:
        """List files and directories at a path in the workspace.

        Args:
            path: Directory to list (absolute path inside the workspace, default: workspace root)
        """
        try:
            result = await asyncio.to_thread(fs.ls, path)
        except _TOOL_ERRORS as e:
            return f"Error: {e}"
        if result.error:
            return f"Error: {result.error}"
        if not result.entries:
            return "(empty directory)"
        return "\n".join(f"{e.path}/" if e.is_dir else f"{e.path} ({e.size} bytes)" for e in result.entries)

    @tool("read_file")
    async def read_file_tool(file_path: str, offset: int = 0, limit: int = DEFAULT_READ_LIMIT) -> str:
        """Read a text file from the workspace with line numbers.

        Args:
            file_path: File to read
            offset: Line number to start from (0-based)
            limit: Maximum number of lines to return
        """
        try:
            result = await asyncio.to_thread(fs.read_text, file_path, offset, limit)
        except _TOOL_ERRORS as e:
            return f"Error: {e}"
        return _format_numbered(result.content, offset)

    @tool("write_file")
    async def write_file_tool(file_path: str, content: str) -> str:
        """Create or overwrite a file in the workspace.

        Args:
            file_path: File to write
            content: Full file content
        """
        try:
            result = await asyncio.to_thread(fs.write_file, file_path, content)
        except _TOOL_ERRORS as e:
            return f"Error: {e}"
        if not result.success:
            return f"Error: {result.error}"
        return f"Wrote {result.path}"

    @tool("edit_file")
    async def edit_file_tool(file_path: str, old_string: str, new_string: str, replace_all: bool = False) -> str:
        """Replace an exact string in a workspace file.

        Args:
            file_path: File to edit
            old_string: Text to replace; must be unique unless replace_all is true
            new_string: Replacement text
            replace_all: Replace every occurrence
        """
        try:
            result = await asyncio.to_thread(fs.edit_file, file_path, old_string, new_string, replace_all)
        except _TOOL_ERRORS as e:
            return f"Error: {e}"
        if not result.success:
            return f"Error: {result.error}"
        return f"Edited {result.path} ({result.occurrences} replacement(s))"

    @tool("glob")
    async def glob_tool(pattern: str, path: str = "/") -> str:
        """Find workspace files matching a glob pattern such as "**/*.py".

        Args:
            pattern: Glob pattern
            path: Directory to search from
        """
        try:
            entries = await asyncio.to_thread(fs.glob, pattern, path)
        except _TOOL_ERRORS as e:
            return f"Error: {e}"
        if not entries:
            return "No files found"
        return "\n".join(e.path for e in entries)

    @tool("grep")
    async def grep_tool(pattern: str, path: str = "/", glob: str | None = None) -> str:
        """Search workspace file contents with a regular expression.

        Args:
            pattern: Regular expression
            path: File or directory to search
            glob: Only search files whose name matches this pattern, e.g. "*.py"
        """
        try:
            matches = await asyncio.to_thread(fs.grep, pattern, path, glob)
        except _TOOL_ERRORS as e:
            return f"Error: {e}"
        if not matches:
            return "No matches found"
        return "\n".join(f"{m.path}:{m.line}: {m.text}" for m in matches)

    @tool(EXECUTE_TOOL_NAME)
    async def execute_tool(command: str, timeout: int | None = None) -> str:
        """Run a shell command in the workspace root. Requires user approval.

        Args:
            command: Shell command line
            timeout: Seconds before the command is killed, at most the configured limit
        """
        logger.info("[Sandbox] execute: %s", command[:200])
        deadline = min(float(timeout), shell.timeout) if timeout else None
        try:
            result = await shell.execute(command, timeout=deadline)
        except OSError as e:
            return f"Error: {e}"
        return result.to_tool_result()

    return [ls_tool, read_file_tool, write_file_tool, edit_file_tool, glob_tool, grep_tool, execute_tool]
