"""Tests for the agent-facing workspace tools."""

import pytest

from core.workspace import EXECUTE_TOOL_NAME, build_workspace_tools
from sandbox.local import LocalSandbox


@pytest.fixture
def tools(workspace):
    (workspace / "main.py").write_text("print('hi')\nprint('bye')\n")
    sandbox = LocalSandbox(workspace, timeout=10, max_output_bytes=10_000)
    return {t.name: t for t in build_workspace_tools(sandbox)}


def test_tool_names(tools):
    assert set(tools) == {"ls", "read_file", "write_file", "edit_file", "glob", "grep", EXECUTE_TOOL_NAME}


@pytest.mark.asyncio
async def test_ls(tools):
    assert await tools["ls"].ainvoke({"path": "/"}) == "/main.py (25 bytes)"


@pytest.mark.asyncio
async def test_read_file_numbers_lines(tools):
    output = await tools["read_file"].ainvoke({"file_path": "/main.py"})
    assert output.splitlines() == ["     1\tprint('hi')", "     2\tprint('bye')"]


@pytest.mark.asyncio
async def test_read_file_accepts_absolute_workspace_path(tools, workspace):
    output = await tools["read_file"].ainvoke({"file_path": str(workspace / "main.py")})
    assert "print('hi')" in output


@pytest.mark.asyncio
async def test_access_denied_is_reported_not_raised(tools, tmp_path):
    (tmp_path / "secret.txt").write_text("secret")
    output = await tools["read_file"].ainvoke({"file_path": "../secret.txt"})
    assert output.startswith("Error: Access denied")


@pytest.mark.asyncio
async def test_missing_file_is_reported(tools):
    output = await tools["read_file"].ainvoke({"file_path": "/nope.txt"})
    assert output.startswith("Error:")


@pytest.mark.asyncio
async def test_write_then_edit(tools, workspace):
    assert await tools["write_file"].ainvoke({"file_path": "/a/b.txt", "content": "x y x"}) == "Wrote /a/b.txt"

    ambiguous = await tools["edit_file"].ainvoke({"file_path": "/a/b.txt", "old_string": "x", "new_string": "z"})
    assert ambiguous.startswith("Error:")

    edited = await tools["edit_file"].ainvoke(
        {"file_path": "/a/b.txt", "old_string": "x", "new_string": "z", "replace_all": True}
    )
    assert "2 replacement" in edited
    assert (workspace / "a" / "b.txt").read_text() == "z y z"


@pytest.mark.asyncio
async def test_glob_and_grep(tools):
    assert await tools["glob"].ainvoke({"pattern": "*.py"}) == "/main.py"
    assert await tools["grep"].ainvoke({"pattern": "bye"}) == "/main.py:2: print('bye')"
    assert await tools["grep"].ainvoke({"pattern": "zzz"}) == "No matches found"


@pytest.mark.asyncio
async def test_invalid_regex_is_reported(tools):
    output = await tools["grep"].ainvoke({"pattern": "("})
    assert output.startswith("Error:")


@pytest.mark.asyncio
async def test_execute(tools):
    assert await tools[EXECUTE_TOOL_NAME].ainvoke({"command": "echo ok"}) == "ok"


@pytest.mark.asyncio
async def test_execute_timeout(tools):
    output = await tools[EXECUTE_TOOL_NAME].ainvoke({"command": "echo partial; sleep 30", "timeout": 1})
    assert output.startswith("Command timed out.")
    assert "partial" in output


@pytest.mark.asyncio
async def test_execute_timeout_cannot_exceed_configured_limit(workspace):
    sandbox = LocalSandbox(workspace, timeout=0.5, max_output_bytes=10_000)
    execute = {t.name: t for t in build_workspace_tools(sandbox)}[EXECUTE_TOOL_NAME]

    output = await execute.ainvoke({"command": "sleep 5; echo done", "timeout": 100})

    assert output.startswith("Command timed out.")
    assert "done" not in output
