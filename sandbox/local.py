"""Local sandbox: workspace-confined file I/O and shell execution on the host."""

from __future__ import annotations

import asyncio
import base64
import fnmatch
import logging
import os
import re
import signal
from datetime import datetime, timezone
from pathlib import Path

from core.errors import AccessDenied
from sandbox.base import Sandbox
from sandbox.interfaces.executor import BaseExecutor, ExecuteResult
from sandbox.interfaces.filesystem import (
    BinaryReadResult,
    DirListResult,
    FileEntry,
    FileReadResult,
    FileSystemBackend,
    FileWriteResult,
    GrepMatch,
)
from sandbox.workspace import resolve_workspace_path, to_workspace_path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_OUTPUT_BYTES = 100_000

# Non-project directories never shown to the UI or the agent
NOISE_DIRS = frozenset({"node_modules", "__pycache__"})

_GREP_MAX_FILE_SIZE = 1_000_000
_GREP_MAX_MATCHES = 500
_READ_CHUNK = 65536


def _is_hidden(name: str) -> bool:
    return name.startswith(".") or name in NOISE_DIRS


def _iso_mtime(mtime: float) -> str:
    return datetime.fromtimestamp(mtime, tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LocalBackend(FileSystemBackend):
    """Backend that operates directly on the local filesystem under one root."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _resolve(self, path: str | None) -> Path:
        return resolve_workspace_path(self.root, path)

    def _entry(self, p: Path) -> FileEntry:
        virtual = to_workspace_path(self.root, p)
        if p.is_dir():
            return FileEntry(path=virtual, is_dir=True)
        st = p.stat()
        return FileEntry(path=virtual, is_dir=False, size=st.st_size, modified_at=_iso_mtime(st.st_mtime))

    def _visible_children(self, directory: Path) -> list[Path]:
        return [item for item in sorted(directory.iterdir()) if not _is_hidden(item.name)]

    def _inside(self, p: Path) -> bool:
        try:
            self._resolve(str(p))
            return True
        except AccessDenied:
            return False

    def ls(self, path: str = "/") -> DirListResult:
        target = self._resolve(path)
        if not target.is_dir():
            return DirListResult(error=f"Not a directory: {path}")
        try:
            entries = [self._entry(item) for item in self._visible_children(target) if self._inside(item)]
        except OSError as e:
            return DirListResult(error=str(e))
        return DirListResult(entries=entries)

    def walk(self, path: str = "/") -> list[FileEntry]:
        target = self._resolve(path)
        files: list[FileEntry] = []

        def _read_dir(directory: Path) -> None:
            for item in self._visible_children(directory):
                if item.is_symlink() and not self._inside(item):
                    continue
                files.append(self._entry(item))
                if item.is_dir() and not item.is_symlink():
                    _read_dir(item)

        _read_dir(target)
        return files

    def read_text(self, path: str, offset: int = 0, limit: int | None = None) -> FileReadResult:
        target = self._resolve(path)
        if target.is_dir():
            raise IsADirectoryError(f"Cannot read directory as file: {path}")
        content = target.read_text(encoding="utf-8", errors="replace")
        if offset or limit is not None:
            lines = content.splitlines(keepends=True)
            end = None if limit is None else offset + limit
            content = "".join(lines[offset:end])
        st = target.stat()
        return FileReadResult(
            path=to_workspace_path(self.root, target),
            content=content,
            size=st.st_size,
            modified_at=_iso_mtime(st.st_mtime),
        )

    def read_binary(self, path: str) -> BinaryReadResult:
        target = self._resolve(path)
        if target.is_dir():
            raise IsADirectoryError(f"Cannot read directory as file: {path}")
        data = target.read_bytes()
        st = target.stat()
        return BinaryReadResult(
            path=to_workspace_path(self.root, target),
            content=base64.b64encode(data).decode("ascii"),
            size=st.st_size,
            modified_at=_iso_mtime(st.st_mtime),
        )

    def write_file(self, path: str, content: str) -> FileWriteResult:
        target = self._resolve(path)
        virtual = to_workspace_path(self.root, target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            return FileWriteResult(path=virtual, success=False, error=str(e))
        return FileWriteResult(path=virtual, success=True)

    def edit_file(self, path: str, old_string: str, new_string: str, replace_all: bool = False) -> FileWriteResult:
        target = self._resolve(path)
        virtual = to_workspace_path(self.root, target)
        if not old_string:
            return FileWriteResult(path=virtual, success=False, error="old_string must not be empty")
        try:
            content = target.read_text(encoding="utf-8")
        except OSError as e:
            return FileWriteResult(path=virtual, success=False, error=str(e))

        occurrences = content.count(old_string)
        if occurrences == 0:
            return FileWriteResult(path=virtual, success=False, error=f"String not found in file: {old_string!r}")
        if occurrences > 1 and not replace_all:
            return FileWriteResult(
                path=virtual,
                success=False,
                error=f"String appears {occurrences} times. Use replace_all=True or provide more context.",
            )

        updated = content.replace(old_string, new_string) if replace_all else content.replace(old_string, new_string, 1)
        try:
            target.write_text(updated, encoding="utf-8")
        except OSError as e:
            return FileWriteResult(path=virtual, success=False, error=str(e))
        return FileWriteResult(path=virtual, success=True, occurrences=occurrences if replace_all else 1)

    def glob(self, pattern: str, path: str = "/") -> list[FileEntry]:
        if pattern.startswith("/") or ".." in Path(pattern).parts:
            raise ValueError(f"Glob pattern must be relative to the search path: {pattern}")
        base = self._resolve(path)
        results = []
        for match in sorted(base.glob(pattern)):
            if not self._inside(match):
                continue
            if any(_is_hidden(part) for part in match.relative_to(base).parts):
                continue
            results.append(self._entry(match))
        return results

    def grep(self, pattern: str, path: str = "/", glob: str | None = None) -> list[GrepMatch]:
        regex = re.compile(pattern)
        base = self._resolve(path)
        if base.is_dir():
            candidates = [
                self.root / entry.path.lstrip("/")
                for entry in self.walk(to_workspace_path(self.root, base))
                if not entry.is_dir
            ]
        else:
            candidates = [base]

        matches: list[GrepMatch] = []
        for file_path in candidates:
            if glob and not fnmatch.fnmatch(file_path.name, glob):
                continue
            try:
                if file_path.stat().st_size > _GREP_MAX_FILE_SIZE:
                    continue
                text = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            virtual = to_workspace_path(self.root, file_path)
            for lineno, line in enumerate(text.splitlines(), start=1):
                if regex.search(line):
                    matches.append(GrepMatch(path=virtual, line=lineno, text=line))
                    if len(matches) >= _GREP_MAX_MATCHES:
                        return matches
        return matches


class _CappedBuffer:
    """Keeps the first `limit` bytes of a stream and remembers overflow."""

    def __init__(self, limit: int):
        self.limit = limit
        self.size = 0
        self.truncated = False
        self._chunks: list[bytes] = []

    def append(self, data: bytes) -> None:
        room = self.limit - self.size
        if len(data) > room:
            self.truncated = True
            data = data[: max(room, 0)]
        if data:
            self._chunks.append(data)
            self.size += len(data)

    def text(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")


def _kill_process_tree(proc: asyncio.subprocess.Process) -> None:
    # The shell may already have exited while background children still hold the group
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


class LocalShellExecutor(BaseExecutor):
    """One-shot shell commands in the workspace root with a deadline and output cap."""

    shell_name = "sh"

    async def _drain(self, stream: asyncio.StreamReader, buffer: _CappedBuffer) -> None:
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            buffer.append(chunk)

    async def execute(self, command: str, timeout: float | None = None) -> ExecuteResult:
        deadline = timeout if timeout is not None else self.timeout
        buffer = _CappedBuffer(self.max_output_bytes)

        proc = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=self.default_cwd,
            start_new_session=True,
        )
        reader = asyncio.create_task(self._drain(proc.stdout, buffer))

        timed_out = False
        try:
            await asyncio.wait_for(asyncio.gather(reader, proc.wait()), timeout=deadline)
        except TimeoutError:
            timed_out = True
            logger.warning("[Sandbox] Command timed out after %ss: %s", deadline, command[:200])
            _kill_process_tree(proc)
            await proc.wait()

        if buffer.truncated:
            logger.info("[Sandbox] Output truncated at %d bytes", self.max_output_bytes)
        return ExecuteResult(
            exit_code=proc.returncode,
            output=buffer.text(),
            timed_out=timed_out,
            truncated=buffer.truncated,
        )


class LocalSandbox(Sandbox):
    """Execution backend rooted at one workspace directory."""

    def __init__(
        self,
        workspace_root: str | Path,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        root = Path(workspace_root).expanduser()
        if not root.is_absolute():
            raise ValueError(f"Workspace root must be absolute: {workspace_root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Workspace folder does not exist: {workspace_root}")
        self._workspace_root = str(root.resolve())
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self._fs = LocalBackend(self._workspace_root)
        self._shell = LocalShellExecutor(
            default_cwd=self._workspace_root,
            timeout=timeout,
            max_output_bytes=max_output_bytes,
        )

    @property
    def name(self) -> str:
        return "local"

    @property
    def working_dir(self) -> str:
        return self._workspace_root

    def fs(self) -> LocalBackend:
        return self._fs

    def shell(self) -> LocalShellExecutor:
        return self._shell
