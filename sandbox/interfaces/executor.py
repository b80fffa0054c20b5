"""Base executor class and result type for command execution."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class ExecuteResult:
    """Result of command execution.

    A timed-out or truncated run still carries whatever output was captured.
    """

    exit_code: int | None
    output: str
    timed_out: bool = False
    truncated: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    def to_tool_result(self) -> str:
        """Format result for tool response."""
        body = self.output.rstrip() or "(no output)"
        if self.truncated:
            body += "\n\n[Output was truncated due to size limits]"
        if self.timed_out:
            return f"Command timed out.\n{body}"
        if self.exit_code != 0:
            return f"Exit code: {self.exit_code}\n{body}"
        return body


class BaseExecutor(ABC):
    """Base class for shell executors bound to one working directory."""

    shell_name: str = "unknown"

    def __init__(self, default_cwd: str, timeout: float, max_output_bytes: int):
        self.default_cwd = default_cwd
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes

    @abstractmethod
    async def execute(self, command: str, timeout: float | None = None) -> ExecuteResult:
        """
        Execute a command and wait for completion.

        Args:
            command: Command to execute
            timeout: Override of the configured timeout in seconds

        Returns:
            ExecuteResult with exit code and combined stdout/stderr
        """
        ...
