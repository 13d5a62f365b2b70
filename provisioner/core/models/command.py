"""
Command result model — the execution contract.

Every external command runs through a CommandExecutor and comes back
as a CommandResult. Executors NEVER raise: a missing binary, a
timeout or a crash are all captured here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# POSIX shells report "command not found" as 127
EXIT_NOT_FOUND = 127


class CommandResult(BaseModel):
    """Outcome of one external command invocation."""

    argv: list[str] = Field(default_factory=list)
    returncode: int | None = 0      # None when the process never finished
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    elapsed_ms: int = 0
    error: str | None = None        # launch failure (not found, permission)

    @property
    def ok(self) -> bool:
        """Exit 0 within the deadline. Nothing else counts as success."""
        return not self.timed_out and self.error is None and self.returncode == 0

    @property
    def signaled(self) -> bool:
        """Whether the process was killed by a signal (POSIX negative code)."""
        return self.returncode is not None and self.returncode < 0

    @property
    def stderr_tail(self) -> str:
        """Last 2000 characters of stderr, for attempt records."""
        return self.stderr.strip()[-2000:]

    def describe_failure(self) -> str:
        """One-line reason suitable for logs and attempt records."""
        if self.ok:
            return ""
        if self.timed_out:
            return "timed out"
        if self.error:
            return self.error
        if self.signaled:
            return f"terminated by signal {-(self.returncode or 0)}"
        tail = self.stderr_tail.splitlines()
        detail = f": {tail[-1]}" if tail else ""
        return f"exit code {self.returncode}{detail}"

    @classmethod
    def success(cls, stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a successful result."""
        return cls(returncode=0, stdout=stdout, **kwargs)

    @classmethod
    def failure(
        cls,
        returncode: int = 1,
        stderr: str = "",
        **kwargs: Any,
    ) -> CommandResult:
        """Create a non-zero exit result."""
        return cls(returncode=returncode, stderr=stderr, **kwargs)

    @classmethod
    def not_found(cls, argv: list[str]) -> CommandResult:
        """Create a result for a binary that could not be resolved."""
        name = argv[0] if argv else ""
        return cls(
            argv=list(argv),
            returncode=EXIT_NOT_FOUND,
            error=f"command not found: {name}",
        )

    @classmethod
    def timeout(cls, argv: list[str], elapsed_ms: int = 0, **kwargs: Any) -> CommandResult:
        """Create a result for a command that exceeded its deadline."""
        return cls(argv=list(argv), returncode=None, timed_out=True, elapsed_ms=elapsed_ms, **kwargs)
