"""
Executor base — the contract between the engine and the host.

Everything the engine runs on the host goes through a CommandExecutor.
The engine never calls subprocess directly, which keeps every
component testable with a MockCommandRunner.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from provisioner.core.models.command import CommandResult


class CommandExecutor(ABC):
    """Abstract base class for command executors.

    Executors run one external command at a time and return a
    CommandResult. They NEVER raise exceptions: a missing binary,
    a timeout or a launch error are captured in the result.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The executor identifier (e.g., 'shell', 'mock')."""

    @abstractmethod
    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float,
        capture: bool = True,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run ``argv`` and wait for it, up to ``timeout`` seconds.

        Args:
            argv: Program and arguments. The program is resolved against
                ``env["PATH"]`` when ``env`` is given.
            timeout: Hard deadline in seconds. Exceeding it is a failure.
            capture: Capture stdout/stderr (True) or inherit the terminal.
            env: Full environment for the child process.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
