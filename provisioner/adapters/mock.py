"""
Mock runner — test double for every command the engine issues.

Records each invocation and answers from a table of canned results
keyed by argv prefix. Unmatched commands succeed with empty output
unless ``default`` says otherwise.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from provisioner.adapters.base import CommandExecutor
from provisioner.core.models.command import CommandResult

Effect = Callable[[list[str]], None]


@dataclass
class MockCall:
    """One recorded invocation."""

    argv: list[str]
    timeout: float
    capture: bool
    env: dict[str, str] | None = None


@dataclass
class _Response:
    results: list[CommandResult]
    effect: Effect | None = None
    calls: int = 0

    def next(self) -> CommandResult:
        # The last result repeats once the sequence is used up
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        return self.results[index]


class MockCommandRunner(CommandExecutor):
    """Configurable command executor for tests.

    By default every command succeeds with empty output.
    """

    def __init__(self, default: CommandResult | None = None):
        self.default = default or CommandResult.success()
        self._responses: list[tuple[tuple[str, ...], _Response]] = []
        self._call_log: list[MockCall] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[MockCall]:
        """All invocations this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times run has been called."""
        return len(self._call_log)

    @property
    def commands(self) -> list[list[str]]:
        """argv of every invocation, in order."""
        return [c.argv for c in self._call_log]

    def set_response(
        self,
        prefix: Sequence[str],
        result: CommandResult | Sequence[CommandResult],
        effect: Effect | None = None,
    ) -> None:
        """Answer commands starting with ``prefix``.

        A sequence of results is returned one per call. ``effect`` runs
        on every matching call, e.g. to create the binary an install
        command would have produced.
        """
        results = [result] if isinstance(result, CommandResult) else list(result)
        # Newest registration wins, so tests can override a broad prefix
        self._responses.insert(0, (tuple(prefix), _Response(results, effect)))

    def set_failure(self, prefix: Sequence[str], stderr: str = "Mock failure", returncode: int = 1) -> None:
        """Configure commands starting with ``prefix`` to exit non-zero."""
        self.set_response(prefix, CommandResult.failure(returncode=returncode, stderr=stderr))

    def calls_matching(self, prefix: Sequence[str]) -> list[MockCall]:
        prefix = tuple(prefix)
        return [c for c in self._call_log if tuple(c.argv[: len(prefix)]) == prefix]

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float,
        capture: bool = True,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv = list(argv)
        self._call_log.append(
            MockCall(argv=argv, timeout=timeout, capture=capture, env=dict(env) if env else None)
        )

        for prefix, response in self._responses:
            if tuple(argv[: len(prefix)]) == prefix:
                if response.effect is not None:
                    response.effect(argv)
                return response.next().model_copy(update={"argv": argv})

        return self.default.model_copy(update={"argv": argv})

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
