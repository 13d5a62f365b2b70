"""
Install result models — the record of what a run actually did.

Attempts are appended in execution order and never rewritten. A tool
reaches ``installed`` only through ``mark_installed``, which demands a
verified successful attempt.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from provisioner.core.errors import ErrorKind
from provisioner.core.models.environment import Environment


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class AttemptOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED_PRECONDITION = "skipped-precondition"


class ToolStatus(str, Enum):
    ALREADY_PRESENT = "already_present"
    INSTALLED = "installed"
    FAILED = "failed"
    SKIPPED_UNSUPPORTED_PLATFORM = "skipped_unsupported_platform"


class InstallAttempt(BaseModel):
    """One execution (or skip) of one strategy."""

    strategy: str
    method: str = ""
    outcome: AttemptOutcome
    stderr_tail: str = ""
    elapsed_ms: int = 0
    retry_index: int = 0
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == AttemptOutcome.SUCCEEDED

    @property
    def executed(self) -> bool:
        """Whether a command was actually run for this attempt."""
        return self.outcome != AttemptOutcome.SKIPPED_PRECONDITION

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ToolInstallResult(BaseModel):
    """Outcome of provisioning a single tool."""

    tool: str
    status: ToolStatus = ToolStatus.FAILED
    attempts: list[InstallAttempt] = Field(default_factory=list)
    executable_path: str | None = None
    message: str = ""
    warnings: list[str] = Field(default_factory=list)
    started_at: str = Field(default_factory=_now_iso)

    @property
    def ok(self) -> bool:
        """Tool is usable after the run."""
        return self.status in (ToolStatus.ALREADY_PRESENT, ToolStatus.INSTALLED)

    @property
    def executed_attempts(self) -> list[InstallAttempt]:
        return [a for a in self.attempts if a.executed]

    def record(self, attempt: InstallAttempt) -> None:
        """Append an attempt. Attempts are never removed or reordered."""
        self.attempts.append(attempt)

    def mark_installed(self, executable_path: str | None = None) -> None:
        """Transition to ``installed``; requires a succeeded final attempt."""
        if not self.attempts or not self.attempts[-1].succeeded:
            raise ValueError(
                f"{self.tool}: cannot mark installed without a verified attempt"
            )
        self.status = ToolStatus.INSTALLED
        self.executable_path = executable_path

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "status": self.status.value,
            "executable_path": self.executable_path,
            "message": self.message,
            "warnings": list(self.warnings),
            "attempts": [a.to_dict() for a in self.attempts],
        }


class ProvisionSummary(BaseModel):
    """Everything ``install_all`` did, in order."""

    environment: Environment
    results: list[ToolInstallResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    git_bash_path: str | None = None

    @property
    def failed(self) -> list[ToolInstallResult]:
        return [r for r in self.results if r.status == ToolStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def get(self, tool: str) -> ToolInstallResult | None:
        for result in self.results:
            if result.tool == tool:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "environment": self.environment.to_dict(),
            "results": [r.to_dict() for r in self.results],
            "warnings": list(self.warnings),
            "git_bash_path": self.git_bash_path,
        }
