"""
Error taxonomy for provisioning.

Most failures are data: they end up in an InstallAttempt, a
ToolInstallResult or a DiagnosticReport, tagged with an ErrorKind.
Only a required tool running out of strategies is raised.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from provisioner.core.models.result import ProvisionSummary, ToolInstallResult


class ErrorKind(str, Enum):
    ENVIRONMENT_INDETERMINATE = "environment_indeterminate"
    PLATFORM_UNSUPPORTED = "platform_unsupported"
    STRATEGY_EXHAUSTED = "strategy_exhausted"
    VERIFICATION_FAILED = "verification_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    CONFIG_CORRUPTED = "config_corrupted"


class ProvisionError(Exception):
    """Base class for errors that stop a provisioning run."""

    kind: ErrorKind | None = None


class StrategyExhausted(ProvisionError):
    """Every applicable strategy for a required tool failed."""

    kind = ErrorKind.STRATEGY_EXHAUSTED

    def __init__(self, result: ToolInstallResult, summary: ProvisionSummary | None = None):
        self.result = result
        self.summary = summary
        tried = ", ".join(a.strategy for a in result.executed_attempts) or "none"
        super().__init__(
            f"Required tool '{result.tool}' could not be installed (tried: {tried})"
        )
