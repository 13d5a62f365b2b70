"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from provisioner.core.models import Environment, ToolSpec, ToolInstallResult
"""

from provisioner.core.models.command import CommandResult
from provisioner.core.models.config import GitSettings, ProvisionerConfig
from provisioner.core.models.diagnostics import (
    DiagnosticReport,
    Finding,
    FixStatus,
    RepairFix,
    ToolProbe,
    ToolStatusEntry,
)
from provisioner.core.models.environment import Arch, Environment, OSFamily
from provisioner.core.models.result import (
    AttemptOutcome,
    InstallAttempt,
    ProvisionSummary,
    ToolInstallResult,
    ToolStatus,
)
from provisioner.core.models.tool import Strategy, ToolSpec

__all__ = [
    "Arch",
    "AttemptOutcome",
    # command.py
    "CommandResult",
    # diagnostics.py
    "DiagnosticReport",
    # environment.py
    "Environment",
    "Finding",
    "FixStatus",
    "GitSettings",
    "InstallAttempt",
    "OSFamily",
    "ProvisionSummary",
    # config.py
    "ProvisionerConfig",
    "RepairFix",
    # tool.py
    "Strategy",
    # result.py
    "ToolInstallResult",
    "ToolProbe",
    "ToolSpec",
    "ToolStatus",
    "ToolStatusEntry",
]
