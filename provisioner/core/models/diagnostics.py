"""
Diagnostic models — findings, per-tool probes and the report.

A report only grows while the checklist runs. ``healthy`` is derived
from ``issues`` on every access and is never stored.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Finding(BaseModel):
    """A single issue or warning raised by a diagnostic check."""

    check: str                       # which checklist item produced it
    message: str
    code: str = ""                   # ErrorKind value or a check-local code

    def __str__(self) -> str:
        return self.message


class ToolProbe(BaseModel):
    """Presence and version of one tool, as observed right now."""

    installed: bool = False
    path: str | None = None
    version: str | None = None
    probe_error: str | None = None


class DiagnosticReport(BaseModel):
    """Result of one diagnose() call."""

    system: dict[str, Any] = Field(default_factory=dict)
    tools: dict[str, ToolProbe] = Field(default_factory=dict)
    config: dict[str, Any] = Field(default_factory=dict)
    config_valid: bool = True
    path_complete: bool = True
    issues: list[Finding] = Field(default_factory=list)
    warnings: list[Finding] = Field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return len(self.issues) == 0

    def add_issue(self, check: str, message: str, code: str = "") -> None:
        self.issues.append(Finding(check=check, message=message, code=code))

    def add_warning(self, check: str, message: str, code: str = "") -> None:
        self.warnings.append(Finding(check=check, message=message, code=code))

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "system": self.system,
            "tools": {name: probe.model_dump() for name, probe in self.tools.items()},
            "config": self.config,
            "config_valid": self.config_valid,
            "path_complete": self.path_complete,
            "issues": [f.model_dump() for f in self.issues],
            "warnings": [f.model_dump() for f in self.warnings],
        }


class FixStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class RepairFix(BaseModel):
    """One action considered by repair()."""

    action: str
    status: FixStatus
    detail: str = ""

    @property
    def applied(self) -> bool:
        return self.status == FixStatus.APPLIED


class ToolStatusEntry(BaseModel):
    """One row of the ``status`` snapshot."""

    name: str
    label: str
    installed: bool = False
    path: str | None = None
    version: str | None = None
    plugins: list[str] = Field(default_factory=list)
