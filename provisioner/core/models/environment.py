"""
Environment model — the host classification produced by detection.

Captured once per process and never mutated afterwards. Every
strategy decision downstream reads from it.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class OSFamily(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    UNKNOWN = "unknown"


class Arch(str, Enum):
    X64 = "x64"
    ARM64 = "arm64"
    OTHER = "other"


class Environment(BaseModel):
    """Host facts that drive strategy selection."""

    model_config = ConfigDict(frozen=True)

    os_family: OSFamily = OSFamily.UNKNOWN
    arch: Arch = Arch.OTHER
    is_container: bool = False
    has_elevated_privilege: bool = False

    # Elevated because we ARE root/admin, so no sudo prefix is needed
    runs_as_root: bool = False

    home: str = "~"
    shell: str = ""
    appdata: str = ""
    tmp: str = "/tmp"

    # Raw values behind the classification, for diagnostics
    system: str = ""
    machine: str = ""

    @property
    def is_windows(self) -> bool:
        return self.os_family == OSFamily.WINDOWS

    @property
    def is_indeterminate(self) -> bool:
        """Whether either axis of the classification fell back to unknown."""
        return self.os_family == OSFamily.UNKNOWN or self.arch == Arch.OTHER

    @property
    def platform_key(self) -> tuple[str, str]:
        """(os_family, arch) pair, as used by unsupported-platform declarations."""
        return (self.os_family.value, self.arch.value)

    def to_dict(self) -> dict[str, object]:
        return {
            "os_family": self.os_family.value,
            "arch": self.arch.value,
            "is_container": self.is_container,
            "has_elevated_privilege": self.has_elevated_privilege,
            "runs_as_root": self.runs_as_root,
            "home": self.home,
            "shell": self.shell,
            "system": self.system,
            "machine": self.machine,
        }
