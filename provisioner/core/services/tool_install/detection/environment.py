"""
L3 Detection — Host environment.

Classifies OS family, CPU architecture, container residency and
privilege level. ``detect`` never raises: anything it cannot
determine degrades to the least capable answer.
"""

from __future__ import annotations

import logging
import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path

from provisioner.adapters.base import CommandExecutor
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.errors import ErrorKind
from provisioner.core.models.environment import Arch, Environment, OSFamily
from provisioner.core.services.tool_install.data.constants import (
    ARCH_MAP,
    CGROUP_FILES,
    CGROUP_MARKERS,
    CONTAINER_MARKER_FILES,
    OS_MAP,
    TIMEOUT_PRIVILEGE_PROBE,
)

logger = logging.getLogger(__name__)


def detect(
    runner: CommandExecutor | None = None,
    environ: Mapping[str, str] | None = None,
) -> Environment:
    """Probe the host once and return its classification."""
    runner = runner or CommandRunner()
    env = os.environ if environ is None else environ

    system = platform.system()
    machine = platform.machine()
    os_family = classify_os(system)
    arch = classify_arch(machine)

    if os_family == OSFamily.UNKNOWN or arch == Arch.OTHER:
        logger.warning(
            "%s: could not fully classify host (system=%r, machine=%r)",
            ErrorKind.ENVIRONMENT_INDETERMINATE.value, system, machine,
        )

    runs_as_root = _is_root(os_family, runner)
    elevated = runs_as_root or _can_elevate(os_family, runner)

    environment = Environment(
        os_family=os_family,
        arch=arch,
        is_container=detect_container(),
        has_elevated_privilege=elevated,
        runs_as_root=runs_as_root,
        home=_home(env),
        shell=env.get("SHELL", "") or env.get("ComSpec", ""),
        appdata=env.get("APPDATA", ""),
        tmp=tempfile.gettempdir(),
        system=system,
        machine=machine,
    )
    logger.info(
        "Detected %s/%s (container=%s, elevated=%s)",
        environment.os_family.value, environment.arch.value,
        environment.is_container, environment.has_elevated_privilege,
    )
    return environment


def classify_os(system: str) -> OSFamily:
    return OSFamily(OS_MAP.get(system, OSFamily.UNKNOWN.value))


def classify_arch(machine: str) -> Arch:
    return Arch(ARCH_MAP.get(machine, ARCH_MAP.get(machine.lower(), Arch.OTHER.value)))


# ── Container ───────────────────────────────────────────────────


def detect_container(
    marker_files: tuple[str, ...] = CONTAINER_MARKER_FILES,
    cgroup_files: tuple[str, ...] = CGROUP_FILES,
) -> bool:
    """Whether we are running inside a container. Unreadable means no."""
    for marker in marker_files:
        try:
            if Path(marker).exists():
                return True
        except OSError:
            continue

    for cgroup in cgroup_files:
        try:
            content = Path(cgroup).read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        if any(m in content for m in CGROUP_MARKERS):
            return True
    return False


# ── Privilege ───────────────────────────────────────────────────


def _is_root(os_family: OSFamily, runner: CommandExecutor) -> bool:
    """Already running with full privileges (root, or an elevated Windows shell)."""
    if os_family == OSFamily.WINDOWS:
        # "net session" only succeeds from an elevated prompt
        return runner.run(["net", "session"], timeout=TIMEOUT_PRIVILEGE_PROBE).ok

    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return False
    try:
        return geteuid() == 0
    except OSError:
        return False


def _can_elevate(os_family: OSFamily, runner: CommandExecutor) -> bool:
    """Whether elevation is available without prompting (passwordless sudo)."""
    if os_family == OSFamily.WINDOWS:
        return False
    return runner.run(["sudo", "-n", "true"], timeout=TIMEOUT_PRIVILEGE_PROBE).ok


def _home(env: Mapping[str, str]) -> str:
    try:
        return str(Path.home())
    except RuntimeError:
        return env.get("HOME") or env.get("USERPROFILE") or "~"
