"""
L4 Execution — Git post-install setup.

Identity and defaults for a freshly provisioned git, plus locating
Git Bash and running commands through it for tools that shell out
that way on Windows.
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from pathlib import Path, PureWindowsPath

from provisioner.adapters.base import CommandExecutor
from provisioner.core.models.command import CommandResult
from provisioner.core.models.config import GitSettings
from provisioner.core.models.environment import Environment, OSFamily
from provisioner.core.services.tool_install.data.constants import (
    TIMEOUT_PACKAGE_MANAGER,
    TIMEOUT_PROBE,
)
from provisioner.core.services.tool_install.execution.config import host_name, system_user
from provisioner.core.services.tool_install.execution.search_path import SearchPath

logger = logging.getLogger(__name__)

WINDOWS_GIT_BASH_CANDIDATES: tuple[str, ...] = (
    "C:\\Program Files\\Git\\bin\\bash.exe",
    "C:\\Program Files\\Git\\usr\\bin\\bash.exe",
    "C:\\Program Files (x86)\\Git\\bin\\bash.exe",
    "C:\\Program Files (x86)\\Git\\usr\\bin\\bash.exe",
)

WSL_GIT_BASH_CANDIDATES: tuple[str, ...] = (
    "/mnt/c/Program Files/Git/bin/bash.exe",
    "/mnt/c/Program Files (x86)/Git/bin/bash.exe",
)

WINDOWS_GIT_SETTINGS: tuple[tuple[str, str], ...] = (
    ("core.autocrlf", "true"),
    ("core.longpaths", "true"),
    ("core.quotepath", "off"),
)


# ── Identity ────────────────────────────────────────────────────


def _git_config_get(key: str, runner: CommandExecutor, search_path: SearchPath) -> str:
    result = runner.run(
        ["git", "config", "--global", key],
        timeout=TIMEOUT_PROBE,
        env=search_path.environ(),
    )
    return result.stdout.strip() if result.ok else ""


def _git_config_set(key: str, value: str, runner: CommandExecutor, search_path: SearchPath) -> bool:
    result = runner.run(
        ["git", "config", "--global", key, value],
        timeout=TIMEOUT_PROBE,
        env=search_path.environ(),
    )
    if not result.ok:
        logger.warning("git config %s failed: %s", key, result.describe_failure())
    return result.ok


def is_git_configured(runner: CommandExecutor, search_path: SearchPath) -> bool:
    """Whether a global user.name and user.email are both set."""
    return bool(
        _git_config_get("user.name", runner, search_path)
        and _git_config_get("user.email", runner, search_path)
    )


def configure_git(
    settings: GitSettings,
    environment: Environment,
    runner: CommandExecutor,
    search_path: SearchPath,
) -> list[str]:
    """Apply identity, default branch and platform settings.

    Explicit settings win. Otherwise existing global values are kept,
    and missing ones default to the login name and ``user@host``.

    Returns:
        The keys that were written.
    """
    user = system_user()
    wanted: list[tuple[str, str | None, str]] = [
        ("user.name", settings.user_name, user),
        ("user.email", settings.user_email, f"{user}@{host_name()}"),
    ]

    written: list[str] = []
    for key, explicit, fallback in wanted:
        if explicit:
            value = explicit
        elif _git_config_get(key, runner, search_path):
            logger.debug("git %s already set", key)
            continue
        else:
            value = fallback
        if _git_config_set(key, value, runner, search_path):
            written.append(key)

    extra = [("init.defaultBranch", settings.default_branch)]
    if environment.os_family == OSFamily.WINDOWS:
        extra.extend(WINDOWS_GIT_SETTINGS)
    for key, value in extra:
        if _git_config_set(key, value, runner, search_path):
            written.append(key)

    logger.info("Configured git: %s", ", ".join(written) or "nothing to change")
    return written


# ── Git Bash ────────────────────────────────────────────────────


def find_git_bash_path(
    environment: Environment,
    search_path: SearchPath,
    environ: MutableMapping[str, str] | None = None,
) -> str | None:
    """Locate a bash that git-aware tools can use.

    Windows: the Git for Windows bash, from well-known install dirs or
    next to ``git.exe``. Linux: a Windows Git Bash reachable from WSL,
    else ``/bin/bash`` when git is installed. macOS: ``/bin/bash``
    when git is installed.
    """
    env = os.environ if environ is None else environ

    if environment.os_family == OSFamily.WINDOWS:
        candidates = list(WINDOWS_GIT_BASH_CANDIDATES)
        for var in ("ProgramFiles", "ProgramFiles(x86)"):
            if env.get(var):
                candidates.append(str(PureWindowsPath(env[var], "Git", "bin", "bash.exe")))
        if env.get("USERPROFILE"):
            candidates.append(str(PureWindowsPath(
                env["USERPROFILE"], "AppData", "Local", "Programs", "Git", "bin", "bash.exe",
            )))
        git = search_path.which("git")
        if git:
            git_dir = Path(git).parent
            candidates += [str(git_dir / "bash.exe"), str(git_dir.parent / "bin" / "bash.exe")]
        return _first_existing(candidates)

    if environment.os_family == OSFamily.LINUX:
        found = _first_existing(WSL_GIT_BASH_CANDIDATES)
        if found:
            return found

    if search_path.exists("git"):
        return _first_existing(["/bin/bash"])
    return None


def configure_git_bash_env(
    environment: Environment,
    search_path: SearchPath,
    environ: MutableMapping[str, str] | None = None,
) -> str | None:
    """Export ``GIT_BASH_PATH`` (and on Windows ``GIT_INSTALL_ROOT``).

    Returns:
        The bash path, or None when nothing was found.
    """
    target = os.environ if environ is None else environ
    bash = find_git_bash_path(environment, search_path, target)
    if bash is None:
        if environment.os_family == OSFamily.WINDOWS:
            logger.warning("Git Bash not found; tools that need it may not start")
        return None

    target["GIT_BASH_PATH"] = bash
    if environment.os_family == OSFamily.WINDOWS:
        # <root>\bin\bash.exe or <root>\usr\bin\bash.exe
        parent = PureWindowsPath(bash).parent
        root = parent.parent.parent if parent.parent.name.lower() == "usr" else parent.parent
        target["GIT_INSTALL_ROOT"] = str(root)
    logger.info("GIT_BASH_PATH=%s", bash)
    return bash


def execute_with_git_bash(
    command: str,
    environment: Environment,
    runner: CommandExecutor,
    search_path: SearchPath,
    *,
    timeout: float = TIMEOUT_PACKAGE_MANAGER,
    environ: MutableMapping[str, str] | None = None,
) -> CommandResult:
    """Run a shell command line through Git Bash.

    Windows requires Git Bash. Elsewhere any bash found by
    ``find_git_bash_path`` is used, and plain ``sh`` when git is
    installed but no bash was found. A missing shell comes back as a
    failed result, never as an exception. Success means exit 0; a
    non-zero exit is a failure even when stderr is empty.
    """
    bash = find_git_bash_path(environment, search_path, environ)

    if bash is not None:
        argv = [bash, "-c", command]
    elif environment.os_family == OSFamily.WINDOWS:
        return CommandResult(
            argv=["bash", "-c", command],
            returncode=None,
            error="Git Bash not found; install Git for Windows first",
        )
    elif search_path.exists("git"):
        argv = ["sh", "-c", command]
    else:
        return CommandResult(
            argv=["sh", "-c", command],
            returncode=None,
            error="git is not installed",
        )

    result = runner.run(argv, timeout=timeout, env=search_path.environ())
    if not result.ok:
        logger.warning("Git Bash command failed: %s", result.describe_failure())
    return result


def _first_existing(candidates: list[str] | tuple[str, ...]) -> str | None:
    for candidate in candidates:
        try:
            if Path(candidate).is_file():
                return candidate
        except OSError:
            continue
    return None
