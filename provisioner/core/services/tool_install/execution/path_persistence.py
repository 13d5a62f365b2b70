"""
L4 Execution — Durable PATH persistence.

Makes a PATH entry survive the current process, without admin rights:

- Windows: the user-scoped ``HKCU\\Environment\\Path`` registry value.
- Everything else: an export line in the user's shell start-up files.

Idempotent. Writing is skipped when the target already mentions the
entry. Failures are warnings: the in-process PATH is already updated,
so the current run is unaffected.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path

from provisioner.core.errors import ErrorKind
from provisioner.core.models.environment import Environment, OSFamily
from provisioner.core.services.tool_install.data.constants import PATH_MARKER
from provisioner.core.services.tool_install.execution.config import shell_config_line
from provisioner.core.services.tool_install.execution.search_path import (
    SearchPath,
    normalize_entry,
)

logger = logging.getLogger(__name__)

WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002
HWND_BROADCAST = 0xFFFF


class PersistOutcome(str, Enum):
    ALREADY_PRESENT = "already_present"
    WRITTEN = "written"
    FAILED = "failed"


def persist(
    entry: str,
    environment: Environment,
    *,
    search_path: SearchPath | None = None,
    home: Path | None = None,
) -> bool:
    """Make ``entry`` part of PATH for this process and future shells.

    Returns:
        True when the entry is durably present (written now or already
        there), False when the durable write failed.
    """
    if search_path is not None:
        search_path.prepend(entry)
    outcome = persist_path_entry(entry, environment, home=home)
    return outcome != PersistOutcome.FAILED


def persist_path_entry(
    entry: str,
    environment: Environment,
    *,
    home: Path | None = None,
) -> PersistOutcome:
    """Durably add ``entry`` and report what actually happened."""
    if environment.os_family == OSFamily.WINDOWS:
        return _persist_windows(entry)

    home = home or Path(environment.home).expanduser()
    outcomes = [
        _persist_startup_file(path, shell_type, entry, home)
        for path, shell_type in startup_files(environment, home)
    ]
    if PersistOutcome.FAILED in outcomes:
        return PersistOutcome.FAILED
    if PersistOutcome.WRITTEN in outcomes:
        return PersistOutcome.WRITTEN
    return PersistOutcome.ALREADY_PRESENT


# ── Unix: shell start-up files ──────────────────────────────────


def startup_files(environment: Environment, home: Path) -> list[tuple[Path, str]]:
    """Start-up files to keep in sync, with their shell dialect."""
    shell = Path(environment.shell).name if environment.shell else ""

    files = [(home / ".bashrc", "bash")]
    if environment.os_family == OSFamily.MACOS or "zsh" in shell:
        files.append((home / ".zshrc", "zsh"))
    if "fish" in shell:
        files.append((home / ".config" / "fish" / "config.fish", "fish"))
    return files


def mentions_entry(text: str, entry: str, home: Path | None = None) -> bool:
    """Whether ``text`` already references ``entry`` (also as ``$HOME/..`` or ``~/..``)."""
    forms = {entry.rstrip("/")}
    if home is not None:
        home_str = str(home).rstrip("/")
        if home_str and entry.startswith(home_str + "/"):
            rest = entry[len(home_str):]
            forms.update({"$HOME" + rest, "${HOME}" + rest, "~" + rest})

    for form in forms:
        pattern = r"(?<![\w.\-/])" + re.escape(form) + r"/?(?![\w.\-/])"
        if re.search(pattern, text):
            return True
    return False


def _persist_startup_file(path: Path, shell_type: str, entry: str, home: Path) -> PersistOutcome:
    line = shell_config_line(shell_type, path_entry=entry)
    try:
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(line + "\n", encoding="utf-8")
            logger.info("Created %s with PATH entry %s", path, entry)
            return PersistOutcome.WRITTEN

        text = path.read_text(encoding="utf-8", errors="replace")
        if mentions_entry(text, entry, home):
            logger.debug("%s already has %s", path, entry)
            return PersistOutcome.ALREADY_PRESENT

        prefix = "" if text.endswith("\n") or not text else "\n"
        with path.open("a", encoding="utf-8") as f:
            f.write(f"{prefix}\n{PATH_MARKER}\n{line}\n")
        logger.info("Appended PATH entry %s to %s", entry, path)
        return PersistOutcome.WRITTEN
    except OSError as e:
        logger.warning(
            "%s: could not update %s: %s", ErrorKind.PERSISTENCE_FAILED.value, path, e,
        )
        return PersistOutcome.FAILED


# ── Windows: user environment in the registry ───────────────────


def _persist_windows(entry: str) -> PersistOutcome:
    try:
        current, reg_type = _read_user_path()
    except OSError as e:
        logger.warning(
            "%s: cannot read user PATH: %s", ErrorKind.PERSISTENCE_FAILED.value, e,
        )
        return PersistOutcome.FAILED

    parts = [p for p in current.split(";") if p]
    wanted = normalize_entry(entry)
    if any(normalize_entry(p) == wanted for p in parts):
        return PersistOutcome.ALREADY_PRESENT

    try:
        _write_user_path(";".join([entry, *parts]), reg_type)
    except OSError as e:
        logger.warning(
            "%s: cannot write user PATH: %s", ErrorKind.PERSISTENCE_FAILED.value, e,
        )
        return PersistOutcome.FAILED

    _broadcast_environment_change()
    logger.info("Added %s to the user PATH", entry)
    return PersistOutcome.WRITTEN


def _read_user_path() -> tuple[str, int | None]:
    """Current ``HKCU\\Environment\\Path`` and its registry type."""
    import winreg

    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0, winreg.KEY_READ) as key:
        try:
            value, reg_type = winreg.QueryValueEx(key, "Path")
        except FileNotFoundError:
            return "", None
    return str(value), reg_type


def _write_user_path(value: str, reg_type: int | None) -> None:
    import winreg

    if reg_type not in (winreg.REG_EXPAND_SZ, winreg.REG_SZ):
        reg_type = winreg.REG_EXPAND_SZ
    with winreg.OpenKey(winreg.HKEY_CURRENT_USER, "Environment", 0, winreg.KEY_SET_VALUE) as key:
        winreg.SetValueEx(key, "Path", 0, reg_type, value)


def _broadcast_environment_change() -> None:
    """Tell running Explorer windows that the environment changed. Best effort."""
    import ctypes

    try:
        result = ctypes.c_ulong()
        ctypes.windll.user32.SendMessageTimeoutW(  # type: ignore[attr-defined]
            HWND_BROADCAST, WM_SETTINGCHANGE, 0, "Environment",
            SMTO_ABORTIFHUNG, 5000, ctypes.byref(result),
        )
    except (AttributeError, OSError) as e:
        logger.debug("Environment change broadcast failed: %s", e)
