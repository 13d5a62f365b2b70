"""
L4 Execution — Tracked config file check and reset.

Tools like OpenCode refuse to start on a malformed JSON config. A
corrupt file is copied aside under a timestamped name and replaced
with an empty object; the original bytes are never lost.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
import time
from enum import Enum
from pathlib import Path

from provisioner.core.errors import ErrorKind

logger = logging.getLogger(__name__)

EMPTY_CONFIG = "{}\n"


class ConfigState(str, Enum):
    MISSING = "missing"
    VALID = "valid"
    CORRUPTED = "corrupted"


def inspect_config(path: Path) -> tuple[ConfigState, str]:
    """Classify a JSON config file.

    Returns:
        (state, detail). ``detail`` holds the parse error for a
        corrupted file.
    """
    if not path.exists():
        return ConfigState.MISSING, ""
    try:
        json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return ConfigState.CORRUPTED, str(e)
    except OSError as e:
        return ConfigState.CORRUPTED, f"unreadable: {e}"
    return ConfigState.VALID, ""


def backup_path(path: Path, timestamp: str | None = None) -> Path:
    """Unused ``<file>.backup.<YYYYmmdd_HHMMSS>`` name next to ``path``."""
    ts = timestamp or time.strftime("%Y%m%d_%H%M%S")
    candidate = path.with_name(f"{path.name}.backup.{ts}")
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.backup.{ts}.{counter}")
        counter += 1
    return candidate


def reset_config(path: Path) -> Path:
    """Back up ``path`` and atomically replace it with ``{}``.

    Returns:
        Where the original was copied.

    Raises:
        OSError: If the backup or the replacement could not be written.
            The original file is untouched in that case.
    """
    dest = backup_path(path)
    shutil.copy2(path, dest)
    logger.info("Backed up %s → %s", path, dest)

    _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".config_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as f:
            f.write(EMPTY_CONFIG)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise
    return dest


def check_and_fix(path: Path) -> tuple[ConfigState, Path | None]:
    """Reset ``path`` if it is corrupted.

    Returns:
        (state before the call, backup path if a reset happened).
        A failed reset is logged and reported with no backup path.
    """
    state, detail = inspect_config(path)
    if state != ConfigState.CORRUPTED:
        return state, None

    logger.warning("%s: %s (%s)", ErrorKind.CONFIG_CORRUPTED.value, path, detail)
    try:
        return state, reset_config(path)
    except OSError as e:
        logger.warning("Could not reset %s: %s", path, e)
        return state, None
