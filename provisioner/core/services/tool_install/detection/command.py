"""
L3 Detection — Command existence.

Presence checks are plain lookups: nothing is executed, and every
failure mode answers "not found" instead of raising.
"""

from __future__ import annotations

import logging
import shutil

logger = logging.getLogger(__name__)


def resolve_command(name: str, path: str | None = None) -> str | None:
    """Locate ``name`` on ``path`` (default: the process PATH).

    Returns:
        Absolute location of the executable, or None.
    """
    if not name:
        return None
    try:
        return shutil.which(name, path=path)
    except (OSError, ValueError) as e:
        logger.debug("Lookup of %s failed: %s", name, e)
        return None


def command_exists(name: str, path: str | None = None) -> bool:
    """Whether ``name`` resolves to an executable on ``path``."""
    return resolve_command(name, path) is not None
