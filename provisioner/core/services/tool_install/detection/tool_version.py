"""
L3 Detection — Tool version probing.

Runs a tool's version command and extracts the first version-looking
token from its output. Used as the post-install verification probe
and by diagnostics.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

from provisioner.adapters.base import CommandExecutor
from provisioner.core.models.command import CommandResult
from provisioner.core.services.tool_install.data.constants import TIMEOUT_PROBE

_VERSION_RE = re.compile(r"v?(\d+\.\d+(?:\.\d+)?(?:[-+.][0-9A-Za-z.]+)?)")


def parse_version(output: str) -> str | None:
    """First version number in ``output``, e.g. ``"git version 2.43.0"`` → ``"2.43.0"``."""
    match = _VERSION_RE.search(output or "")
    return match.group(1) if match else None


def probe_version(
    argv: Sequence[str],
    runner: CommandExecutor,
    env: Mapping[str, str] | None = None,
    timeout: float = TIMEOUT_PROBE,
) -> tuple[CommandResult, str | None]:
    """Run a version command.

    Returns:
        (result, version). ``version`` is None when the command failed
        or printed nothing recognisable. Some tools print the version
        to stderr, so both streams are searched.
    """
    result = runner.run(argv, timeout=timeout, capture=True, env=env)
    if not result.ok:
        return result, None
    return result, parse_version(result.stdout) or parse_version(result.stderr)
