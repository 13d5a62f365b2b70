"""
L4 Execution — Strategy executor.

Runs one strategy's commands, then proves the tool is usable with the
verification probe. An exit code of 0 from the installer is necessary
but never sufficient.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from provisioner.adapters.base import CommandExecutor
from provisioner.core.errors import ErrorKind
from provisioner.core.models.environment import Environment
from provisioner.core.models.result import AttemptOutcome, InstallAttempt
from provisioner.core.models.tool import Strategy, ToolSpec
from provisioner.core.services.tool_install.data.constants import CANONICAL_BIN_DIRS
from provisioner.core.services.tool_install.detection.tool_version import probe_version
from provisioner.core.services.tool_install.execution.config import (
    render_path,
    render_template,
    template_values,
)
from provisioner.core.services.tool_install.execution.search_path import SearchPath

logger = logging.getLogger(__name__)


def canonical_bin_dirs(environment: Environment) -> list[str]:
    """User-level directories package managers put executables in."""
    values = template_values(environment)
    templates = CANONICAL_BIN_DIRS.get(environment.os_family.value, ())
    return [render_template(t, values) for t in templates]


def refresh_search_path(environment: Environment, search_path: SearchPath) -> list[str]:
    """Add canonical bin dirs that exist on disk to the in-process PATH."""
    existing = [d for d in canonical_bin_dirs(environment) if Path(d).is_dir()]
    return search_path.prepend_all(existing)


def _with_elevation(argv: tuple[str, ...], strategy: Strategy, environment: Environment) -> list[str]:
    """Prefix ``sudo -n`` when the strategy needs root and we are not root."""
    if (
        strategy.needs_elevation
        and not environment.runs_as_root
        and not environment.is_windows
    ):
        return ["sudo", "-n", *argv]
    return list(argv)


def verify(
    tool: ToolSpec,
    environment: Environment,
    runner: CommandExecutor,
    search_path: SearchPath,
) -> str | None:
    """Run the verification probe. Returns a failure reason, or None if usable."""
    if tool.version_command:
        result, _version = probe_version(
            tool.version_command, runner, env=search_path.environ(),
        )
        if not result.ok:
            return f"{' '.join(tool.version_command)}: {result.describe_failure()}"
        return None

    if tool.presence_path:
        marker = render_path(tool.presence_path, environment)
        if not marker.exists():
            return f"{marker} not found after install"
        return None

    if tool.executable and not search_path.exists(tool.executable):
        return f"{tool.executable} not found on PATH after install"
    return None


def execute(
    strategy: Strategy,
    tool: ToolSpec,
    environment: Environment,
    *,
    runner: CommandExecutor,
    search_path: SearchPath,
    capture: bool = True,
    retry_index: int = 0,
) -> InstallAttempt:
    """Run ``strategy`` for ``tool`` and verify the result.

    Commands run in order; the first failure (non-zero exit, timeout,
    signal, launch error) ends the attempt. On success the strategy's
    path entry and any canonical bin dirs are added to ``search_path``
    before the probe, so a tool installed off-PATH can still verify.
    """
    start = time.monotonic()
    attempt = dict(strategy=strategy.label, method=strategy.method, retry_index=retry_index)

    logger.info("Installing %s via %s (try %d)", tool.name, strategy.label, retry_index + 1)

    for argv in strategy.commands:
        cmd = _with_elevation(argv, strategy, environment)
        result = runner.run(
            cmd,
            timeout=strategy.timeout,
            capture=capture,
            env=search_path.environ(),
        )
        if not result.ok:
            reason = result.describe_failure()
            logger.warning("%s via %s failed: %s", tool.name, strategy.label, reason)
            return InstallAttempt(
                **attempt,
                outcome=AttemptOutcome.FAILED,
                stderr_tail=result.stderr_tail,
                elapsed_ms=_elapsed(start),
                error=f"{cmd[0]}: {reason}",
            )

    if strategy.path_entry:
        search_path.prepend(strategy.path_entry)
    refresh_search_path(environment, search_path)

    failure = verify(tool, environment, runner, search_path)
    if failure:
        logger.warning(
            "%s: %s installed via %s but probe failed: %s",
            ErrorKind.VERIFICATION_FAILED.value, tool.name, strategy.label, failure,
        )
        return InstallAttempt(
            **attempt,
            outcome=AttemptOutcome.FAILED,
            elapsed_ms=_elapsed(start),
            error=failure,
            error_kind=ErrorKind.VERIFICATION_FAILED,
        )

    logger.info("%s installed via %s", tool.name, strategy.label)
    return InstallAttempt(
        **attempt,
        outcome=AttemptOutcome.SUCCEEDED,
        elapsed_ms=_elapsed(start),
    )


def skipped(strategy: Strategy, reason: str) -> InstallAttempt:
    """Attempt record for a strategy whose precondition did not hold."""
    return InstallAttempt(
        strategy=strategy.label,
        method=strategy.method,
        outcome=AttemptOutcome.SKIPPED_PRECONDITION,
        error=reason,
    )


def _elapsed(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
