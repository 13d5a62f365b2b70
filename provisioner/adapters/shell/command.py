"""
Shell command runner — execute external programs and capture output.

The only place in the package that calls subprocess. Programs are
resolved against the caller's PATH first, so a tool installed earlier
in the run is found without restarting the process.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence

from provisioner.adapters.base import CommandExecutor
from provisioner.core.models.command import CommandResult

logger = logging.getLogger(__name__)


class CommandRunner(CommandExecutor):
    """Run commands through ``subprocess.run`` without a shell."""

    @property
    def name(self) -> str:
        return "shell"

    def run(
        self,
        argv: Sequence[str],
        *,
        timeout: float,
        capture: bool = True,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv = list(argv)
        if not argv:
            return CommandResult(argv=argv, returncode=None, error="empty command")

        search = env.get("PATH") if env is not None else None
        resolved = shutil.which(argv[0], path=search)
        if resolved is None:
            logger.debug("Not found on PATH: %s", argv[0])
            return CommandResult.not_found(argv)

        logger.debug("Executing: %s (timeout=%ss)", " ".join(argv), timeout)
        start = time.monotonic()

        try:
            proc = subprocess.run(
                [resolved, *argv[1:]],
                capture_output=capture,
                text=True,
                timeout=timeout,
                env=dict(env) if env is not None else None,
                stdin=subprocess.DEVNULL,
            )
        except subprocess.TimeoutExpired as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.warning("Command timed out after %ss: %s", timeout, argv[0])
            stderr = e.stderr if isinstance(e.stderr, str) else ""
            return CommandResult.timeout(argv, elapsed_ms=elapsed_ms, stderr=stderr or "")
        except OSError as e:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.debug("Launch failed for %s: %s", argv[0], e)
            return CommandResult(
                argv=argv,
                returncode=None,
                error=f"failed to launch {argv[0]}: {e}",
                elapsed_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        result = CommandResult(
            argv=argv,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            elapsed_ms=elapsed_ms,
        )
        if not result.ok:
            logger.debug("Command failed (%s): %s", result.describe_failure(), argv[0])
        return result
