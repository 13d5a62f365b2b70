"""
L4 Execution — Retry around the strategy executor.

Network-bound strategies get the network retry budget; everything
else runs once, and a failure sends the orchestrator to the next
strategy instead.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from provisioner.adapters.base import CommandExecutor
from provisioner.core.models.environment import Environment
from provisioner.core.models.result import InstallAttempt
from provisioner.core.models.tool import Strategy, ToolSpec
from provisioner.core.reliability.retry_policy import NETWORK_RETRY, NO_RETRY, RetryPolicy
from provisioner.core.services.tool_install.execution.installer import execute
from provisioner.core.services.tool_install.execution.search_path import SearchPath

logger = logging.getLogger(__name__)


def policy_for(strategy: Strategy) -> RetryPolicy:
    return NETWORK_RETRY if strategy.network else NO_RETRY


def run_with_retry(
    strategy: Strategy,
    tool: ToolSpec,
    environment: Environment,
    *,
    runner: CommandExecutor,
    search_path: SearchPath,
    capture: bool = True,
    sleep: Callable[[float], None] = time.sleep,
    policy: RetryPolicy | None = None,
) -> list[InstallAttempt]:
    """Execute ``strategy`` until it succeeds or the policy is spent.

    Returns:
        Every attempt made, in order. The last one tells whether the
        strategy ultimately succeeded.
    """
    policy = policy or policy_for(strategy)
    attempts: list[InstallAttempt] = []

    for number in range(1, policy.max_attempts + 1):
        delay = policy.delay_before(number)
        if delay:
            logger.info(
                "Retrying %s via %s in %.0fs (attempt %d/%d)",
                tool.name, strategy.label, delay, number, policy.max_attempts,
            )
            sleep(delay)

        attempt = execute(
            strategy, tool, environment,
            runner=runner,
            search_path=search_path,
            capture=capture,
            retry_index=number - 1,
        )
        attempts.append(attempt)
        if attempt.succeeded:
            break

    return attempts
