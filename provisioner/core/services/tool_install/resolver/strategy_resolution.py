"""
L2 Resolver — Strategy selection and ordering.

Turns a ToolSpec's strategy templates into the concrete, ordered list
the installer will walk for this environment. Pure: the same tool,
environment and PATH always produce the same list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from provisioner.core.errors import ErrorKind
from provisioner.core.models.environment import Environment
from provisioner.core.models.tool import Strategy, ToolSpec
from provisioner.core.services.tool_install.detection.command import command_exists
from provisioner.core.services.tool_install.execution.config import render_strategy
from provisioner.core.services.tool_install.execution.search_path import SearchPath

logger = logging.getLogger(__name__)

Exists = Callable[[str], bool]


def _exists_for(search_path: SearchPath | None) -> Exists:
    if search_path is None:
        return command_exists
    return search_path.exists


def candidate_strategies(tool: ToolSpec, environment: Environment) -> list[Strategy]:
    """Strategies that apply to this OS and arch, rendered, in declared order."""
    os_family, arch = environment.platform_key
    return [
        render_strategy(s, environment)
        for s in tool.strategies
        if s.applies_to(os_family, arch)
    ]


def check_precondition(
    strategy: Strategy,
    environment: Environment,
    exists: Exists = command_exists,
) -> str | None:
    """Why ``strategy`` cannot run here, or None if it can."""
    if strategy.needs_elevation and not environment.has_elevated_privilege:
        return "requires elevated privileges"

    missing = [cmd for cmd in strategy.requires if not exists(cmd)]
    if missing:
        return f"not found: {', '.join(missing)}"

    if strategy.requires_any and not any(exists(cmd) for cmd in strategy.requires_any):
        return f"none of {', '.join(strategy.requires_any)} found"

    return None


def _elevation_rank(strategy: Strategy, environment: Environment) -> int:
    if strategy.needs_elevation and not environment.has_elevated_privilege:
        return 1
    return 0


def resolve(
    tool: ToolSpec,
    environment: Environment,
    search_path: SearchPath | None = None,
) -> list[Strategy]:
    """Ordered strategies to attempt for ``tool``.

    Ordering is a stable sort on (elevation rank, precondition cost):
    strategies usable without privileges come first when we lack them,
    then cheaper preconditions, ties keeping the declared order.

    Returns an empty list when the (os, arch) pair is declared
    unsupported, or when no candidate's precondition holds.
    """
    os_family, arch = environment.platform_key
    if tool.is_unsupported_on(os_family, arch):
        logger.info(
            "%s: %s is not supported on %s/%s",
            ErrorKind.PLATFORM_UNSUPPORTED.value, tool.name, os_family, arch,
        )
        return []

    candidates = candidate_strategies(tool, environment)
    exists = _exists_for(search_path)

    if not any(check_precondition(s, environment, exists) is None for s in candidates):
        logger.info(
            "%s: no usable strategy for %s on %s/%s (%d candidates)",
            ErrorKind.PLATFORM_UNSUPPORTED.value, tool.name, os_family, arch, len(candidates),
        )
        return []

    ranked = sorted(
        enumerate(candidates),
        key=lambda pair: (
            _elevation_rank(pair[1], environment),
            pair[1].precondition_cost,
            pair[0],
        ),
    )
    ordered = [s for _, s in ranked]
    logger.debug("Resolved %s: %s", tool.name, [s.label for s in ordered])
    return ordered
