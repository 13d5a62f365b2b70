"""
Repair controller — bounded, idempotent fixes from live state.

Each action looks at the system itself (never at an old report),
then either applies one complete change or skips because there is
nothing to do. Running ``repair`` twice in a row applies nothing the
second time.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from pathlib import Path

from provisioner.core.models.diagnostics import FixStatus, RepairFix
from provisioner.core.models.environment import Environment, OSFamily
from provisioner.core.models.tool import ToolSpec
from provisioner.core.services.tool_install.data.tool_specs import TOOL_SPECS
from provisioner.core.services.tool_install.execution.config import render_path
from provisioner.core.services.tool_install.execution.config_repair import (
    ConfigState,
    inspect_config,
    reset_config,
)
from provisioner.core.services.tool_install.execution.git_setup import configure_git_bash_env
from provisioner.core.services.tool_install.execution.installer import (
    canonical_bin_dirs,
    refresh_search_path,
)
from provisioner.core.services.tool_install.execution.path_persistence import (
    PersistOutcome,
    persist_path_entry,
)
from provisioner.core.services.tool_install.execution.search_path import SearchPath

logger = logging.getLogger(__name__)


def _refresh_path(
    environment: Environment,
    search_path: SearchPath,
    environ: MutableMapping[str, str] | None,
) -> RepairFix:
    added = refresh_search_path(environment, search_path)
    if not added:
        return RepairFix(action="refresh_path", status=FixStatus.SKIPPED, detail="PATH already complete")
    search_path.export(environ)
    return RepairFix(action="refresh_path", status=FixStatus.APPLIED, detail=", ".join(added))


def _persist_dirs(environment: Environment, home: Path | None) -> list[RepairFix]:
    fixes: list[RepairFix] = []
    for directory in canonical_bin_dirs(environment):
        if not Path(directory).is_dir():
            continue
        outcome = persist_path_entry(directory, environment, home=home)
        status = {
            PersistOutcome.WRITTEN: FixStatus.APPLIED,
            PersistOutcome.ALREADY_PRESENT: FixStatus.SKIPPED,
            PersistOutcome.FAILED: FixStatus.FAILED,
        }[outcome]
        fixes.append(RepairFix(action="persist_path", status=status, detail=directory))
    return fixes


def _reset_configs(environment: Environment, catalog: Mapping[str, ToolSpec]) -> list[RepairFix]:
    fixes: list[RepairFix] = []
    for tool in catalog.values():
        if not tool.config_file:
            continue
        path = render_path(tool.config_file, environment)
        state, _detail = inspect_config(path)
        if state != ConfigState.CORRUPTED:
            fixes.append(RepairFix(action="reset_config", status=FixStatus.SKIPPED, detail=f"{path} ({state.value})"))
            continue
        try:
            backup = reset_config(path)
        except OSError as e:
            logger.warning("Could not reset %s: %s", path, e)
            fixes.append(RepairFix(action="reset_config", status=FixStatus.FAILED, detail=f"{path}: {e}"))
            continue
        fixes.append(RepairFix(action="reset_config", status=FixStatus.APPLIED, detail=f"{path} (backup: {backup})"))
    return fixes


def _git_bash(
    environment: Environment,
    search_path: SearchPath,
    environ: MutableMapping[str, str] | None,
) -> RepairFix:
    bash = configure_git_bash_env(environment, search_path, environ)
    if bash is None:
        return RepairFix(action="git_bash_env", status=FixStatus.SKIPPED, detail="Git Bash not found")
    return RepairFix(action="git_bash_env", status=FixStatus.APPLIED, detail=bash)


def repair(
    environment: Environment,
    *,
    search_path: SearchPath,
    catalog: Mapping[str, ToolSpec] | None = None,
    home: Path | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> list[RepairFix]:
    """Apply every fix that the current system state calls for.

    Args:
        environ: Process environment to export PATH and Git Bash
            variables into (default: ``os.environ``).
    """
    catalog = TOOL_SPECS if catalog is None else catalog

    fixes = [_refresh_path(environment, search_path, environ)]
    fixes.extend(_persist_dirs(environment, home))
    fixes.extend(_reset_configs(environment, catalog))
    if environment.os_family == OSFamily.WINDOWS:
        fixes.append(_git_bash(environment, search_path, environ))

    applied = sum(1 for f in fixes if f.applied)
    logger.info("Repair: %d fix(es) applied, %d considered", applied, len(fixes))
    return fixes
