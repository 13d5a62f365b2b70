"""
Diagnostics engine — re-derive system health from observable facts.

``diagnose`` runs a fixed checklist. Every check runs, none can
short-circuit another, and findings are only ever appended. Nothing
is cached: each call looks at the system as it is now.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from provisioner.adapters.base import CommandExecutor
from provisioner.core.errors import ErrorKind
from provisioner.core.models.config import ProvisionerConfig
from provisioner.core.models.diagnostics import DiagnosticReport, ToolProbe
from provisioner.core.models.environment import Environment
from provisioner.core.models.tool import ToolSpec
from provisioner.core.services.tool_install.data.tool_specs import TOOL_SPECS
from provisioner.core.services.tool_install.detection.tool_version import probe_version
from provisioner.core.services.tool_install.execution.config import render_path
from provisioner.core.services.tool_install.execution.config_repair import (
    ConfigState,
    inspect_config,
)
from provisioner.core.services.tool_install.execution.installer import canonical_bin_dirs
from provisioner.core.services.tool_install.execution.search_path import SearchPath

logger = logging.getLogger(__name__)


def probe_tool(
    tool: ToolSpec,
    environment: Environment,
    runner: CommandExecutor,
    search_path: SearchPath,
) -> ToolProbe:
    """Presence and version of ``tool`` right now."""
    if tool.executable:
        location = search_path.which(tool.executable)
        if location is None:
            return ToolProbe(installed=False)
        probe = ToolProbe(installed=True, path=location)
        if tool.version_command:
            result, version = probe_version(
                tool.version_command, runner, env=search_path.environ(),
            )
            probe.version = version
            if not result.ok:
                probe.probe_error = result.describe_failure()
        return probe

    if tool.presence_path:
        marker = render_path(tool.presence_path, environment)
        if marker.exists():
            return ToolProbe(installed=True, path=str(marker))
    return ToolProbe(installed=False)


# ── Checks ──────────────────────────────────────────────────────


def _check_environment(report: DiagnosticReport, environment: Environment) -> None:
    report.system = environment.to_dict()
    if environment.is_indeterminate:
        report.add_warning(
            "environment",
            f"Could not classify host (system={environment.system!r}, "
            f"machine={environment.machine!r})",
            code=ErrorKind.ENVIRONMENT_INDETERMINATE.value,
        )


def _check_tools(
    report: DiagnosticReport,
    environment: Environment,
    runner: CommandExecutor,
    search_path: SearchPath,
    catalog: Mapping[str, ToolSpec],
    config: ProvisionerConfig,
) -> None:
    for name, tool in catalog.items():
        probe = probe_tool(tool, environment, runner, search_path)
        report.tools[name] = probe

        if not probe.installed:
            if tool.required:
                report.add_issue("tools", f"{tool.display_name} is not installed", code="missing_required")
            elif config.is_enabled(name):
                report.add_warning("tools", f"{tool.display_name} is not installed", code="missing_optional")
            continue

        if probe.probe_error:
            report.add_warning(
                "tools",
                f"{tool.display_name} is installed but its version check failed: {probe.probe_error}",
                code="probe_failed",
            )

        for companion in tool.companions:
            location = search_path.which(companion)
            report.config.setdefault("companions", {})[companion] = location
            if location is None:
                report.add_issue(
                    "tools",
                    f"{companion} is not on PATH although {tool.display_name} is installed",
                    code="missing_companion",
                )


def _check_path(report: DiagnosticReport, environment: Environment, search_path: SearchPath) -> None:
    dirs = canonical_bin_dirs(environment)
    report.config["canonical_bin_dirs"] = dirs

    for directory in dirs:
        if Path(directory).is_dir() and not search_path.contains(directory):
            report.path_complete = False
            report.add_issue(
                "path",
                f"{directory} exists but is not on PATH",
                code="path_incomplete",
            )


def _check_configs(report: DiagnosticReport, environment: Environment, catalog: Mapping[str, ToolSpec]) -> None:
    files: dict[str, str] = {}
    for tool in catalog.values():
        if not tool.config_file:
            continue
        path = render_path(tool.config_file, environment)
        state, detail = inspect_config(path)
        files[str(path)] = state.value
        if state == ConfigState.CORRUPTED:
            report.config_valid = False
            report.add_issue(
                "config",
                f"{tool.display_name} config {path} is not valid JSON: {detail}",
                code=ErrorKind.CONFIG_CORRUPTED.value,
            )
    report.config["files"] = files


def _check_config_dirs(report: DiagnosticReport, environment: Environment, catalog: Mapping[str, ToolSpec]) -> None:
    seen: set[Path] = set()
    for tool in catalog.values():
        if not tool.config_file:
            continue
        directory = render_path(tool.config_file, environment).parent
        if directory in seen:
            continue
        seen.add(directory)
        if not is_writable_dir(directory):
            report.add_issue(
                "config_dir",
                f"Config directory {directory} is not writable",
                code="config_dir_not_writable",
            )


def _check_plugins(report: DiagnosticReport, environment: Environment, catalog: Mapping[str, ToolSpec]) -> None:
    plugins: dict[str, list[str]] = {}
    for name, tool in catalog.items():
        if tool.plugin_dir:
            plugins[name] = list_plugins(render_path(tool.plugin_dir, environment))
    report.config["plugins"] = plugins


def is_writable_dir(directory: Path) -> bool:
    """Writable if it exists, creatable if it does not."""
    current = directory
    while not current.exists():
        if current.parent == current:
            return False
        current = current.parent
    return current.is_dir() and os.access(current, os.W_OK | os.X_OK)


def list_plugins(plugin_dir: Path) -> list[str]:
    try:
        return sorted(p.name for p in plugin_dir.iterdir())
    except OSError:
        return []


# ── Entry point ─────────────────────────────────────────────────


def diagnose(
    environment: Environment,
    *,
    runner: CommandExecutor,
    search_path: SearchPath,
    config: ProvisionerConfig | None = None,
    catalog: Mapping[str, ToolSpec] | None = None,
) -> DiagnosticReport:
    """Run every check and return the report."""
    config = config or ProvisionerConfig()
    catalog = TOOL_SPECS if catalog is None else catalog
    report = DiagnosticReport()

    _check_environment(report, environment)
    _check_tools(report, environment, runner, search_path, catalog, config)
    _check_path(report, environment, search_path)
    _check_configs(report, environment, catalog)
    _check_config_dirs(report, environment, catalog)
    _check_plugins(report, environment, catalog)

    logger.info(
        "Diagnosis: %d issue(s), %d warning(s)", len(report.issues), len(report.warnings),
    )
    return report
