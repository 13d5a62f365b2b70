"""
Status snapshot — what is installed, where, and at which version.

Cheaper than a diagnosis: no findings, just facts.
"""

from __future__ import annotations

from collections.abc import Mapping

from provisioner.adapters.base import CommandExecutor
from provisioner.core.models.diagnostics import ToolStatusEntry
from provisioner.core.models.environment import Environment
from provisioner.core.models.tool import ToolSpec
from provisioner.core.services.diagnostics.doctor import list_plugins, probe_tool
from provisioner.core.services.tool_install.data.tool_specs import TOOL_SPECS
from provisioner.core.services.tool_install.execution.config import render_path
from provisioner.core.services.tool_install.execution.search_path import SearchPath


def collect_status(
    environment: Environment,
    *,
    runner: CommandExecutor,
    search_path: SearchPath,
    catalog: Mapping[str, ToolSpec] | None = None,
) -> list[ToolStatusEntry]:
    catalog = TOOL_SPECS if catalog is None else catalog
    entries: list[ToolStatusEntry] = []
    for name, tool in catalog.items():
        probe = probe_tool(tool, environment, runner, search_path)
        entry = ToolStatusEntry(
            name=name,
            label=tool.display_name,
            installed=probe.installed,
            path=probe.path,
            version=probe.version,
        )
        if tool.plugin_dir and probe.installed:
            entry.plugins = list_plugins(render_path(tool.plugin_dir, environment))
        entries.append(entry)
    return entries
