"""
L5 Orchestration — Provisioning runs.

The orchestrator owns one run: it detects the host once, walks the
enabled tools in install order (git first), drives each one through
resolve → retry(execute) → persist, and folds the outcomes into a
ProvisionSummary. Only a required tool running out of strategies
stops the run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, MutableMapping
from pathlib import Path

from provisioner.adapters.base import CommandExecutor
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.errors import StrategyExhausted
from provisioner.core.models.command import CommandResult
from provisioner.core.models.config import ProvisionerConfig
from provisioner.core.models.diagnostics import DiagnosticReport, RepairFix, ToolStatusEntry
from provisioner.core.models.environment import Environment
from provisioner.core.models.result import ProvisionSummary, ToolInstallResult, ToolStatus
from provisioner.core.models.tool import ToolSpec
from provisioner.core.services.tool_install.data.tool_specs import TOOL_SPECS
from provisioner.core.services.tool_install.detection.environment import detect
from provisioner.core.services.tool_install.execution.config import render_path
from provisioner.core.services.tool_install.execution.config_repair import check_and_fix
from provisioner.core.services.tool_install.execution.git_setup import (
    configure_git,
    configure_git_bash_env,
    execute_with_git_bash,
    is_git_configured,
)
from provisioner.core.services.tool_install.execution.installer import skipped
from provisioner.core.services.tool_install.execution.path_persistence import persist
from provisioner.core.services.tool_install.execution.retry_controller import run_with_retry
from provisioner.core.services.tool_install.execution.search_path import SearchPath
from provisioner.core.services.tool_install.resolver.strategy_resolution import (
    check_precondition,
    resolve,
)

logger = logging.getLogger(__name__)


class ProvisionOrchestrator:
    """Provision, diagnose and repair the tool chain on one host.

    Every collaborator can be injected; the defaults talk to the real
    system (subprocess, ``os.environ``, ``time.sleep``).
    """

    def __init__(
        self,
        config: ProvisionerConfig | None = None,
        *,
        runner: CommandExecutor | None = None,
        environment: Environment | None = None,
        search_path: SearchPath | None = None,
        catalog: Mapping[str, ToolSpec] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        environ: MutableMapping[str, str] | None = None,
        home: Path | None = None,
    ):
        self.config = config or ProvisionerConfig()
        self.runner = runner or CommandRunner()
        self.environment = environment or detect(self.runner)
        self.search_path = search_path or SearchPath()
        self.catalog = TOOL_SPECS if catalog is None else catalog
        self.sleep = sleep
        self.environ = environ
        self.home = home or Path(self.environment.home).expanduser()

    # ── Helpers ─────────────────────────────────────────────────

    def _spec(self, tool: ToolSpec | str) -> ToolSpec:
        if isinstance(tool, ToolSpec):
            return tool
        return self.catalog[tool]

    def locate(self, tool: ToolSpec | str) -> str | None:
        """Where ``tool`` is right now, or None when it is absent."""
        spec = self._spec(tool)
        if spec.executable:
            return self.search_path.which(spec.executable)
        if spec.presence_path:
            marker = render_path(spec.presence_path, self.environment)
            return str(marker) if marker.exists() else None
        return None

    @property
    def capture(self) -> bool:
        """Capture installer output in silent mode, stream it otherwise."""
        return self.config.silent

    # ── Single tool ─────────────────────────────────────────────

    def install_tool(self, tool: ToolSpec | str) -> ToolInstallResult:
        """Make ``tool`` usable, or record why it could not be."""
        spec = self._spec(tool)
        result = ToolInstallResult(tool=spec.name)

        location = self.locate(spec)
        if location is not None:
            result.status = ToolStatus.ALREADY_PRESENT
            result.executable_path = location
            logger.info("%s already present at %s", spec.name, location)
            return result

        if not self.config.auto_install:
            result.status = ToolStatus.FAILED
            result.message = self._container_hint(
                spec, f"{spec.display_name} is not installed and auto-install is disabled",
            )
            return result

        strategies = resolve(spec, self.environment, self.search_path)
        if not strategies:
            result.status = ToolStatus.SKIPPED_UNSUPPORTED_PLATFORM
            result.message = self._unsupported_message(spec)
            return result

        for strategy in strategies:
            reason = check_precondition(strategy, self.environment, self.search_path.exists)
            if reason:
                logger.debug("Skipping %s for %s: %s", strategy.label, spec.name, reason)
                result.record(skipped(strategy, reason))
                continue

            for attempt in run_with_retry(
                strategy, spec, self.environment,
                runner=self.runner,
                search_path=self.search_path,
                capture=self.capture,
                sleep=self.sleep,
            ):
                result.record(attempt)

            if result.attempts[-1].succeeded:
                result.mark_installed(self.locate(spec))
                if strategy.mutates_path and not self.persist(strategy.path_entry):
                    result.warnings.append(
                        f"Could not persist {strategy.path_entry} to PATH; "
                        "add it to your shell profile manually"
                    )
                return result

        if not result.executed_attempts:
            result.status = ToolStatus.SKIPPED_UNSUPPORTED_PLATFORM
            result.message = self._unsupported_message(spec)
        else:
            result.status = ToolStatus.FAILED
            result.message = f"All strategies failed for {spec.display_name}"
            if spec.manual_hint:
                result.message += f". Install manually: {spec.manual_hint}"
            result.message = self._container_hint(spec, result.message)
            logger.warning(result.message)
        return result

    def _unsupported_message(self, spec: ToolSpec) -> str:
        os_family, arch = self.environment.platform_key
        message = f"{spec.display_name} cannot be installed on {os_family}/{arch}"
        if spec.manual_hint and not spec.is_unsupported_on(os_family, arch):
            message += f". Install manually: {spec.manual_hint}"
        return self._container_hint(spec, message)

    def _container_hint(self, spec: ToolSpec, message: str) -> str:
        if self.environment.is_container and spec.container_hint:
            return f"{message}. Note: {spec.container_hint}"
        return message

    # ── Full run ────────────────────────────────────────────────

    def install_all(self) -> ProvisionSummary:
        """Provision every enabled tool in install order.

        Raises:
            StrategyExhausted: A required tool failed. The partial
                summary is attached to the exception.
        """
        return self.install_selected(self.config.enabled_tools())

    def install_selected(self, names: list[str]) -> ProvisionSummary:
        """Provision ``names`` in catalog order, git first when listed."""
        order = list(self.catalog)
        names = sorted(set(names), key=lambda n: order.index(n) if n in order else len(order))
        summary = ProvisionSummary(environment=self.environment)

        for name in names:
            spec = self.catalog.get(name)
            if spec is None:
                continue

            self._prepare_dependencies(spec, summary)
            result = self.install_tool(spec)
            summary.results.append(result)

            if spec.required and result.status == ToolStatus.FAILED:
                raise StrategyExhausted(result, summary)

            if spec.name == "git" and result.ok:
                self._after_git(summary)

        return summary

    def _prepare_dependencies(self, spec: ToolSpec, summary: ProvisionSummary) -> None:
        """Check what ``spec`` builds on before installing it."""
        for dep_name in spec.depends_on:
            dep = self.catalog.get(dep_name)
            if dep is None:
                continue
            if self.locate(dep) is None:
                summary.warnings.append(
                    f"{spec.display_name} depends on {dep.display_name}, which is not installed"
                )
            if dep.config_file:
                path = render_path(dep.config_file, self.environment)
                _state, backup = check_and_fix(path)
                if backup is not None:
                    summary.warnings.append(f"Reset corrupted {path} (backup: {backup})")

    def _after_git(self, summary: ProvisionSummary) -> None:
        settings = self.config.git
        if self.config.configure_git:
            explicit = settings.user_name or settings.user_email
            if explicit or not is_git_configured(self.runner, self.search_path):
                configure_git(settings, self.environment, self.runner, self.search_path)

        if self.config.configure_git_bash:
            summary.git_bash_path = configure_git_bash_env(
                self.environment, self.search_path, self.environ,
            )

    # ── Facades ─────────────────────────────────────────────────

    def persist(self, entry: str) -> bool:
        """Durably add ``entry`` to PATH (and to this run's PATH)."""
        return persist(entry, self.environment, search_path=self.search_path, home=self.home)

    def run_in_git_bash(self, command: str) -> CommandResult:
        """Run a shell command line through Git Bash (or the system shell off Windows)."""
        return execute_with_git_bash(
            command, self.environment, self.runner, self.search_path,
            environ=self.environ,
        )

    def diagnose(self) -> DiagnosticReport:
        from provisioner.core.services import diagnostics

        return diagnostics.diagnose(
            self.environment,
            runner=self.runner,
            search_path=self.search_path,
            config=self.config,
            catalog=self.catalog,
        )

    def repair(self) -> list[RepairFix]:
        from provisioner.core.services import diagnostics

        return diagnostics.repair(
            self.environment,
            search_path=self.search_path,
            catalog=self.catalog,
            home=self.home,
            environ=self.environ,
        )

    def status(self) -> list[ToolStatusEntry]:
        from provisioner.core.services import diagnostics

        return diagnostics.collect_status(
            self.environment,
            runner=self.runner,
            search_path=self.search_path,
            catalog=self.catalog,
        )
