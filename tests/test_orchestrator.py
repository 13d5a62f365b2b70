"""
Tests for ProvisionOrchestrator — full provisioning runs against a
mock runner and a fake PATH.
"""

import json
from unittest.mock import patch

import pytest

from provisioner.core.errors import ErrorKind, StrategyExhausted
from provisioner.core.models.command import CommandResult
from provisioner.core.models.config import GitSettings, ProvisionerConfig
from provisioner.core.models.environment import Arch, OSFamily
from provisioner.core.models.result import AttemptOutcome, ToolStatus
from provisioner.core.models.tool import Strategy, ToolSpec
from provisioner.core.services.tool_install.orchestration.orchestrator import ProvisionOrchestrator

GIT_SETUP = "provisioner.core.services.tool_install.execution.git_setup"

NOTHING_OPTIONAL = dict(
    install_opencode=False,
    install_bun=False,
    install_oh_my_opencode=False,
    install_codebuddy=False,
    install_iflow=False,
    install_qoder=False,
    install_qwen=False,
)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_orch(fake_which, runner, make_env, search_path, home, sleeps):
    """Factory for orchestrators wired to the test doubles."""
    def _make(config=None, environ=None, **env_overrides):
        return ProvisionOrchestrator(
            config or ProvisionerConfig(configure_git=False, configure_git_bash=False),
            runner=runner,
            environment=make_env(**env_overrides),
            search_path=search_path,
            sleep=sleeps.append,
            environ={} if environ is None else environ,
            home=home,
        )

    return _make


def _provides(installed, name, location=None):
    """Runner effect: the command makes ``name`` resolvable."""
    def _effect(argv):
        installed[name] = location or f"/usr/local/bin/{name}"
    return _effect


class TestInstallTool:
    def test_elevated_linux_installs_git_with_apt(self, make_orch, runner, installed):
        installed["apt-get"] = "/usr/bin/apt-get"
        runner.set_response(["apt-get", "install"], CommandResult.success(),
                            effect=_provides(installed, "git", "/usr/bin/git"))
        orch = make_orch(has_elevated_privilege=True, runs_as_root=True)

        result = orch.install_tool("git")

        assert result.status == ToolStatus.INSTALLED
        assert result.executable_path == "/usr/bin/git"
        assert [a.strategy for a in result.executed_attempts] == ["apt-get"]
        assert runner.commands[:2] == [
            ["apt-get", "update"],
            ["apt-get", "install", "-y", "git-all"],
        ]

    def test_windows_arm64_opencode_skipped(self, make_orch, runner, installed):
        installed["npm"] = "C:\\nodejs\\npm.cmd"
        orch = make_orch(os_family=OSFamily.WINDOWS, arch=Arch.ARM64)

        result = orch.install_tool("opencode")

        assert result.status == ToolStatus.SKIPPED_UNSUPPORTED_PLATFORM
        assert result.attempts == []
        assert runner.call_count == 0

    def test_already_present_runs_nothing(self, make_orch, runner, installed):
        installed["git"] = "/usr/bin/git"
        result = make_orch().install_tool("git")
        assert result.status == ToolStatus.ALREADY_PRESENT
        assert runner.call_count == 0

    def test_auto_install_off(self, make_orch, runner, installed):
        installed["npm"] = "/usr/bin/npm"
        orch = make_orch(ProvisionerConfig(auto_install=False))
        result = orch.install_tool("opencode")
        assert result.status == ToolStatus.FAILED
        assert result.attempts == []
        assert runner.call_count == 0

    def test_nothing_satisfiable_is_unsupported(self, make_orch, runner):
        result = make_orch().install_tool("qwen")
        assert result.status == ToolStatus.SKIPPED_UNSUPPORTED_PLATFORM
        assert "Install manually" in result.message
        assert runner.call_count == 0

    def test_optional_exhaustion_retries_each_network_strategy(
        self, make_orch, runner, installed, sleeps,
    ):
        installed["npm"] = "/usr/bin/npm"
        runner.set_failure(["npm"], stderr="npm ERR! network ETIMEDOUT")

        result = make_orch().install_tool("opencode")

        assert result.status == ToolStatus.FAILED
        assert len(result.executed_attempts) == 6
        assert [a.strategy for a in result.attempts] == ["npm-global"] * 3 + ["npm-user-prefix"] * 3
        assert all(a.outcome == AttemptOutcome.FAILED for a in result.attempts)
        assert sleeps == [1.0, 2.0, 1.0, 2.0]
        assert "npm install -g opencode-ai" in result.message

    def test_user_prefix_success_persists_path(self, make_orch, runner, installed, home, search_path):
        installed["npm"] = "/usr/bin/npm"
        runner.set_failure(["npm", "install", "-g", "opencode-ai"], stderr="EACCES")
        runner.set_response(
            ["npm", "install", "-g", "--prefix"], CommandResult.success(),
            effect=_provides(installed, "opencode", f"{home}/.npm-global/bin/opencode"),
        )

        result = make_orch().install_tool("opencode")

        entry = f"{home}/.npm-global/bin"
        assert result.status == ToolStatus.INSTALLED
        assert result.attempts[-1].strategy == "npm-user-prefix"
        assert search_path.contains(entry)
        assert entry in (home / ".bashrc").read_text()
        assert result.warnings == []

    def test_persist_failure_is_warning(self, make_orch, runner, installed, home):
        (home / ".bashrc").mkdir()
        installed["npm"] = "/usr/bin/npm"
        runner.set_failure(["npm", "install", "-g", "opencode-ai"])
        runner.set_response(["npm", "install", "-g", "--prefix"], CommandResult.success(),
                            effect=_provides(installed, "opencode"))

        result = make_orch().install_tool("opencode")

        assert result.status == ToolStatus.INSTALLED
        assert len(result.warnings) == 1

    def test_probe_failure_is_retried_for_network_strategy(self, make_orch, runner, installed):
        installed["npm"] = "/usr/bin/npm"
        runner.set_response(["qwen", "--version"],
                            [CommandResult.failure(stderr="broken"), CommandResult.success("0.1.0")])
        result = make_orch().install_tool("qwen")
        assert result.status == ToolStatus.INSTALLED
        assert [a.strategy for a in result.attempts] == ["npm-global", "npm-global"]

    def test_probe_failure_moves_to_next_strategy(self, make_orch, runner, installed, sleeps):
        installed.update({"pm-a": "/usr/bin/pm-a", "pm-b": "/usr/bin/pm-b"})
        tool = ToolSpec(
            name="demo",
            executable="demo",
            version_command=("demo", "--version"),
            strategies=(
                Strategy(label="first", method="package-manager", requires=("pm-a",),
                         commands=(("pm-a", "install", "demo"),)),
                Strategy(label="second", method="package-manager", requires=("pm-b",),
                         commands=(("pm-b", "install", "demo"),)),
            ),
        )
        runner.set_response(["demo", "--version"],
                            [CommandResult.failure(stderr="broken"), CommandResult.success("1.0")])

        result = make_orch().install_tool(tool)

        assert result.status == ToolStatus.INSTALLED
        assert [a.strategy for a in result.attempts] == ["first", "second"]
        assert result.attempts[0].error_kind == ErrorKind.VERIFICATION_FAILED
        assert ["pm-b", "install", "demo"] in runner.commands
        assert sleeps == []


class TestRun:
    def test_required_failure_raises_with_summary(self, make_orch, runner, installed):
        installed["apt-get"] = "/usr/bin/apt-get"
        runner.set_failure(["apt-get"], stderr="E: Unable to locate package")
        orch = make_orch(
            ProvisionerConfig(**NOTHING_OPTIONAL),
            has_elevated_privilege=True, runs_as_root=True,
        )

        with pytest.raises(StrategyExhausted) as exc:
            orch.install_all()

        assert exc.value.result.tool == "git"
        assert exc.value.summary is not None
        assert exc.value.summary.get("git").status == ToolStatus.FAILED
        assert "apt-get" in str(exc.value)

    def test_unsupported_git_does_not_raise(self, make_orch):
        summary = make_orch(ProvisionerConfig(**NOTHING_OPTIONAL)).install_all()
        assert summary.get("git").status == ToolStatus.SKIPPED_UNSUPPORTED_PLATFORM

    def test_idempotent_second_run(self, make_orch, runner, installed):
        for name in ("git", "opencode", "bun", "bunx", "codebuddy", "iflow", "qodercli", "qwen"):
            installed[name] = f"/usr/bin/{name}"
        orch = make_orch(ProvisionerConfig(
            configure_git=False, configure_git_bash=False, install_oh_my_opencode=False,
        ))

        summary = orch.install_all()

        assert all(r.status == ToolStatus.ALREADY_PRESENT for r in summary.results)
        assert [r.tool for r in summary.results] == [
            "git", "opencode", "bun", "codebuddy", "iflow", "qoder", "qwen",
        ]
        assert runner.call_count == 0

    def test_optional_failure_continues(self, make_orch, runner, installed):
        installed.update(git="/usr/bin/git", npm="/usr/bin/npm")
        runner.set_failure(["npm"])
        runner.set_response(["npm", "install", "-g", "@qwen-code/qwen-code"], CommandResult.success(),
                            effect=_provides(installed, "qwen"))
        config = ProvisionerConfig(
            configure_git=False, configure_git_bash=False,
            **{**NOTHING_OPTIONAL, "install_codebuddy": True, "install_qwen": True},
        )

        summary = make_orch(config).install_all()

        assert summary.get("codebuddy").status == ToolStatus.FAILED
        assert summary.get("qwen").status == ToolStatus.INSTALLED
        assert not summary.ok

    def test_install_selected_uses_catalog_order(self, make_orch, installed):
        installed.update(git="/usr/bin/git", qwen="/usr/bin/qwen", bun="/usr/bin/bun", bunx="/b")
        summary = make_orch().install_selected(["qwen", "bun", "git", "nope"])
        assert [r.tool for r in summary.results] == ["git", "bun", "qwen"]

    def test_dependency_config_reset_before_plugin(self, make_orch, runner, installed, home):
        config_dir = home / ".config" / "opencode"
        config_dir.mkdir(parents=True)
        (config_dir / "opencode.json").write_text("{ oops")
        installed.update(bun="/usr/bin/bun", bunx="/usr/bin/bunx", opencode="/usr/bin/opencode")
        runner.set_response(["bunx"], CommandResult.success(),
                            effect=lambda argv: (home / ".opencode").mkdir())

        summary = make_orch().install_selected(["oh-my-opencode"])

        assert summary.get("oh-my-opencode").status == ToolStatus.INSTALLED
        assert json.loads((config_dir / "opencode.json").read_text()) == {}
        assert any("Reset corrupted" in w for w in summary.warnings)
        assert runner.commands[0][:2] == ["bunx", "oh-my-opencode"]

    def test_missing_dependency_warns(self, make_orch, installed):
        installed.update(bunx="/usr/bin/bunx")
        summary = make_orch().install_selected(["oh-my-opencode"])
        assert any("depends on OpenCode" in w for w in summary.warnings)


class TestAfterGit:
    def test_configures_identity_when_unset(self, make_orch, runner, installed):
        installed["git"] = "/usr/bin/git"
        orch = make_orch(ProvisionerConfig(configure_git_bash=False, **NOTHING_OPTIONAL))

        orch.install_all()

        sets = [c for c in runner.commands if len(c) == 5 and c[:3] == ["git", "config", "--global"]]
        assert [c[3] for c in sets] == ["user.name", "user.email", "init.defaultBranch"]
        assert sets[-1][4] == "main"

    def test_explicit_identity_wins(self, make_orch, runner, installed):
        installed["git"] = "/usr/bin/git"
        runner.set_response(["git", "config", "--global", "user.name"], CommandResult.success("Old"))
        runner.set_response(["git", "config", "--global", "user.email"], CommandResult.success("old@x"))
        config = ProvisionerConfig(
            configure_git_bash=False,
            git=GitSettings(user_name="Ada", user_email="ada@example.com"),
            **NOTHING_OPTIONAL,
        )

        make_orch(config).install_all()

        assert ["git", "config", "--global", "user.name", "Ada"] in runner.commands
        assert ["git", "config", "--global", "user.email", "ada@example.com"] in runner.commands

    def test_configured_identity_left_alone(self, make_orch, runner, installed):
        installed["git"] = "/usr/bin/git"
        runner.set_response(["git", "config", "--global", "user.name"], CommandResult.success("Old"))
        runner.set_response(["git", "config", "--global", "user.email"], CommandResult.success("old@x"))
        make_orch(ProvisionerConfig(configure_git_bash=False, **NOTHING_OPTIONAL)).install_all()
        assert all(len(c) < 5 for c in runner.commands)

    def test_git_bash_exported(self, make_orch, installed):
        installed["git"] = "/usr/bin/git"
        environ: dict[str, str] = {}
        summary = make_orch(ProvisionerConfig(configure_git=False, **NOTHING_OPTIONAL),
                            environ=environ).install_all()
        assert summary.git_bash_path == environ.get("GIT_BASH_PATH")


class TestContainer:
    def test_git_failure_in_container_suggests_dockerfile(self, make_orch, runner, installed):
        installed["apt-get"] = "/usr/bin/apt-get"
        runner.set_failure(["apt-get"], stderr="E: Unable to lock directory")
        orch = make_orch(
            ProvisionerConfig(**NOTHING_OPTIONAL),
            is_container=True, has_elevated_privilege=True, runs_as_root=True,
        )

        with pytest.raises(StrategyExhausted) as exc:
            orch.install_all()

        message = exc.value.result.message
        assert "Dockerfile" in message
        assert "RUN apk add --no-cache git" in message
        assert "RUN apt-get install -y git" in message

    def test_unsupported_git_in_container_suggests_dockerfile(self, make_orch):
        result = make_orch(is_container=True).install_tool("git")
        assert result.status == ToolStatus.SKIPPED_UNSUPPORTED_PLATFORM
        assert "Dockerfile" in result.message

    def test_no_hint_outside_container(self, make_orch):
        assert "Dockerfile" not in make_orch().install_tool("git").message

    def test_no_hint_for_other_tools(self, make_orch):
        assert "Dockerfile" not in make_orch(is_container=True).install_tool("qwen").message


class TestGitBash:
    def test_run_in_git_bash(self, make_orch, runner):
        runner.set_response(["/bin/bash"], CommandResult.success("ok\n"))
        orch = make_orch()
        with patch(f"{GIT_SETUP}.find_git_bash_path", return_value="/bin/bash"):
            result = orch.run_in_git_bash("git status")
        assert result.ok
        assert runner.commands == [["/bin/bash", "-c", "git status"]]
