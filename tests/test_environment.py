"""
Tests for environment detection and command existence checks.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from provisioner.adapters.mock import MockCommandRunner
from provisioner.core.models.command import CommandResult
from provisioner.core.models.environment import Arch, OSFamily
from provisioner.core.services.tool_install.detection.command import (
    command_exists,
    resolve_command,
)
from provisioner.core.services.tool_install.detection.environment import (
    classify_arch,
    classify_os,
    detect,
    detect_container,
)


class TestClassification:
    @pytest.mark.parametrize("system, expected", [
        ("Linux", OSFamily.LINUX),
        ("Darwin", OSFamily.MACOS),
        ("Windows", OSFamily.WINDOWS),
        ("FreeBSD", OSFamily.UNKNOWN),
        ("", OSFamily.UNKNOWN),
    ])
    def test_os(self, system, expected):
        assert classify_os(system) == expected

    @pytest.mark.parametrize("machine, expected", [
        ("x86_64", Arch.X64),
        ("AMD64", Arch.X64),
        ("aarch64", Arch.ARM64),
        ("arm64", Arch.ARM64),
        ("ARM64", Arch.ARM64),
        ("riscv64", Arch.OTHER),
        ("", Arch.OTHER),
    ])
    def test_arch(self, machine, expected):
        assert classify_arch(machine) == expected


class TestContainer:
    def test_marker_file(self, tmp_path: Path):
        marker = tmp_path / ".dockerenv"
        marker.touch()
        assert detect_container(marker_files=(str(marker),), cgroup_files=())

    def test_cgroup_membership(self, tmp_path: Path):
        cgroup = tmp_path / "cgroup"
        cgroup.write_text("0::/kubepods/besteffort/pod123\n")
        assert detect_container(marker_files=(), cgroup_files=(str(cgroup),))

    def test_plain_host(self, tmp_path: Path):
        cgroup = tmp_path / "cgroup"
        cgroup.write_text("0::/user.slice/user-1000.slice\n")
        assert not detect_container(marker_files=(str(tmp_path / "nope"),), cgroup_files=(str(cgroup),))

    def test_unreadable_cgroup_means_not_container(self, tmp_path: Path):
        assert not detect_container(marker_files=(), cgroup_files=(str(tmp_path / "missing"),))


class TestDetect:
    def _detect(self, system: str, machine: str, runner: MockCommandRunner, euid: int = 1000):
        with patch("platform.system", return_value=system), \
             patch("platform.machine", return_value=machine), \
             patch.object(os, "geteuid", return_value=euid, create=True), \
             patch(
                 "provisioner.core.services.tool_install.detection.environment.detect_container",
                 return_value=False,
             ):
            return detect(runner=runner, environ={"HOME": "/home/u", "SHELL": "/bin/zsh"})

    def test_linux_with_passwordless_sudo(self):
        runner = MockCommandRunner()
        env = self._detect("Linux", "x86_64", runner)
        assert env.os_family == OSFamily.LINUX
        assert env.arch == Arch.X64
        assert env.has_elevated_privilege
        assert not env.runs_as_root
        assert runner.commands == [["sudo", "-n", "true"]]

    def test_sudo_missing_means_not_elevated(self):
        runner = MockCommandRunner(default=CommandResult.not_found(["sudo"]))
        env = self._detect("Linux", "aarch64", runner)
        assert not env.has_elevated_privilege
        assert env.arch == Arch.ARM64

    def test_root_needs_no_probe(self):
        runner = MockCommandRunner()
        env = self._detect("Linux", "x86_64", runner, euid=0)
        assert env.runs_as_root
        assert env.has_elevated_privilege
        assert runner.call_count == 0

    def test_windows_admin_probe(self):
        runner = MockCommandRunner()
        runner.set_failure(["net", "session"], stderr="Access is denied.")
        env = self._detect("Windows", "ARM64", runner)
        assert env.os_family == OSFamily.WINDOWS
        assert env.arch == Arch.ARM64
        assert not env.has_elevated_privilege
        assert runner.commands == [["net", "session"]]

    def test_unknown_degrades(self):
        env = self._detect("Plan9", "mips", MockCommandRunner(default=CommandResult.failure()))
        assert env.os_family == OSFamily.UNKNOWN
        assert env.arch == Arch.OTHER
        assert env.is_indeterminate

    def test_shell_captured(self):
        env = self._detect("Darwin", "arm64", MockCommandRunner())
        assert env.shell == "/bin/zsh"
        assert env.os_family == OSFamily.MACOS


class TestCommandExists:
    def test_found(self):
        with patch("shutil.which", return_value="/usr/bin/git"):
            assert command_exists("git")
            assert resolve_command("git") == "/usr/bin/git"

    def test_not_found(self):
        with patch("shutil.which", return_value=None):
            assert not command_exists("git")

    def test_lookup_error_is_false(self):
        with patch("shutil.which", side_effect=PermissionError("denied")):
            assert not command_exists("git")

    def test_empty_name(self):
        assert not command_exists("")

    def test_passes_search_path(self):
        with patch("shutil.which", return_value=None) as which:
            command_exists("git", "/opt/bin")
        which.assert_called_once_with("git", path="/opt/bin")
