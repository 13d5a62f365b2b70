"""
Tests for command executors — the mock runner and the subprocess runner.
"""

import os
import sys
from unittest.mock import patch

import pytest

from provisioner.adapters.mock import MockCommandRunner
from provisioner.adapters.shell.command import CommandRunner
from provisioner.core.models.command import CommandResult

# ── Mock Runner Tests ────────────────────────────────────────────────


class TestMockCommandRunner:
    def test_default_success(self):
        mock = MockCommandRunner()
        result = mock.run(["git", "--version"], timeout=5)
        assert result.ok
        assert result.argv == ["git", "--version"]
        assert mock.call_count == 1

    def test_prefix_response(self):
        mock = MockCommandRunner()
        mock.set_response(["git"], CommandResult.success("git version 2.43.0"))
        assert mock.run(["git", "--version"], timeout=5).stdout == "git version 2.43.0"
        assert mock.run(["npm", "-v"], timeout=5).stdout == ""

    def test_set_failure(self):
        mock = MockCommandRunner()
        mock.set_failure(["npm", "install"], stderr="EACCES")
        result = mock.run(["npm", "install", "-g", "x"], timeout=5)
        assert not result.ok
        assert "EACCES" in result.stderr

    def test_sequence_then_repeat_last(self):
        mock = MockCommandRunner()
        mock.set_response(["curl"], [CommandResult.failure(), CommandResult.success()])
        assert not mock.run(["curl", "a"], timeout=5).ok
        assert mock.run(["curl", "a"], timeout=5).ok
        assert mock.run(["curl", "a"], timeout=5).ok

    def test_newest_registration_wins(self):
        mock = MockCommandRunner()
        mock.set_failure(["npm"])
        mock.set_response(["npm", "install", "-g", "--prefix"], CommandResult.success())
        assert not mock.run(["npm", "install", "-g", "x"], timeout=5).ok
        assert mock.run(["npm", "install", "-g", "--prefix", "/p", "x"], timeout=5).ok

    def test_effect_runs_on_match(self):
        seen = []
        mock = MockCommandRunner()
        mock.set_response(["brew"], CommandResult.success(), effect=seen.append)
        mock.run(["brew", "install", "git"], timeout=5)
        assert seen == [["brew", "install", "git"]]

    def test_call_log_and_reset(self):
        mock = MockCommandRunner()
        mock.run(["a"], timeout=1, capture=False, env={"PATH": "/x"})
        assert mock.call_log[0].capture is False
        assert mock.call_log[0].env == {"PATH": "/x"}
        assert len(mock.calls_matching(["a"])) == 1
        mock.reset()
        assert mock.call_count == 0


# ── Subprocess Runner Tests ──────────────────────────────────────────


class TestCommandRunner:
    def test_name(self):
        assert CommandRunner().name == "shell"

    def test_missing_binary_is_result_not_exception(self):
        with patch("shutil.which", return_value=None):
            result = CommandRunner().run(["definitely-not-here"], timeout=5)
        assert not result.ok
        assert result.returncode == 127
        assert "command not found" in result.error

    def test_empty_command(self):
        result = CommandRunner().run([], timeout=5)
        assert not result.ok

    def test_success_captures_stdout(self):
        result = CommandRunner().run([sys.executable, "-c", "print('hello')"], timeout=30)
        assert result.ok
        assert result.stdout.strip() == "hello"

    def test_nonzero_exit_with_empty_stderr(self):
        result = CommandRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"], timeout=30)
        assert not result.ok
        assert result.returncode == 3
        assert result.stderr == ""

    def test_stderr_captured(self):
        code = "import sys; sys.stderr.write('boom\\n'); sys.exit(1)"
        result = CommandRunner().run([sys.executable, "-c", code], timeout=30)
        assert "boom" in result.stderr_tail

    def test_timeout(self):
        result = CommandRunner().run(
            [sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.5,
        )
        assert result.timed_out
        assert not result.ok
        assert result.returncode is None

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    def test_signal_termination(self):
        code = "import os, signal; os.kill(os.getpid(), signal.SIGKILL)"
        result = CommandRunner().run([sys.executable, "-c", code], timeout=30)
        assert result.signaled
        assert not result.timed_out

    def test_env_path_used_for_lookup(self, tmp_path):
        result = CommandRunner().run(
            ["python-that-does-not-exist"], timeout=5, env={"PATH": str(tmp_path)},
        )
        assert result.returncode == 127

    def test_env_passed_to_child(self):
        env = dict(os.environ, PROVISIONER_TEST_VAR="42")
        code = "import os; print(os.environ['PROVISIONER_TEST_VAR'])"
        result = CommandRunner().run([sys.executable, "-c", code], timeout=30, env=env)
        assert result.stdout.strip() == "42"
