"""
Tests for tracked config inspection and reset.
"""

import json
from unittest.mock import patch

from provisioner.core.services.tool_install.execution.config_repair import (
    ConfigState,
    backup_path,
    check_and_fix,
    inspect_config,
)


class TestInspect:
    def test_missing(self, tmp_path):
        assert inspect_config(tmp_path / "none.json")[0] == ConfigState.MISSING

    def test_valid(self, tmp_path):
        p = tmp_path / "opencode.json"
        p.write_text('{"theme": "dark"}')
        assert inspect_config(p) == (ConfigState.VALID, "")

    def test_corrupted(self, tmp_path):
        p = tmp_path / "opencode.json"
        p.write_text("{ not json")
        state, detail = inspect_config(p)
        assert state == ConfigState.CORRUPTED
        assert detail


class TestBackupPath:
    def test_format(self, tmp_path):
        p = tmp_path / "opencode.json"
        assert backup_path(p, "20260101_120000").name == "opencode.json.backup.20260101_120000"

    def test_never_overwrites(self, tmp_path):
        p = tmp_path / "opencode.json"
        (tmp_path / "opencode.json.backup.20260101_120000").write_text("old")
        assert backup_path(p, "20260101_120000").name == "opencode.json.backup.20260101_120000.1"


class TestCheckAndFix:
    def test_resets_corrupt_file(self, tmp_path):
        p = tmp_path / "opencode.json"
        p.write_text("{ broken")
        state, backup = check_and_fix(p)

        assert state == ConfigState.CORRUPTED
        assert json.loads(p.read_text()) == {}
        assert backup is not None and backup.read_text() == "{ broken"
        assert backup.name.startswith("opencode.json.backup.")

    def test_valid_untouched(self, tmp_path):
        p = tmp_path / "opencode.json"
        p.write_text('{"a": 1}')
        assert check_and_fix(p) == (ConfigState.VALID, None)
        assert p.read_text() == '{"a": 1}'
        assert list(tmp_path.iterdir()) == [p]

    def test_missing_not_created(self, tmp_path):
        p = tmp_path / "opencode.json"
        assert check_and_fix(p) == (ConfigState.MISSING, None)
        assert not p.exists()

    def test_failed_backup_keeps_original(self, tmp_path):
        p = tmp_path / "opencode.json"
        p.write_text("{ broken")
        with patch("shutil.copy2", side_effect=OSError("disk full")):
            state, backup = check_and_fix(p)
        assert state == ConfigState.CORRUPTED
        assert backup is None
        assert p.read_text() == "{ broken"
