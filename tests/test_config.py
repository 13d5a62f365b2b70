"""
Tests for config loading and validation.
"""

import pytest

from provisioner.core.config.loader import ConfigError, find_config_file, load_config
from provisioner.core.models.config import ProvisionerConfig


class TestDefaults:
    def test_everything_enabled(self):
        config = ProvisionerConfig()
        assert config.auto_install
        assert config.enabled_tools() == [
            "git", "opencode", "bun", "oh-my-opencode", "codebuddy", "iflow", "qoder", "qwen",
        ]

    def test_git_always_enabled(self):
        config = ProvisionerConfig(install_opencode=False)
        assert config.is_enabled("git")
        assert not config.is_enabled("opencode")
        assert not config.is_enabled("unknown")


class TestLoadConfig:
    def test_explicit_file(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("silent: true\ninstall_qwen: false\ngit:\n  default_branch: trunk\n")
        config = load_config(path)
        assert config.silent
        assert not config.install_qwen
        assert config.git.default_branch == "trunk"

    def test_nested_under_provisioner_key(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("provisioner:\n  auto_install: false\n")
        assert load_config(path).auto_install is False

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("")
        assert load_config(path) == ProvisionerConfig()

    def test_overrides_win(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("install_bun: true\ngit:\n  user_name: File\n  user_email: f@x\n")
        config = load_config(path, overrides={"install_bun": False, "git": {"user_name": "Flag"}})
        assert config.install_bun is False
        assert config.git.user_name == "Flag"
        assert config.git.user_email == "f@x"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("install_emacs: true\n")
        with pytest.raises(ConfigError, match="install_emacs"):
            load_config(path)

    def test_wrong_type_rejected(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("silent: [1, 2]\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "provisioner.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)


class TestFindConfigFile:
    def test_walks_up(self, tmp_path):
        (tmp_path / "provisioner.yml").write_text("{}")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested, home=tmp_path / "home") == (tmp_path / "provisioner.yml").resolve()

    def test_user_config_dir(self, tmp_path):
        home = tmp_path / "home"
        user_file = home / ".config" / "devtools-provisioner" / "config.yml"
        user_file.parent.mkdir(parents=True)
        user_file.write_text("{}")
        work = tmp_path / "work"
        work.mkdir()
        assert find_config_file(work, home=home) == user_file
