"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from provisioner.adapters.mock import MockCommandRunner
from provisioner.core.models.environment import Arch, Environment, OSFamily
from provisioner.core.services.tool_install.execution.search_path import SearchPath


@pytest.fixture
def installed() -> dict[str, str]:
    """Executables the fake PATH lookup resolves: name → location."""
    return {}


@pytest.fixture
def fake_which(installed: dict[str, str]):
    """Patch ``shutil.which`` to answer from ``installed``."""
    def _which(name: str, mode: int = 0, path: str | None = None) -> str | None:
        return installed.get(name)

    with patch("shutil.which", side_effect=_which) as mock:
        yield mock


@pytest.fixture
def runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A throwaway home directory."""
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def make_env(home: Path) -> Callable[..., Environment]:
    """Factory for Environment snapshots rooted at the temp home."""
    def _make(**overrides: Any) -> Environment:
        values: dict[str, Any] = {
            "os_family": OSFamily.LINUX,
            "arch": Arch.X64,
            "is_container": False,
            "has_elevated_privilege": False,
            "runs_as_root": False,
            "home": str(home),
            "shell": "/bin/bash",
            "tmp": str(home.parent / "tmp"),
            "system": "Linux",
            "machine": "x86_64",
        }
        values.update(overrides)
        return Environment(**values)

    return _make


@pytest.fixture
def search_path() -> SearchPath:
    return SearchPath(value="/usr/bin:/bin", environ={"PATH": "/usr/bin:/bin"}, sep=":")
