"""
Configuration loader — reads provisioner.yml into ProvisionerConfig.

YAML is optional: with no file the defaults install everything.
A file that exists but does not validate stops the run before any
command is executed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from provisioner.core.models.config import ProvisionerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "provisioner.yml"
USER_CONFIG_DIR = Path(".config") / "devtools-provisioner"


class ConfigError(Exception):
    """Raised when provisioner configuration is invalid."""


def find_config_file(start_dir: Path | None = None, home: Path | None = None) -> Path | None:
    """Locate a config file: ``./provisioner.yml`` walking up, then the user dir.

    Returns:
        Path to the config file, or None if there is none.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    user_file = (home or Path.home()) / USER_CONFIG_DIR / "config.yml"
    if user_file.is_file():
        return user_file
    return None


def load_config(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ProvisionerConfig:
    """Load and validate provisioner configuration.

    Args:
        path: Explicit config path. If None, searches for one; defaults
            are used when nothing is found.
        overrides: Values that win over the file (CLI flags).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    data: dict[str, Any] = {}

    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    source = path or find_config_file()
    if source is not None:
        data = _read_yaml(source)

    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value

    try:
        config = ProvisionerConfig.model_validate(data)
    except ValidationError as e:
        where = f" in {source}" if source else ""
        raise ConfigError(f"Invalid provisioner configuration{where}: {e}") from e

    logger.debug("Enabled tools: %s", ", ".join(config.enabled_tools()))
    return config


def _read_yaml(path: Path) -> dict[str, Any]:
    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Accept either a flat mapping or one nested under "provisioner"
    if isinstance(data.get("provisioner"), dict):
        data = data["provisioner"]
    return dict(data)
