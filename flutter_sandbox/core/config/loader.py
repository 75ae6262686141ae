"""
Configuration loader — reads flutter-sandbox.yml into BootstrapConfig.

Sources, lowest to highest precedence:
    built-in defaults  <  flutter-sandbox.yml  <  environment  <  CLI options

The file is optional: a sandbox with no config file gets the defaults
(stable channel, latest version, ~/flutter_sdk, web + linux-desktop).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from flutter_sandbox.core.models.config import BootstrapConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "flutter-sandbox.yml"

# Upstream repository override, same variable the flutter tool honours.
REPO_ENV_VAR = "FLUTTER_GIT_URL"


class ConfigError(Exception):
    """Raised when bootstrap configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for flutter-sandbox.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a config file into a raw mapping.

    The YAML may wrap everything under a ``sandbox:`` key or be flat.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading bootstrap config from %s", path)

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

    if "sandbox" in data:
        section = data["sandbox"]
        if not isinstance(section, dict):
            raise ConfigError(f"Expected 'sandbox' to be a mapping in {path}")
        return dict(section)

    return data


def load_config(
    path: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    search: bool = True,
) -> BootstrapConfig:
    """Load and validate bootstrap configuration.

    Args:
        path: Explicit config file. If None and ``search`` is set, searches upward.
        overrides: Values from the command line; ``None`` values are ignored.
        environ: Environment to read overrides from (default: ``os.environ``).
        search: Whether to look for a config file when ``path`` is None.

    Returns:
        Validated, frozen BootstrapConfig.

    Raises:
        ConfigError: If the file is invalid or a value fails validation.
    """
    env = os.environ if environ is None else environ

    if path is None and search:
        path = find_config_file()

    data: dict[str, Any] = read_config_file(path) if path is not None else {}

    repo_override = env.get(REPO_ENV_VAR)
    if repo_override:
        logger.debug("Upstream repository overridden by %s", REPO_ENV_VAR)
        data["repository"] = repo_override

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        config = BootstrapConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid bootstrap configuration: {e}") from e

    if path is not None:
        logger.debug("Loaded config from %s", path)
    return config


def dump_config(config: BootstrapConfig) -> dict[str, Any]:
    """JSON/YAML-safe representation of a config."""
    return config.model_dump(mode="json")
