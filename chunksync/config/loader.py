# chunksync/config/loader.py
"""
Layered configuration loading.

Merge order:
    1. Package defaults (chunksync/config/defaults.yaml) - always loaded
    2. User config file (optional) - overrides defaults
    3. Environment variables - override both

Environment overrides:
    CHUNKSYNC_SYNC_URL      full backend API root
    INDEXING_SERVICE_URL    backend origin; "/api/indexing" is appended
    CHUNKSYNC_SYNC_TOKEN    bearer token for the backend
    CHUNKSYNC_LOG_LEVEL     level for the chunksync logger

Usage:
    from chunksync.config.loader import load_config

    config = load_config()                      # defaults + env
    config = load_config("chunksync.yaml")      # defaults + file + env
    config.embedding.batch_size                 # always exists
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from chunksync.config.schema import ChunksyncConfig
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import CONFIG

logger = get_logger(__name__)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

INDEXING_API_PREFIX = "/api/indexing"


# =============================================================================
# Errors
# =============================================================================


class ConfigError(Exception):
    """Base error for configuration issues."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} (file: {path})"
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """Raised when a config file doesn't exist."""

    pass


class ConfigParseError(ConfigError):
    """Raised when YAML parsing fails."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when config doesn't match the schema."""

    pass


# =============================================================================
# Helpers
# =============================================================================


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from `override` take precedence. Nested dicts are merged
    recursively; lists are replaced entirely.

    Examples:
        >>> deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"c": 10}})
        {'a': 1, 'b': {'c': 10, 'd': 3}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML mapping from disk.

    Raises:
        ConfigNotFoundError: If the file doesn't exist
        ConfigParseError: If the YAML is invalid or not a mapping
    """
    p = Path(path)

    if not p.exists():
        raise ConfigNotFoundError("Config file not found", path=p)

    if p.is_dir():
        raise ConfigError("Config path is a directory, not a file", path=p)

    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML syntax: {e}", path=p) from e

    if not isinstance(data, dict):
        raise ConfigParseError("Config root must be a mapping (dict)", path=p)

    logger.debug(f"{CONFIG} Loaded config from {p}")
    return data


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect config overrides from environment variables."""
    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}

    origin = env.get("INDEXING_SERVICE_URL")
    if origin:
        overrides.setdefault("sync", {})["base_url"] = origin.rstrip("/") + INDEXING_API_PREFIX

    sync_url = env.get("CHUNKSYNC_SYNC_URL")
    if sync_url:
        overrides.setdefault("sync", {})["base_url"] = sync_url

    token = env.get("CHUNKSYNC_SYNC_TOKEN")
    if token:
        overrides.setdefault("sync", {})["token"] = token

    level = env.get("CHUNKSYNC_LOG_LEVEL")
    if level:
        overrides["log_level"] = level.upper()

    return overrides


# =============================================================================
# Loading
# =============================================================================


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ChunksyncConfig:
    """
    Load the complete, validated configuration.

    Args:
        path: Optional user YAML file overriding the package defaults
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: If the user file is missing, unparsable or invalid
    """
    data = load_yaml(DEFAULTS_PATH)

    if path is not None:
        data = deep_merge(data, load_yaml(path))
        logger.debug(f"{CONFIG} Merged user config from {path}")

    data = deep_merge(data, env_overrides(environ))

    try:
        return ChunksyncConfig.model_validate(data)
    except ValidationError as e:
        source = Path(path) if path is not None else None
        raise ConfigValidationError(f"Invalid configuration: {e}", path=source) from e


__all__ = [
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "deep_merge",
    "load_yaml",
    "env_overrides",
    "load_config",
]
