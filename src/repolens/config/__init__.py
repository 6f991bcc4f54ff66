"""Repolens configuration.

This module provides the public API for engine configuration: loading,
validation, typed access, and repository identifier resolution.

Example:
    >>> from repolens.config import EngineConfig
    >>> config = EngineConfig.load(include_env=False)
    >>> config.context_lines
    3
"""

from repolens.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._loader import (
    deep_merge,
    parse_env_value,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from ._models import EngineConfig, LogFormat, LoggingConfig, LogLevel
from ._resolve import resolve_repository_path

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "EngineConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "parse_env_value",
    "parse_env_vars",
    "read_toml_file",
    "resolve_repository_path",
    "set_nested_key",
]
