"""Configuration models."""

from repolens.config._models._common import LogFormat, LogLevel
from repolens.config._models._config import EngineConfig
from repolens.config._models._logging import LoggingConfig

__all__ = [
    "EngineConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
]
