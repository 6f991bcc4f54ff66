# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Engine configuration.

This module provides the immutable EngineConfig value that is resolved once
and passed explicitly to the engine and every repository component. There is
no process-wide configuration handle.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, NoReturn

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repolens.config._defaults import DEFAULT_CONFIG
from repolens.config._loader import deep_merge, parse_env_vars, read_toml_file
from repolens.config._models._logging import LoggingConfig
from repolens.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Self


def _raise_validation_error(error: ValidationError, source: str | None) -> NoReturn:
    """Convert the first Pydantic error into a ConfigValidationError.

    Args:
        error: The Pydantic validation error.
        source: Name of the configuration source being validated.

    Raises:
        ConfigValidationError: Always.
    """
    details = error.errors()[0]
    key = ".".join(str(part) for part in details.get("loc", ()))
    ctx = details.get("ctx") or {}
    expected = str(ctx.get("expected", details.get("msg", "valid value")))
    msg = f"Invalid configuration value for '{key}'"
    raise ConfigValidationError(
        msg,
        key=key,
        value=details.get("input"),
        expected=expected,
        source=source,
    ) from error


class EngineConfig(BaseModel):
    """Configuration for the repository engine.

    Attributes:
        repos_root: Directory under which repository identifiers resolve.
        git_binary: Git executable used by the command executor.
        context_lines: Context lines around changes in structured diffs.
        stale_after_days: Age in days after which a branch tip is stale.
        history_limit: Default maximum number of commits per history walk.
        logging: Logging configuration section.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    repos_root: Path = Field(default_factory=Path.cwd)
    git_binary: str = Field(default="git", min_length=1)
    context_lines: int = Field(default=3, ge=0)
    stale_after_days: int = Field(default=90, ge=0)
    history_limit: int = Field(default=500, ge=1)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        source: str | None = None,
    ) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.
            source: Name of the source, reported in validation errors.

        Returns:
            Validated configuration object.

        Raises:
            ConfigValidationError: If a value fails validation.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            _raise_validation_error(e, source)

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a single TOML file.

        Args:
            path: Path to the TOML config file.

        Returns:
            Configuration object from the file merged over the defaults.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        return cls.from_dict(read_toml_file(path), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        include_env: bool = True,
        overrides: Mapping[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged in precedence order: defaults, then the config
        file, then REPOLENS_* environment variables, then explicit overrides.

        Args:
            config_path: Optional TOML file. A missing file is an error.
            include_env: Include environment variables as a source.
            overrides: Values that win over every other source.

        Returns:
            Merged configuration object.

        Raises:
            FileNotFoundError: If config_path does not exist.
            ConfigLoadError: If the config file cannot be parsed.
            ConfigValidationError: If merged config fails validation.
        """
        data: dict[str, Any] = {}
        sources: list[str] = []
        if config_path is not None:
            data = deep_merge(data, read_toml_file(config_path))
            sources.append(str(config_path))
        if include_env:
            env_values = parse_env_vars()
            if env_values:
                data = deep_merge(data, env_values)
                sources.append("env")
        if overrides:
            data = deep_merge(data, overrides)
            sources.append("overrides")
        return cls.from_dict(data, source=", ".join(sources) or None)
