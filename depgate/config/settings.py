"""
Configuration system using Pydantic for type-safe settings management.

Settings come from three places, in increasing precedence: field defaults,
``DEPGATE_*`` environment variables (nested sections use ``__``, e.g.
``DEPGATE_EXECUTOR__MAX_CONCURRENCY=8``), and values from a YAML file loaded
with ``DepgateSettings.from_yaml``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from depgate.exceptions import ConfigurationError


class LoggingConfig(BaseModel):
    """Structured logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Log renderer")


class ExecutorSettings(BaseModel):
    """Task executor behavior."""

    max_concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Maximum task bodies running at once (unbounded when unset)",
    )


class CommandConfig(BaseModel):
    """Defaults for command-backed tasks loaded from task files."""

    shell: bool = Field(default=True, description="Run string commands through the system shell")
    timeout: float | None = Field(default=None, gt=0, description="Per-command timeout in seconds")
    cwd: str | None = Field(default=None, description="Working directory for commands")


class DepgateSettings(BaseSettings):
    """Main depgate settings.

    Combines all configuration sections and supports loading from YAML files
    with environment variable interpolation.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEPGATE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    commands: CommandConfig = Field(default_factory=CommandConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> DepgateSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            DepgateSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file) as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
