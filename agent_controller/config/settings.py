"""
Configuration system using Pydantic for type-safe settings management.

This module provides configuration classes for the agent launcher, the
workflow initializer and the Jira integration.
"""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_controller.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "agent-controller" / "config.yaml"


def _default_cli_auth_command() -> list[str]:
    return ["npx.cmd" if sys.platform == "win32" else "npx", "acp-claude-code"]


class AgentConfig(BaseModel):
    """Agent subprocess launch configuration."""

    use_cli_auth: bool = Field(
        default=True,
        description="Launch through the CLI-auth wrapper instead of the direct adapter binary",
    )
    cli_auth_command: list[str] = Field(
        default_factory=_default_cli_auth_command,
        min_length=1,
        description="Command used when use_cli_auth is true",
    )
    direct_command: list[str] = Field(
        default_factory=lambda: ["claude-code-acp"],
        min_length=1,
        description="Command used when use_cli_auth is false",
    )
    permission_mode: str = Field(
        default="acceptEdits",
        description="Exported as ACP_PERMISSION_MODE for the CLI-auth launcher",
    )
    handshake_timeout: float = Field(
        default=60.0, gt=0, description="Seconds allowed for initialize and session/new"
    )
    prompt_timeout: float | None = Field(
        default=None, gt=0, description="Seconds allowed for one prompt turn (None waits forever)"
    )
    shutdown_timeout: float = Field(
        default=5.0, ge=0.5, le=60.0, description="Seconds to wait for graceful shutdown"
    )

    def launch_command(self, use_cli_auth: bool | None = None) -> list[str]:
        """Return the command that starts the agent subprocess."""
        cli_auth = self.use_cli_auth if use_cli_auth is None else use_cli_auth
        return list(self.cli_auth_command if cli_auth else self.direct_command)


class WorkflowConfig(BaseModel):
    """Workflow initializer behavior."""

    settle_interval: float = Field(
        default=1.5,
        ge=0.0,
        description="Seconds spent in the configuring step before declaring the workflow ready",
    )


class JiraConfig(BaseModel):
    """Jira integration configuration."""

    credential_backend: Literal["keyring", "environment"] = Field(
        default="keyring", description="Where the integration credentials are persisted"
    )
    store_name: str = Field(default="integrations-store", description="Credential store name")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    search_page_size: int = Field(default=100, ge=1, le=100, description="Issues per search page")
    default_retry_after: float = Field(
        default=2.0, ge=0.0, description="Wait used when a 429 response carries no Retry-After"
    )
    max_rate_limit_retries: int = Field(
        default=5, ge=0, description="Rate-limited (429) retries per search page before giving up"
    )


class ControllerSettings(BaseSettings):
    """Main controller settings.

    Values come from (highest priority first) constructor arguments,
    ``CONTROLLER_*`` environment variables, then defaults. ``from_yaml``
    feeds a YAML file in as constructor arguments.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTROLLER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    agent: AgentConfig = Field(default_factory=AgentConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    jira: JiraConfig = Field(default_factory=JiraConfig)
    log_level: str = Field(default="INFO", description="Minimum log level")

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> ControllerSettings:
        """Load settings from a YAML file, or defaults when none exists.

        An explicitly passed path must exist; the default path is optional.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        if config_path is not None:
            return cls.from_yaml(str(config_path))
        if DEFAULT_CONFIG_PATH.exists():
            return cls.from_yaml(str(DEFAULT_CONFIG_PATH))
        return cls()

    @classmethod
    def from_yaml(cls, config_path: str) -> ControllerSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ControllerSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing
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

        YAML comment lines are left untouched.

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
