"""Tests for agent_controller/config/settings.py Pydantic models.

Tests cover:
- AgentConfig launch commands and bounds
- WorkflowConfig settle interval
- JiraConfig defaults
- ControllerSettings loading from YAML and environment variables
- Environment variable interpolation
"""

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from agent_controller.config.settings import (
    AgentConfig,
    ControllerSettings,
    JiraConfig,
    WorkflowConfig,
)
from agent_controller.exceptions import ConfigurationError


class TestAgentConfig:
    """Test AgentConfig defaults and launch command selection."""

    def test_defaults(self):
        config = AgentConfig()

        assert config.use_cli_auth is True
        assert config.permission_mode == "acceptEdits"
        assert config.direct_command == ["claude-code-acp"]
        assert config.cli_auth_command[1] == "acp-claude-code"
        assert config.prompt_timeout is None

    def test_cli_auth_launcher_is_platform_specific(self):
        expected = "npx.cmd" if sys.platform == "win32" else "npx"

        assert AgentConfig().cli_auth_command[0] == expected

    def test_launch_command_uses_config_flag(self):
        assert AgentConfig(use_cli_auth=False).launch_command() == ["claude-code-acp"]

    def test_launch_command_override(self):
        config = AgentConfig(cli_auth_command=["npx", "acp-claude-code"])

        assert config.launch_command(use_cli_auth=True) == ["npx", "acp-claude-code"]
        assert config.launch_command(use_cli_auth=False) == ["claude-code-acp"]

    def test_launch_command_returns_copy(self):
        config = AgentConfig()
        config.launch_command().append("--extra")

        assert "--extra" not in config.launch_command()

    def test_shutdown_timeout_bounds(self):
        with pytest.raises(ValidationError):
            AgentConfig(shutdown_timeout=0.1)
        with pytest.raises(ValidationError):
            AgentConfig(shutdown_timeout=120)

    def test_empty_command_rejected(self):
        with pytest.raises(ValidationError):
            AgentConfig(direct_command=[])


class TestWorkflowAndJiraConfig:
    """Test the smaller sections."""

    def test_settle_interval_default(self):
        assert WorkflowConfig().settle_interval == 1.5

    def test_settle_interval_may_be_zero(self):
        assert WorkflowConfig(settle_interval=0).settle_interval == 0

    def test_negative_settle_interval_rejected(self):
        with pytest.raises(ValidationError):
            WorkflowConfig(settle_interval=-1)

    def test_jira_defaults(self):
        config = JiraConfig()

        assert config.credential_backend == "keyring"
        assert config.store_name == "integrations-store"
        assert config.search_page_size == 100
        assert config.default_retry_after == 2.0
        assert config.max_rate_limit_retries == 5

    def test_page_size_capped(self):
        with pytest.raises(ValidationError):
            JiraConfig(search_page_size=500)

    def test_negative_rate_limit_retries_rejected(self):
        with pytest.raises(ValidationError):
            JiraConfig(max_rate_limit_retries=-1)

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            JiraConfig(credential_backend="encrypted")


class TestControllerSettingsFromYaml:
    """Test loading settings from YAML files."""

    def test_full_file(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            """
agent:
  use_cli_auth: false
  direct_command: ["/opt/bin/claude-code-acp", "--verbose"]
workflow:
  settle_interval: 0
jira:
  credential_backend: environment
  timeout: 10
log_level: DEBUG
"""
        )

        settings = ControllerSettings.from_yaml(str(config_file))

        assert settings.agent.launch_command() == ["/opt/bin/claude-code-acp", "--verbose"]
        assert settings.workflow.settle_interval == 0
        assert settings.jira.credential_backend == "environment"
        assert settings.jira.timeout == 10
        assert settings.log_level == "DEBUG"

    def test_empty_file_uses_defaults(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        settings = ControllerSettings.from_yaml(str(config_file))

        assert settings.workflow.settle_interval == 1.5

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            ControllerSettings.from_yaml(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("agent: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ControllerSettings.from_yaml(str(config_file))

    def test_list_document_rejected(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="YAML object"):
            ControllerSettings.from_yaml(str(config_file))

    def test_invalid_values(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("workflow:\n  settle_interval: -5\n")

        with pytest.raises(ConfigurationError, match="Failed to validate"):
            ControllerSettings.from_yaml(str(config_file))


class TestEnvironmentInterpolation:
    """Test ${VAR} substitution in YAML files."""

    def test_required_variable(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("ACP_BIN", "/usr/local/bin/claude-code-acp")
        config_file = tmp_path / "config.yaml"
        config_file.write_text('agent:\n  direct_command: ["${ACP_BIN}"]\n')

        settings = ControllerSettings.from_yaml(str(config_file))

        assert settings.agent.direct_command == ["/usr/local/bin/claude-code-acp"]

    def test_default_value(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("JIRA_TIMEOUT", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("jira:\n  timeout: ${JIRA_TIMEOUT:-15}\n")

        settings = ControllerSettings.from_yaml(str(config_file))

        assert settings.jira.timeout == 15

    def test_missing_required_variable(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_level: ${NOT_SET_ANYWHERE}\n")

        with pytest.raises(ConfigurationError, match="NOT_SET_ANYWHERE"):
            ControllerSettings.from_yaml(str(config_file))

    def test_comments_are_not_interpolated(self):
        content = "# uses ${NOT_SET_ANYWHERE}\nlog_level: INFO"

        assert ControllerSettings._interpolate_env_vars(content) == content


class TestControllerSettingsLoad:
    """Test ControllerSettings.load and environment overrides."""

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr("agent_controller.config.settings.DEFAULT_CONFIG_PATH", tmp_path / "none.yaml")

        settings = ControllerSettings.load()

        assert settings.log_level == "INFO"
        assert settings.agent.use_cli_auth is True

    def test_default_path_is_used_when_present(self, tmp_path: Path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_level: WARNING\n")
        monkeypatch.setattr("agent_controller.config.settings.DEFAULT_CONFIG_PATH", config_file)

        assert ControllerSettings.load().log_level == "WARNING"

    def test_explicit_missing_path_fails(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            ControllerSettings.load(tmp_path / "missing.yaml")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("CONTROLLER_WORKFLOW__SETTLE_INTERVAL", "0.25")
        monkeypatch.setenv("CONTROLLER_LOG_LEVEL", "ERROR")

        settings = ControllerSettings()

        assert settings.workflow.settle_interval == 0.25
        assert settings.log_level == "ERROR"
