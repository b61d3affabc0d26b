"""Configuration for the controller.

Key Components:
    - ControllerSettings: Main configuration container with YAML loading support
    - AgentConfig: Agent subprocess launch settings
    - WorkflowConfig: Workflow initializer timing
    - JiraConfig: Issue-tracker integration settings

Example:
    >>> from agent_controller.config import ControllerSettings
    >>> settings = ControllerSettings.load()
    >>> settings.workflow.settle_interval
    1.5
"""

from agent_controller.config.settings import (
    AgentConfig,
    ControllerSettings,
    JiraConfig,
    WorkflowConfig,
)

__all__ = ["AgentConfig", "ControllerSettings", "JiraConfig", "WorkflowConfig"]
