"""CLI command groups for agent-controller.

The top-level ``agent-controller`` group lives in :mod:`agent_controller.main`;
this package holds the groups it registers.

Key Commands:
    credentials (agent_controller.cli.credentials):
        Store, show and clear the Jira integration credentials in the OS
        keyring or in environment variables.
"""

from agent_controller.cli.credentials import credentials_group

__all__ = ["credentials_group"]
