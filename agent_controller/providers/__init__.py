"""Issue-tracker access and record normalization."""

from agent_controller.providers.jira_rest import JiraRestClient
from agent_controller.providers.normalizer import normalize_ticket

__all__ = ["JiraRestClient", "normalize_ticket"]
