"""
Domain models for the controller.

This module contains the data classes that flow between the workflow engine,
the host bridge and the presentation layer. Tickets are the normalized
internal representation of an issue-tracker record; they are only ever built
by :func:`agent_controller.providers.normalizer.normalize_ticket`.

Example:
    Building a ticket by hand for a test::

        ticket = Ticket(
            id="10001",
            key="APC-142",
            title="Fix login bug",
            issue_type=IssueType.BUG,
            priority=Priority.HIGH,
            assignee="Jane Doe",
            status="In Progress",
            created="2024-06-15T10:30:00.000+0000",
            description="Users cannot log in with SSO",
        )
"""

import re
from dataclasses import dataclass, field
from typing import Any

from agent_controller.enums import AgentStatus, FailureReason, IssueType, Priority

_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})")


@dataclass(frozen=True)
class JiraCredentials:
    """Issue-tracker credentials as persisted by the integrations store.

    Empty strings mean "not configured"; the store never returns None.
    """

    base_url: str = ""
    """Jira Cloud site URL (e.g., https://your-domain.atlassian.net)."""

    email: str = ""
    """Account email used for basic authentication."""

    api_token: str = ""
    """API token generated from the Atlassian account settings."""

    @property
    def is_complete(self) -> bool:
        """Check if every field required to call the API is present."""
        return bool(self.base_url and self.email and self.api_token)

    @property
    def is_empty(self) -> bool:
        """Check if no field has been filled in at all."""
        return not (self.base_url or self.email or self.api_token)


@dataclass(frozen=True)
class Ticket:
    """A normalized, display-ready issue-tracker item.

    Every field is always populated; missing or malformed source fields are
    replaced by named defaults during normalization.
    """

    id: str
    """Tracker-internal identifier (e.g., "10001")."""

    key: str
    """Human-readable key shown in the UI (e.g., "APC-142")."""

    title: str
    """Ticket summary line."""

    issue_type: IssueType
    """One of Story, Bug, Task or Epic."""

    priority: Priority
    """One of Low, Medium, High or Critical."""

    assignee: str
    """Display name of the assignee, or "Unassigned"."""

    status: str
    """Workflow status name as reported by the tracker, or "Unknown"."""

    created: str
    """Creation timestamp as reported by the tracker, or "Unknown"."""

    description: str
    """Plain-text description or a placeholder sentence."""

    @property
    def created_date(self) -> str:
        """Creation date formatted as YYYY-MM-DD when possible."""
        match = _ISO_DATE.match(self.created)
        return match.group(1) if match else self.created


@dataclass(frozen=True)
class TicketLookupFailure:
    """Explicit failure outcome of a ticket lookup or normalization."""

    reason: FailureReason
    message: str = ""


@dataclass
class PromptResult:
    """Reply collected from the agent for a single prompt.

    Example:
        Reporting a reply::

            result = await host.agent_prompt(text="Hello")
            print(result.text or "[no content received]")
            print(f"Stop reason: {result.stop_reason}")
    """

    stop_reason: str
    """Why the agent ended its turn (e.g., "end_turn", "cancelled")."""

    text: str = ""
    """Concatenated text of every agent message chunk for the turn."""

    meta: dict[str, Any] | None = field(default=None)
    """Optional protocol metadata returned with the reply."""


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time value of the agent status channel."""

    status: AgentStatus
    detail: str
    agent_available: bool | None = None
