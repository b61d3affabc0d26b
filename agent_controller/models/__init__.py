"""Core domain models for the controller.

Key Models:
    - Ticket: Normalized issue-tracker item
    - TicketLookupFailure: Explicit failure outcome of a ticket lookup
    - JiraCredentials: Persisted issue-tracker credentials
    - PromptResult: Agent reply to a prompt
    - StatusSnapshot: Value of the agent status channel

Example:
    >>> from agent_controller.models import Ticket, PromptResult
"""

from agent_controller.models.domain import (
    JiraCredentials,
    PromptResult,
    StatusSnapshot,
    Ticket,
    TicketLookupFailure,
)

__all__ = [
    "JiraCredentials",
    "PromptResult",
    "StatusSnapshot",
    "Ticket",
    "TicketLookupFailure",
]
