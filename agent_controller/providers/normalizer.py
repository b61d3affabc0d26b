"""Normalization of raw issue-tracker records into Ticket objects.

Jira responses are treated as untrusted input: every field is checked for
the expected shape and replaced by a named default when it is missing or
malformed. Normalization never raises.

Field mappings:
    - raw["id"] / raw["key"] / issue_key -> id
    - raw["key"] / issue_key / id -> key
    - fields.summary -> title ("Untitled ticket")
    - fields.issuetype.name -> issue_type (Task)
    - fields.priority.name -> priority (Medium)
    - fields.assignee.displayName -> assignee ("Unassigned")
    - fields.status.name -> status ("Unknown")
    - fields.created -> created ("Unknown")
    - fields.description -> description (see _normalize_description)
"""

from collections.abc import Mapping
from typing import Any

from agent_controller.enums import FailureReason, IssueType, Priority
from agent_controller.models.domain import Ticket, TicketLookupFailure

UNKNOWN = "Unknown"
UNTITLED = "Untitled ticket"
UNASSIGNED = "Unassigned"
NO_DESCRIPTION = "No description provided."
UNSUPPORTED_DESCRIPTION = "Description uses an unsupported format."

_ISSUE_TYPES = {member.value: member for member in IssueType}
_PRIORITIES = {member.value: member for member in Priority}


def not_found(issue_key: str | None = None) -> TicketLookupFailure:
    """Build the failure returned when no ticket can be derived."""
    message = f"Ticket {issue_key} not found" if issue_key else "Ticket not found"
    return TicketLookupFailure(FailureReason.NOT_FOUND, message)


def normalize_ticket(raw: Any, issue_key: str | None = None) -> Ticket | TicketLookupFailure:
    """Convert a raw Jira issue into a Ticket.

    Args:
        raw: Decoded JSON body of an issue request (any shape)
        issue_key: Key the caller asked for, used when the record lacks one

    Returns:
        A fully populated Ticket, or a not-found failure when raw is not a
        mapping or is a Jira error envelope.

    Example:
        >>> normalize_ticket({"key": "APC-1", "fields": {"summary": "Fix it"}}).title
        'Fix it'
    """
    if not isinstance(raw, Mapping):
        return not_found(issue_key)

    record_id = _identifier(raw.get("id"))
    record_key = _identifier(raw.get("key"))
    if "errorMessages" in raw and record_id is None and record_key is None:
        return not_found(issue_key)

    requested = issue_key.strip() if isinstance(issue_key, str) and issue_key.strip() else None
    ticket_id = record_id or record_key or requested or UNKNOWN
    ticket_key = record_key or requested or ticket_id

    fields = raw.get("fields")
    if not isinstance(fields, Mapping):
        fields = {}

    summary = fields.get("summary")

    return Ticket(
        id=ticket_id,
        key=ticket_key,
        title=summary if isinstance(summary, str) and summary else UNTITLED,
        issue_type=_ISSUE_TYPES.get(_nested_str(fields, "issuetype", "name") or "", IssueType.TASK),
        priority=_PRIORITIES.get(_nested_str(fields, "priority", "name") or "", Priority.MEDIUM),
        assignee=_nested_str(fields, "assignee", "displayName") or UNASSIGNED,
        status=_nested_str(fields, "status", "name") or UNKNOWN,
        created=_string(fields.get("created")) or UNKNOWN,
        description=_normalize_description(fields.get("description")),
    )


def _identifier(value: Any) -> str | None:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return _string(value)


def _string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _nested_str(fields: Mapping[str, Any], name: str, attribute: str) -> str | None:
    container = fields.get(name)
    if not isinstance(container, Mapping):
        return None
    return _string(container.get(attribute))


def _normalize_description(value: Any) -> str:
    """Render the description field.

    Jira Cloud returns Atlassian Document Format objects from REST v3;
    only plain strings are displayed as-is.
    """
    if value is None or value == "":
        return NO_DESCRIPTION
    if isinstance(value, str):
        return value
    return UNSUPPORTED_DESCRIPTION
