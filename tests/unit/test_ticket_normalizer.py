"""Tests for agent_controller/providers/normalizer.py."""

from typing import Any

import pytest

from agent_controller.enums import FailureReason, IssueType, Priority
from agent_controller.models.domain import Ticket, TicketLookupFailure
from agent_controller.providers.normalizer import (
    NO_DESCRIPTION,
    UNSUPPORTED_DESCRIPTION,
    normalize_ticket,
)


def _ticket(raw: Any, issue_key: str | None = None) -> Ticket:
    result = normalize_ticket(raw, issue_key)
    assert isinstance(result, Ticket)
    return result


class TestNormalizeFullIssue:
    """A well-formed Jira issue maps field by field."""

    def test_maps_every_field(self, jira_issue):
        """Every field should be copied from the Jira payload."""
        ticket = _ticket(jira_issue)

        assert ticket.id == "10042"
        assert ticket.key == "APC-142"
        assert ticket.title == "Fix login redirect loop"
        assert ticket.issue_type is IssueType.BUG
        assert ticket.priority is Priority.HIGH
        assert ticket.assignee == "Jane Doe"
        assert ticket.status == "In Progress"
        assert ticket.created == "2024-06-15T10:30:00.000+0000"
        assert ticket.description == "Users are redirected back to /login after SSO."

    def test_created_date_is_formatted(self, jira_issue):
        """created_date should render the ISO date part."""
        assert _ticket(jira_issue).created_date == "2024-06-15"

    def test_bug_critical_minimal(self):
        """Issue type, priority and summary are picked up from a minimal record."""
        ticket = _ticket({"fields": {"issuetype": {"name": "Bug"}, "priority": {"name": "Critical"}, "summary": "X"}})

        assert ticket.issue_type is IssueType.BUG
        assert ticket.priority is Priority.CRITICAL
        assert ticket.title == "X"


class TestNormalizeDefaults:
    """Missing or malformed fields fall back to named defaults."""

    def test_empty_mapping_uses_all_defaults(self):
        """An empty record should still produce a complete ticket."""
        ticket = _ticket({})

        assert ticket.id == "Unknown"
        assert ticket.key == "Unknown"
        assert ticket.title == "Untitled ticket"
        assert ticket.issue_type is IssueType.TASK
        assert ticket.priority is Priority.MEDIUM
        assert ticket.assignee == "Unassigned"
        assert ticket.status == "Unknown"
        assert ticket.created == "Unknown"
        assert ticket.created_date == "Unknown"
        assert ticket.description == NO_DESCRIPTION

    @pytest.mark.parametrize("name", ["Sub-task", "bug", "Improvement", "", None, 7])
    def test_unknown_issue_type_defaults_to_task(self, name):
        """Only exact matches of the four known types are accepted."""
        ticket = _ticket({"fields": {"issuetype": {"name": name}}})

        assert ticket.issue_type is IssueType.TASK

    @pytest.mark.parametrize("name", ["Highest", "low", "Blocker", None])
    def test_unknown_priority_defaults_to_medium(self, name):
        """Only exact matches of the four known priorities are accepted."""
        ticket = _ticket({"fields": {"priority": {"name": name}}})

        assert ticket.priority is Priority.MEDIUM

    def test_fields_not_a_mapping(self):
        """A non-mapping fields value is treated as empty."""
        ticket = _ticket({"key": "APC-1", "fields": ["summary", "X"]})

        assert ticket.key == "APC-1"
        assert ticket.title == "Untitled ticket"

    def test_non_string_summary(self):
        """A summary that is not a string is replaced."""
        assert _ticket({"fields": {"summary": {"text": "X"}}}).title == "Untitled ticket"

    def test_null_assignee(self):
        """Jira sends null for unassigned issues."""
        assert _ticket({"fields": {"assignee": None}}).assignee == "Unassigned"

    def test_status_without_name(self):
        """A status object lacking a name is Unknown."""
        assert _ticket({"fields": {"status": {"id": "3"}}}).status == "Unknown"

    def test_unparseable_created_is_kept(self):
        """created_date returns the raw value when it is not ISO-formatted."""
        ticket = _ticket({"fields": {"created": "yesterday"}})

        assert ticket.created == "yesterday"
        assert ticket.created_date == "yesterday"


class TestNormalizeIdentifiers:
    """Ticket id and key derivation."""

    def test_integer_id_rendered_as_string(self):
        """Integer ids become strings."""
        ticket = _ticket({"id": 10001})

        assert ticket.id == "10001"
        assert ticket.key == "10001"

    def test_key_used_when_id_missing(self):
        """The key doubles as id when no id is present."""
        ticket = _ticket({"key": "APC-7"})

        assert ticket.id == "APC-7"
        assert ticket.key == "APC-7"

    def test_requested_key_used_when_record_has_none(self):
        """The key the caller asked for fills in missing identifiers."""
        ticket = _ticket({"fields": {"summary": "X"}}, "APC-9")

        assert ticket.id == "APC-9"
        assert ticket.key == "APC-9"

    def test_record_key_wins_over_requested_key(self):
        """Jira may answer with the current key of a moved issue."""
        ticket = _ticket({"id": "1", "key": "NEW-1"}, "OLD-1")

        assert ticket.key == "NEW-1"


class TestNormalizeDescription:
    """Description rendering rules."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_description(self, value):
        """Null or empty-string descriptions get the placeholder."""
        assert _ticket({"fields": {"description": value}}).description == NO_DESCRIPTION

    @pytest.mark.parametrize("value", [{}, [], 0, False])
    def test_empty_non_string_description(self, value):
        """Empty containers and other non-strings are still an unsupported format."""
        assert _ticket({"fields": {"description": value}}).description == UNSUPPORTED_DESCRIPTION

    def test_missing_description(self):
        """A missing description gets the placeholder."""
        assert _ticket({"fields": {}}).description == NO_DESCRIPTION

    def test_string_description(self):
        """Plain strings are shown unchanged."""
        assert _ticket({"fields": {"description": "Line 1\nLine 2"}}).description == "Line 1\nLine 2"

    def test_document_format_description(self):
        """Atlassian Document Format objects are not rendered."""
        adf = {
            "type": "doc",
            "version": 1,
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Hi"}]}],
        }

        assert _ticket({"fields": {"description": adf}}).description == UNSUPPORTED_DESCRIPTION


class TestNormalizeNotFound:
    """Inputs that cannot become a ticket."""

    @pytest.mark.parametrize("raw", [None, "APC-1", 42, ["APC-1"], True])
    def test_non_mapping_is_not_found(self, raw):
        """Anything that is not a mapping is not-found."""
        result = normalize_ticket(raw)

        assert isinstance(result, TicketLookupFailure)
        assert result.reason is FailureReason.NOT_FOUND

    def test_not_found_message_names_requested_key(self):
        """The failure message names the requested key."""
        result = normalize_ticket(None, "APC-404")

        assert result == TicketLookupFailure(FailureReason.NOT_FOUND, "Ticket APC-404 not found")

    def test_jira_error_envelope_is_not_found(self):
        """Jira's error body carries no identifier."""
        raw = {"errorMessages": ["Issue does not exist or you do not have permission to see it."], "errors": {}}

        result = normalize_ticket(raw, "APC-404")

        assert isinstance(result, TicketLookupFailure)
        assert result.reason is FailureReason.NOT_FOUND
