"""Pytest configuration and shared fixtures."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from agent_controller.credentials.store import IntegrationCredentialStore
from agent_controller.models.domain import PromptResult


class MemoryBackend:
    """In-memory credential backend for tests."""

    def __init__(self) -> None:
        self.values: dict[tuple[str, str], str] = {}

    @property
    def name(self) -> str:
        return "memory"

    @property
    def available(self) -> bool:
        return True

    def get(self, service: str, key: str) -> str | None:
        return self.values.get((service, key))

    def set(self, service: str, key: str, value: str) -> None:
        if not value:
            raise ValueError("Credential value cannot be empty")
        self.values[(service, key)] = value

    def delete(self, service: str, key: str) -> bool:
        return self.values.pop((service, key), None) is not None


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Empty in-memory credential backend."""
    return MemoryBackend()


@pytest.fixture
def credential_store(memory_backend: MemoryBackend) -> IntegrationCredentialStore:
    """Credential store with nothing configured."""
    return IntegrationCredentialStore(memory_backend)


@pytest.fixture
def configured_store(credential_store: IntegrationCredentialStore) -> IntegrationCredentialStore:
    """Credential store holding a complete set of Jira credentials."""
    credential_store.save(
        base_url="https://acme.atlassian.net",
        email="dev@acme.io",
        api_token="ATATT3xFfGF0-test-token",
    )
    return credential_store


@pytest.fixture
def mock_host() -> MagicMock:
    """Host bridge whose async operations all succeed immediately."""
    host = MagicMock()
    host.select_working_directory = AsyncMock(return_value=None)
    host.agent_start = AsyncMock(return_value=None)
    host.agent_stop = AsyncMock(return_value=None)
    host.fetch_issue = AsyncMock(return_value={})
    host.search_issues = AsyncMock(return_value={"issues": []})
    host.agent_prompt = AsyncMock(return_value=PromptResult(stop_reason="end_turn", text="Hello!"))
    host.close = AsyncMock()
    return host


@pytest.fixture
def jira_issue() -> dict[str, Any]:
    """Raw Jira REST v3 issue payload."""
    return {
        "id": "10042",
        "key": "APC-142",
        "self": "https://acme.atlassian.net/rest/api/3/issue/10042",
        "fields": {
            "summary": "Fix login redirect loop",
            "issuetype": {"name": "Bug"},
            "priority": {"name": "High"},
            "assignee": {"displayName": "Jane Doe", "emailAddress": "jane@acme.io"},
            "status": {"name": "In Progress"},
            "created": "2024-06-15T10:30:00.000+0000",
            "description": "Users are redirected back to /login after SSO.",
        },
    }
