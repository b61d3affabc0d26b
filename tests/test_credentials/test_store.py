"""Tests for the integration credential store."""

import pytest

from agent_controller.credentials import (
    CredentialError,
    EnvironmentBackend,
    IntegrationCredentialStore,
    KeyringBackend,
    create_backend,
)
from agent_controller.models.domain import JiraCredentials


class TestCreateBackend:
    """Backend construction by name."""

    def test_keyring(self):
        assert isinstance(create_backend("keyring"), KeyringBackend)

    def test_environment(self):
        assert isinstance(create_backend("environment"), EnvironmentBackend)

    def test_unknown(self):
        with pytest.raises(CredentialError) as exc_info:
            create_backend("encrypted")

        assert exc_info.value.suggestion == "Use 'keyring' or 'environment'"


class TestIntegrationCredentialStore:
    """Load/save/reset of the Jira credentials."""

    def test_service_name(self, credential_store):
        assert credential_store.service == "integrations-store/jira"

    def test_custom_store_name(self, memory_backend):
        assert IntegrationCredentialStore(memory_backend, "team").service == "team/jira"

    def test_load_empty(self, credential_store):
        """Missing values load as empty strings."""
        credentials = credential_store.load()

        assert credentials == JiraCredentials("", "", "")
        assert credentials.is_empty is True
        assert credentials.is_complete is False
        assert credential_store.has_any() is False

    def test_save_all(self, configured_store, memory_backend):
        """Values are written under the store's service."""
        credentials = configured_store.load()

        assert credentials.is_complete is True
        assert memory_backend.values[("integrations-store/jira", "email")] == "dev@acme.io"

    def test_partial_update_keeps_other_fields(self, configured_store):
        """Only the passed fields change."""
        updated = configured_store.save(api_token="new-token")

        assert updated.api_token == "new-token"
        assert updated.email == "dev@acme.io"
        assert updated.base_url == "https://acme.atlassian.net"

    def test_values_are_stripped(self, credential_store):
        updated = credential_store.save(email="  dev@acme.io  ")

        assert updated.email == "dev@acme.io"

    def test_empty_value_deletes_field(self, configured_store):
        """Saving an empty value clears that field."""
        updated = configured_store.save(api_token="   ")

        assert updated.api_token == ""
        assert updated.is_complete is False
        assert configured_store.has_any() is True

    def test_unknown_field_rejected(self, credential_store):
        with pytest.raises(ValueError, match="Unknown credential fields: password"):
            credential_store.save(password="secret")

    def test_reset(self, configured_store):
        """reset removes every field."""
        configured_store.reset()

        assert configured_store.load().is_empty is True

    def test_environment_backend_round_trip(self, monkeypatch):
        """The store works against real environment variables."""
        monkeypatch.delenv("INTEGRATIONS_STORE_JIRA_BASE_URL", raising=False)
        monkeypatch.setenv("INTEGRATIONS_STORE_JIRA_EMAIL", "ci@acme.io")
        store = IntegrationCredentialStore(EnvironmentBackend())

        store.save(base_url="https://acme.atlassian.net")
        monkeypatch.delenv("INTEGRATIONS_STORE_JIRA_BASE_URL")

        assert store.load().email == "ci@acme.io"
