"""Tests for environment variable backend."""

import os

import pytest

from agent_controller.credentials import EnvironmentBackend
from agent_controller.credentials.environment_backend import env_var_name

SERVICE = "test-store/jira"


class TestEnvVarName:
    """Variable naming for service/key pairs."""

    def test_store_service(self):
        assert env_var_name("integrations-store/jira", "api_token") == "INTEGRATIONS_STORE_JIRA_API_TOKEN"

    def test_collapses_separators(self):
        assert env_var_name("my--store//jira", "base_url") == "MY_STORE_JIRA_BASE_URL"


class TestEnvironmentBackend:
    """Test EnvironmentBackend functionality."""

    @pytest.fixture
    def backend(self):
        """Create EnvironmentBackend instance."""
        return EnvironmentBackend()

    @pytest.fixture(autouse=True)
    def cleanup_env(self):
        """Clean up test environment variables after each test."""
        yield
        for var in [key for key in os.environ if key.startswith("TEST_STORE_")]:
            os.environ.pop(var, None)

    def test_backend_name(self, backend):
        """Test backend name property."""
        assert backend.name == "environment"

    def test_backend_always_available(self, backend):
        """Test environment backend is always available."""
        assert backend.available is True

    def test_get_existing_variable(self, backend):
        """Test retrieving existing environment variable."""
        os.environ["TEST_STORE_JIRA_EMAIL"] = "dev@acme.io"

        assert backend.get(SERVICE, "email") == "dev@acme.io"

    def test_get_nonexistent_variable(self, backend):
        """Test retrieving nonexistent variable returns None."""
        assert backend.get(SERVICE, "api_token") is None

    def test_set_variable(self, backend):
        """Test setting environment variable."""
        backend.set(SERVICE, "api_token", "new-value")

        assert os.environ["TEST_STORE_JIRA_API_TOKEN"] == "new-value"

    def test_set_empty_value_raises_error(self, backend):
        """Test setting empty value raises ValueError."""
        with pytest.raises(ValueError, match="cannot be empty"):
            backend.set(SERVICE, "api_token", "")

    def test_delete_existing_variable(self, backend):
        """Test deleting an existing variable."""
        os.environ["TEST_STORE_JIRA_BASE_URL"] = "https://acme.atlassian.net"

        assert backend.delete(SERVICE, "base_url") is True
        assert "TEST_STORE_JIRA_BASE_URL" not in os.environ

    def test_delete_missing_variable(self, backend):
        """Test deleting a missing variable returns False."""
        assert backend.delete(SERVICE, "base_url") is False
