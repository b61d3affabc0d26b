"""Persisted issue-tracker credentials keyed by a fixed store name."""

import logging
from dataclasses import fields

from agent_controller.models.domain import JiraCredentials

from .backend import CredentialBackend
from .environment_backend import EnvironmentBackend
from .exceptions import CredentialError
from .keyring_backend import KeyringBackend

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = "integrations-store"

_FIELDS = tuple(f.name for f in fields(JiraCredentials))


def create_backend(name: str) -> CredentialBackend:
    """Build a credential backend by name.

    Args:
        name: "keyring" or "environment"

    Raises:
        CredentialError: If the name is not a known backend
    """
    if name == "keyring":
        return KeyringBackend()
    if name == "environment":
        return EnvironmentBackend()
    raise CredentialError(
        f"Unknown credential backend: {name}",
        suggestion="Use 'keyring' or 'environment'",
    )


class IntegrationCredentialStore:
    """Read and write the Jira integration credentials.

    The three values live under the service ``"{store_name}/jira"`` of the
    chosen backend. Missing values load as empty strings so callers always
    get a complete JiraCredentials.

    Example:
        >>> store = IntegrationCredentialStore(KeyringBackend())
        >>> store.save(base_url="https://acme.atlassian.net", email="me@acme.io")
        >>> store.load().is_complete
        False
    """

    def __init__(self, backend: CredentialBackend, store_name: str = DEFAULT_STORE_NAME) -> None:
        self.backend = backend
        self.store_name = store_name

    @property
    def service(self) -> str:
        return f"{self.store_name}/jira"

    def load(self) -> JiraCredentials:
        """Read the stored credentials.

        Raises:
            CredentialError: If the backend is unavailable or fails
        """
        values = {name: self.backend.get(self.service, name) or "" for name in _FIELDS}
        return JiraCredentials(**values)

    def save(self, **updates: str) -> JiraCredentials:
        """Merge updates into the stored credentials.

        Empty values delete the stored field, mirroring a cleared input.

        Args:
            **updates: Any of base_url, email, api_token

        Returns:
            The credentials after the update

        Raises:
            ValueError: If an unknown field is passed
            CredentialError: If the backend is unavailable or fails
        """
        unknown = set(updates) - set(_FIELDS)
        if unknown:
            raise ValueError(f"Unknown credential fields: {', '.join(sorted(unknown))}")

        for name, value in updates.items():
            value = value.strip()
            if value:
                self.backend.set(self.service, name, value)
            else:
                self.backend.delete(self.service, name)

        logger.info(f"Updated integration credentials: {', '.join(sorted(updates))}")
        return self.load()

    def reset(self) -> None:
        """Remove every stored field.

        Raises:
            CredentialError: If the backend is unavailable or fails
        """
        for name in _FIELDS:
            self.backend.delete(self.service, name)
        logger.info(f"Cleared integration credentials for {self.service}")

    def has_any(self) -> bool:
        """Check if at least one field is stored."""
        return not self.load().is_empty
