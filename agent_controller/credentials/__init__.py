"""Credential storage for issue-tracker integrations.

Backends:
    - KeyringBackend: OS keyring (default on desktops)
    - EnvironmentBackend: Environment variables (containers, CI)

The IntegrationCredentialStore groups the Jira base URL, account email and
API token under a single store name so the rest of the controller can read
them as one JiraCredentials value.
"""

from .backend import CredentialBackend
from .environment_backend import EnvironmentBackend
from .exceptions import BackendNotAvailableError, CredentialError
from .keyring_backend import KeyringBackend
from .store import IntegrationCredentialStore, create_backend

__all__ = [
    "BackendNotAvailableError",
    "CredentialBackend",
    "CredentialError",
    "EnvironmentBackend",
    "IntegrationCredentialStore",
    "KeyringBackend",
    "create_backend",
]
