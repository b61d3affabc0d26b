"""OS-level keyring backend using system credential stores.

Platform Support:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

import logging
from typing import cast

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .exceptions import BackendNotAvailableError, CredentialError

logger = logging.getLogger(__name__)

NAMESPACE = "agent-controller"


class KeyringBackend:
    """OS-level credential storage using system keyring.

    This is the default backend on a desktop: the OS encrypts the values
    and unlocks them with the user session.

    Example:
        >>> backend = KeyringBackend()
        >>> backend.set('integrations-store/jira', 'api_token', 'ATATT3x...')
        >>> token = backend.get('integrations-store/jira', 'api_token')
        >>> backend.delete('integrations-store/jira', 'api_token')
    """

    @property
    def name(self) -> str:
        return "keyring"

    @property
    def available(self) -> bool:
        """Check if keyring is available.

        Returns False if no backend is configured (headless systems) or the
        backend fails to initialize.
        """
        try:
            current = keyring.get_keyring()
        except Exception as e:
            logger.debug(f"Keyring not available: {e}")
            return False

        # keyring falls back to a "fail" backend when nothing usable exists
        return "fail" not in type(current).__module__

    def _ensure_available(self) -> None:
        if not self.available:
            raise BackendNotAvailableError(
                "Keyring backend is not available",
                suggestion="Configure a system keyring or use the environment backend",
            )

    def get(self, service: str, key: str) -> str | None:
        """Retrieve credential from OS keyring.

        Args:
            service: Service identifier (e.g., 'integrations-store/jira')
            key: Key within service (e.g., 'api_token')

        Returns:
            Credential value or None if not found

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If keyring operation fails
        """
        self._ensure_available()

        try:
            credential = cast(str | None, keyring.get_password(f"{NAMESPACE}/{service}", key))

            if credential is not None:
                logger.debug(f"Retrieved credential from keyring: {service}/{key}")

            return credential

        except KeyringError as e:
            raise CredentialError(f"Keyring operation failed: {e}", reference=f"{service}/{key}") from e

    def set(self, service: str, key: str, value: str) -> None:
        """Store credential in OS keyring.

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If keyring operation fails
            ValueError: If value is empty
        """
        self._ensure_available()

        if not value:
            raise ValueError("Credential value cannot be empty")

        try:
            keyring.set_password(f"{NAMESPACE}/{service}", key, value)
            logger.info(f"Stored credential in keyring: {service}/{key}")

        except KeyringError as e:
            raise CredentialError(f"Failed to store credential: {e}", reference=f"{service}/{key}") from e

    def delete(self, service: str, key: str) -> bool:
        """Delete credential from OS keyring.

        Returns:
            True if deleted, False if not found

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If keyring operation fails
        """
        self._ensure_available()

        try:
            keyring.delete_password(f"{NAMESPACE}/{service}", key)
            logger.info(f"Deleted credential from keyring: {service}/{key}")
            return True

        except PasswordDeleteError:
            # Credential doesn't exist - not an error
            return False

        except KeyringError as e:
            raise CredentialError(f"Failed to delete credential: {e}", reference=f"{service}/{key}") from e
