"""Environment variable backend for CI and containerized environments."""

import logging
import os
import re

logger = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"[^A-Z0-9]+")


def env_var_name(service: str, key: str) -> str:
    """Build the environment variable name for a service/key pair.

    Example:
        >>> env_var_name("integrations-store/jira", "api_token")
        'INTEGRATIONS_STORE_JIRA_API_TOKEN'
    """
    return _NON_IDENTIFIER.sub("_", f"{service}_{key}".upper()).strip("_")


class EnvironmentBackend:
    """Environment variable credential storage.

    Useful where a keyring is not available (containers, CI runners, remote
    shells). Values set through this backend only live as long as the
    current process.

    Example:
        >>> import os
        >>> os.environ['INTEGRATIONS_STORE_JIRA_EMAIL'] = 'me@example.com'
        >>> EnvironmentBackend().get('integrations-store/jira', 'email')
        'me@example.com'
    """

    @property
    def name(self) -> str:
        return "environment"

    @property
    def available(self) -> bool:
        """Environment backend is always available."""
        return True

    def get(self, service: str, key: str) -> str | None:
        """Retrieve credential from environment variable.

        Returns:
            Credential value or None if not set
        """
        var_name = env_var_name(service, key)
        value = os.getenv(var_name)

        if value is not None:
            logger.debug(f"Retrieved credential from environment: {var_name}")

        return value

    def set(self, service: str, key: str, value: str) -> None:
        """Set environment variable.

        Note:
            Changes only affect the current process and child processes.
        """
        if not value:
            raise ValueError("Credential value cannot be empty")

        var_name = env_var_name(service, key)
        os.environ[var_name] = value
        logger.debug(f"Set environment variable: {var_name}")

    def delete(self, service: str, key: str) -> bool:
        """Remove environment variable.

        Returns:
            True if deleted, False if not found
        """
        var_name = env_var_name(service, key)
        if var_name in os.environ:
            del os.environ[var_name]
            logger.debug(f"Deleted environment variable: {var_name}")
            return True
        return False
