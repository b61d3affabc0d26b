"""Storage interface shared by the credential backends."""

from typing import Protocol


class CredentialBackend(Protocol):
    """A place the integration credentials can be persisted.

    Values are addressed by a service (``"integrations-store/jira"``) and a
    field name (``"base_url"``, ``"email"``, ``"api_token"``). Every method
    raises BackendNotAvailableError when the backing store cannot be used.
    """

    @property
    def name(self) -> str:
        """Short name used by ``--backend`` and the config file."""
        ...

    @property
    def available(self) -> bool: ...

    def get(self, service: str, key: str) -> str | None:
        """Return the stored value, or None when the field was never set."""
        ...

    def set(self, service: str, key: str, value: str) -> None: ...

    def delete(self, service: str, key: str) -> bool:
        """Remove a field; False when there was nothing to remove."""
        ...
