"""Inputs that gate workspace initialization.

CredentialGate answers "is the issue-tracker integration usable?" from the
persisted credentials. DirectoryGate holds the user's project directory
choice together with a revision number so that selecting the same path
again still counts as a new selection.
"""

from pathlib import Path

import structlog

from agent_controller.credentials.store import IntegrationCredentialStore
from agent_controller.exceptions import CredentialError
from agent_controller.models.domain import JiraCredentials

log = structlog.get_logger(__name__)


class CredentialGate:
    """Read-only view of the integration credentials.

    Values are read from the store on every call; nothing is cached.
    """

    def __init__(self, store: IntegrationCredentialStore) -> None:
        self._store = store

    def credentials(self) -> JiraCredentials:
        """Return the stored credentials, or empty ones if the store fails."""
        try:
            return self._store.load()
        except CredentialError as e:
            log.warning("credential_store_unreadable", error=e.message)
            return JiraCredentials()

    def is_configured(self) -> bool:
        return self.credentials().is_complete


class DirectoryGate:
    """The selected working directory.

    Attributes:
        directory: Absolute path of the selected directory, or None
        revision: Incremented on every selection, starting at 0 (nothing selected)
    """

    def __init__(self) -> None:
        self.directory: str | None = None
        self.revision = 0

    @property
    def is_set(self) -> bool:
        return self.directory is not None

    def select(self, directory: str | Path) -> str:
        """Record a new selection and return the stored absolute path."""
        self.directory = str(Path(directory).expanduser().absolute())
        self.revision += 1
        log.info("directory_selected", directory=self.directory, revision=self.revision)
        return self.directory

    def clear(self) -> None:
        self.directory = None
        self.revision += 1
