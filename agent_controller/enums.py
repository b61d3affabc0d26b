"""Enumerations for workflow state, agent status and ticket attributes."""

from enum import Enum


class InitializationState(str, Enum):
    """Steps of workspace initialization.

    The happy path is:
    CREDENTIAL_CHECK -> DIRECTORY_SELECT -> STARTING_AGENT -> CONFIGURING -> READY
    """

    CREDENTIAL_CHECK = "credential-check"
    DIRECTORY_SELECT = "directory-select"
    STARTING_AGENT = "starting-agent"
    CONFIGURING = "configuring"
    READY = "ready"

    def __str__(self) -> str:
        return self.value


class AgentStatus(str, Enum):
    """Status of the agent as shown by every status surface."""

    IDLE = "idle"
    THINKING = "thinking"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    WAITING = "waiting"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Short human-readable label for the status."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    AgentStatus.IDLE: "Ready",
    AgentStatus.THINKING: "Thinking...",
    AgentStatus.PROCESSING: "Processing...",
    AgentStatus.COMPLETED: "Completed",
    AgentStatus.ERROR: "Error",
    AgentStatus.WAITING: "Waiting",
}


class IssueType(str, Enum):
    """Issue types understood by the ticket view."""

    STORY = "Story"
    BUG = "Bug"
    TASK = "Task"
    EPIC = "Epic"

    def __str__(self) -> str:
        return self.value


class Priority(str, Enum):
    """Ticket priorities understood by the ticket view."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    def __str__(self) -> str:
        return self.value


class FailureReason(str, Enum):
    """Why a ticket lookup did not produce a ticket."""

    NOT_FOUND = "not-found"
    FETCH_FAILED = "fetch-failed"
    NOT_CONFIGURED = "not-configured"

    def __str__(self) -> str:
        return self.value
