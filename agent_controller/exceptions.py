"""Custom exception hierarchy for agent-controller.

This module defines the structured exception hierarchy used across the
controller so that boundary code can convert failures into status/detail
pairs or user-facing messages without guessing at exception types.

Exception Hierarchy:
    AgentControllerError (base)
    ├── ConfigurationError
    ├── CredentialError
    │   └── BackendNotAvailableError
    ├── ExternalServiceError
    │   └── IssueFetchError
    └── AgentError
        ├── AgentStartError
        ├── AgentNotRunningError
        ├── AgentTimeoutError
        └── AgentProtocolError

Example Usage:
    >>> from agent_controller.exceptions import ConfigurationError
    >>> try:
    ...     load_config(path)
    ... except FileNotFoundError as e:
    ...     raise ConfigurationError(f"Config file not found: {path}") from e
"""

from typing import Any


class AgentControllerError(Exception):
    """Base exception for all agent-controller errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(AgentControllerError):
    """Configuration-related errors.

    Examples:
        - Configuration file not found or unreadable
        - Invalid YAML syntax
        - Invalid configuration values
    """

    pass


class CredentialError(AgentControllerError):
    """Credential-related errors.

    Attributes:
        message: Human-readable error description
        reference: The credential that failed (e.g., "integrations-store/jira/api_token")
        suggestion: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        reference: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            reference: The credential reference that failed
            suggestion: Optional suggestion for resolution
        """
        self.reference = reference
        self.suggestion = suggestion

        full_message = message
        if reference:
            full_message = f"{message} (reference: {reference})"
        if suggestion:
            full_message = f"{full_message}\nSuggestion: {suggestion}"

        super().__init__(full_message)
        # Preserve original message (super sets self.message to full_message)
        self.message = message


class BackendNotAvailableError(CredentialError):
    """Requested backend is not available on this system."""

    pass


class ExternalServiceError(AgentControllerError):
    """Errors talking to an external HTTP service.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code if available
        response_text: Response body if available
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code if available
            response_text: Response text if available
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class IssueFetchError(ExternalServiceError):
    """The issue tracker rejected or failed an issue request."""

    pass


class AgentError(AgentControllerError):
    """Errors raised by the agent subprocess or its protocol connection.

    Attributes:
        message: Human-readable error description
        agent: Name of the agent launcher involved, if known
    """

    def __init__(self, message: str, agent: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            agent: Name of the agent launcher
        """
        super().__init__(message)
        self.agent = agent


class AgentStartError(AgentError):
    """The agent subprocess could not be spawned or failed its handshake."""

    pass


class AgentNotRunningError(AgentError):
    """An operation required a running agent but none is available."""

    pass


class AgentTimeoutError(AgentError):
    """The agent did not answer a request within the allowed time."""

    pass


class AgentProtocolError(AgentError):
    """The agent sent a malformed message or returned a JSON-RPC error.

    Attributes:
        code: JSON-RPC error code when the agent returned one
        data: Optional error payload from the agent
    """

    def __init__(
        self,
        message: str,
        agent: str | None = None,
        code: int | None = None,
        data: Any = None,
    ) -> None:
        super().__init__(message, agent=agent)
        self.code = code
        self.data = data
