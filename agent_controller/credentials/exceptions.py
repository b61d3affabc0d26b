"""Errors raised by the credential backends and the integration store.

They live in agent_controller.exceptions with the rest of the hierarchy;
this module lets backend code import them from inside the package.
"""

from agent_controller.exceptions import BackendNotAvailableError, CredentialError

__all__ = ["BackendNotAvailableError", "CredentialError"]
