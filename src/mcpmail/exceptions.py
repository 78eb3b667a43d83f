"""Error hierarchy for mcpmail.

Only turn-level errors ever reach the conversation. Credential and
synchronization problems are recovered or logged where they happen.
"""

from typing import Any

SENSITIVE_CONTEXT_KEYS = {"access_token", "refresh_token", "authorization"}
REDACTED_VALUE = "[REDACTED]"


class MCPMailError(Exception):
    """Base class for all mcpmail errors.

    Attributes:
        message: Human-readable error description
        context: Additional details for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None, **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = dict(context) if context is not None else {}
        if kwargs:
            self.context.update(kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging, with secrets redacted."""
        safe_context = {
            key: REDACTED_VALUE if key.lower() in SENSITIVE_CONTEXT_KEYS else value
            for key, value in self.context.items()
        }
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": safe_context,
        }


class ConfigurationError(MCPMailError):
    """Missing or invalid settings."""


class CredentialError(MCPMailError):
    """Missing, expired or malformed credential data."""


class BackendError(MCPMailError):
    """The mail backend answered with a non-success status."""

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


class TurnError(MCPMailError):
    """A turn failed while fetching context or consuming the response stream."""


class TurnTimeoutError(TurnError):
    """No response event arrived before the turn deadline."""


class InvalidMutationError(MCPMailError, AssertionError):
    """The message log was asked to mutate a message that is not streaming.

    Raised instead of silently misapplying state: it means two turns raced.
    """
