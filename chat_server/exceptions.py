"""
Exception hierarchy for the chat relay server.

Every error carries an ErrorContext describing the connection it happened
on, and logs itself once with that context when raised.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .error_types import ErrorType
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Contextual information for error reporting and debugging."""

    connection_id: str | None = None
    username: str | None = None
    event: str | None = None
    request_id: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "connection_id": self.connection_id,
            "username": self.username,
            "event": self.event,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class ChatServerError(Exception):
    """
    Base exception for all chat relay server errors.

    Provides structured error handling with context and metadata
    for proper error categorization and debugging.
    """

    error_type: ErrorType = ErrorType.INTERNAL_ERROR
    log_level: str = "error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        log_method = getattr(logger, self.log_level, logger.error)
        log_method(
            "Chat server error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class MessageValidationError(ChatServerError):
    """An inbound event payload did not match its expected shape."""

    error_type = ErrorType.INVALID_FORMAT
    log_level = "warning"

    def __init__(self, message: str, context: ErrorContext | None = None, event: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.event = event
        if event:
            self.details["event"] = event


class RegistryError(ChatServerError):
    """The connection registry was asked to do something it cannot."""

    error_type = ErrorType.REGISTRY_ERROR

    def __init__(self, message: str, context: ErrorContext | None = None, connection_id: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.connection_id = connection_id
        if connection_id:
            self.details["connection_id"] = connection_id


class ServiceUnavailableError(ChatServerError):
    """A component the request depends on has not been started."""

    error_type = ErrorType.SERVICE_UNAVAILABLE
