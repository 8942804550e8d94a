"""
Centralized error types and constants for the chat relay server.

This module defines standardized error types so that the relay core, the
HTTP routes and the logs all categorize failures the same way.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Standardized error types for consistent categorization."""

    # Validation Errors
    INVALID_FORMAT = "invalid_format"

    # Presence and session errors
    REGISTRY_ERROR = "registry_error"

    # System
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL_ERROR = "internal_error"

    # Real-time Communication
    DELIVERY_FAILED = "delivery_failed"


class ErrorSeverity(Enum):
    """Error severity levels for logging and handling."""

    MEDIUM = "medium"
    HIGH = "high"


def create_standard_error_response(
    error_type: ErrorType,
    message: str,
    user_friendly: str | None = None,
    details: dict[str, Any] | None = None,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
) -> dict[str, Any]:
    """
    Create a standardized error response body for the HTTP routes.

    Args:
        error_type: The type of error
        message: Technical error message
        user_friendly: User-friendly error message (optional)
        details: Additional error details (optional)
        severity: Error severity level (optional)

    Returns:
        Standardized error response dictionary
    """
    return {
        "error": {
            "type": error_type.value,
            "message": message,
            "user_friendly": user_friendly or message,
            "details": details or {},
            "severity": severity.value,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    }


class ErrorMessages:
    """User-facing error message constants."""

    MISSING_USERNAME = "A username is required"
    NOT_IDENTIFIED = "Register a username before sending messages"
    SERVICE_UNAVAILABLE = "Service temporarily unavailable"
