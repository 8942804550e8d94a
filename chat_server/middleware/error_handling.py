"""
Exception handlers for the HTTP routes.

ChatServerError subclasses raised by a route become standardized JSON error
bodies; the status code follows the error's type.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..error_types import ErrorSeverity, ErrorType, create_standard_error_response
from ..exceptions import ChatServerError
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR_TYPE: dict[ErrorType, int] = {
    ErrorType.INVALID_FORMAT: 422,
    ErrorType.SERVICE_UNAVAILABLE: 503,
}


async def chat_server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert a ChatServerError into a standardized error response."""
    if not isinstance(exc, ChatServerError):
        raise exc

    status_code = STATUS_BY_ERROR_TYPE.get(exc.error_type, 500)
    severity = ErrorSeverity.HIGH if status_code >= 500 else ErrorSeverity.MEDIUM
    logger.debug("Returning error response", path=request.url.path, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content=create_standard_error_response(
            exc.error_type,
            exc.message,
            user_friendly=exc.user_friendly,
            details=exc.details,
            severity=severity,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers for the application's error hierarchy."""
    app.add_exception_handler(ChatServerError, chat_server_error_handler)
    logger.debug("Error handlers registered")
