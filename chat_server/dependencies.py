"""
Dependency injection providers for the HTTP routes.

Routes reach the relay only through the ApplicationContainer stored on
app.state, never through module globals.
"""

from fastapi import Depends, Request

from .container import ApplicationContainer
from .error_types import ErrorMessages
from .exceptions import ErrorContext, ServiceUnavailableError
from .realtime.connection_registry import ConnectionRegistry
from .realtime.message_history import MessageHistory


def get_container(request: Request) -> ApplicationContainer:
    """
    Get the application container from request state.

    Raises:
        ServiceUnavailableError: If the container is missing or not started
    """
    container = getattr(request.app.state, "container", None)
    if container is None or not container.is_initialized:
        raise ServiceUnavailableError(
            "ApplicationContainer not initialized",
            context=ErrorContext(request_id=request.headers.get("x-request-id")),
            user_friendly=ErrorMessages.SERVICE_UNAVAILABLE,
        )
    return container


def get_registry(container: ApplicationContainer = Depends(get_container)) -> ConnectionRegistry:
    assert container.registry is not None
    return container.registry


def get_history(container: ApplicationContainer = Depends(get_container)) -> MessageHistory:
    assert container.history is not None
    return container.history


RegistryDep = Depends(get_registry)
HistoryDep = Depends(get_history)
