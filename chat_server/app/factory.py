"""
FastAPI application factory for the chat relay server.

This module handles FastAPI app creation, middleware configuration,
router registration, and wrapping the app in the Socket.IO ASGI server.
"""

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..api.health import health_router
from ..api.messages import messages_router
from ..config import get_config
from ..config.models import AppConfig
from ..container import ApplicationContainer
from ..middleware.error_handling import register_error_handlers
from ..structured_logging.enhanced_logging_config import get_logger
from .lifespan import lifespan

logger = get_logger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The relay components live on `app.state.container` and are started by
    the lifespan handler.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    config = config or get_config()

    app = FastAPI(
        title="Chat Relay API",
        description="Real-time group chat relay with presence tracking",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.container = ApplicationContainer(config)

    logger.info(
        "CORS configuration",
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_credentials=config.cors.allow_credentials,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_credentials=config.cors.allow_credentials,
        allow_methods=config.cors.allow_methods,
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(messages_router)

    return app


def create_asgi_app(config: AppConfig | None = None) -> socketio.ASGIApp:
    """
    Build the served ASGI application.

    Socket.IO traffic under /socket.io/ goes to the Socket.IO server;
    everything else, lifespan events included, goes to FastAPI.
    """
    app = create_app(config)
    return socketio.ASGIApp(app.state.container.sio, other_asgi_app=app)
