"""
Application lifecycle management for the chat relay server.

Startup initializes the ApplicationContainer held on app.state; shutdown
tears it down again.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("chat_server.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the relay components before serving and stop them afterwards."""
    container = app.state.container
    logger.info("Starting chat relay server...")
    await container.initialize()
    logger.info(
        "Chat relay server started",
        host=container.config.server.host,
        port=container.config.server.port,
    )

    yield

    logger.info("Shutting down chat relay server...")
    try:
        await container.shutdown()
    except asyncio.CancelledError as e:
        logger.warning("Shutdown interrupted", error=str(e), error_type=type(e).__name__)
        raise
    logger.info("Chat relay server shutdown complete")
