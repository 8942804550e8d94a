"""
Chat relay server - main application entry point.

Importing this module configures logging and builds the served ASGI app
(`chat_server.main:app`), which uvicorn can load directly. Running it, or the
`chat-server` console script, starts uvicorn on the configured host and port.
"""

import uvicorn

from .app.factory import create_asgi_app
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging

# Early logging setup - must happen before any logger creation
config = get_config()
setup_enhanced_logging(config.to_legacy_dict())

logger = get_logger(__name__)
logger.info("Logging setup completed", environment=config.logging.environment)

app = create_asgi_app(config)


def main() -> None:
    """Serve the application with uvicorn."""
    logger.info("Socket.IO listening", host=config.server.host, port=config.server.port)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_config=None,
        access_log=True,
    )


if __name__ == "__main__":
    main()
