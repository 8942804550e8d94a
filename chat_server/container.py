"""
Application container for the chat relay server.

Owns the process-lifetime instances of the relay: the Socket.IO server, the
connection registry, the message history and the session gateway. Nothing in
the relay is a module-level singleton; everything reachable at runtime hangs
off one container stored on `app.state.container`.

USAGE:
    # In application startup (lifespan.py):
    container = ApplicationContainer(config)
    await container.initialize()

    # In route dependencies:
    def get_history(request: Request) -> MessageHistory:
        return request.app.state.container.history

    # In tests:
    container = ApplicationContainer(config)
    await container.initialize()
    gateway = container.gateway
"""

from typing import TYPE_CHECKING

import socketio

from .structured_logging.enhanced_logging_config import get_logger

if TYPE_CHECKING:
    from .config.models import AppConfig
    from .realtime.connection_registry import ConnectionRegistry
    from .realtime.message_history import MessageHistory
    from .realtime.session_gateway import SessionGateway

logger = get_logger(__name__)


def create_socketio_server(config: "AppConfig") -> socketio.AsyncServer:
    """Build the ASGI Socket.IO server with the configured allowed origins."""
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=list(config.cors.allow_origins),
        cors_credentials=config.cors.allow_credentials,
        logger=False,
        engineio_logger=False,
    )


class ApplicationContainer:
    """Holds and wires the relay components for one server process."""

    def __init__(self, config: "AppConfig") -> None:
        self.config = config
        # Created eagerly: the ASGI wrapper needs it before startup runs
        self.sio: socketio.AsyncServer = create_socketio_server(config)

        self.registry: ConnectionRegistry | None = None
        self.history: MessageHistory | None = None
        self.gateway: SessionGateway | None = None

        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create the registry, history and gateway and attach the gateway's handlers."""
        if self._initialized:
            logger.warning("ApplicationContainer already initialized")
            return

        from .realtime.connection_registry import ConnectionRegistry
        from .realtime.message_history import MessageHistory
        from .realtime.session_gateway import SessionGateway

        self.registry = ConnectionRegistry()
        self.history = MessageHistory(max_messages=self.config.chat.history_limit)
        self.gateway = SessionGateway(
            self.sio,
            self.registry,
            history=self.history,
            system_author=self.config.chat.system_author,
        )
        self.gateway.attach()

        self._initialized = True
        logger.info(
            "ApplicationContainer initialized",
            history_limit=self.config.chat.history_limit,
            allowed_origins=self.config.cors.allow_origins,
        )

    async def shutdown(self) -> None:
        """Tear down the gateway and drop in-memory state."""
        if not self._initialized:
            return

        if self.gateway is not None:
            await self.gateway.shutdown()
        if self.history is not None:
            self.history.clear()

        self._initialized = False
        logger.info("ApplicationContainer shut down")
