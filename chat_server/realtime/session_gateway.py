"""
Session gateway: wires Socket.IO events to the registry and broadcaster.

Each connection moves CONNECTED -> IDENTIFIED -> CLOSED. Handlers run one at
a time under a single lock, so the registry behaves as if a single worker
processed connect, register, message and disconnect events in order.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import socketio

from ..error_types import ErrorMessages
from ..exceptions import MessageValidationError
from ..structured_logging.enhanced_logging_config import (
    bind_connection_context,
    clear_connection_context,
    get_logger,
    log_exception_once,
)
from .connection_registry import ConnectionRegistry
from .events import (
    CHAT_MESSAGE,
    HELLO_FROM_CLIENT,
    HELLO_FROM_SERVER,
    HELLO_REPLY,
    SEND_CHAT_MESSAGE,
    USER_REGISTER,
    ChatMessage,
    ChatMessagePayload,
    HelloPayload,
    RegisterPayload,
    parse_payload,
)
from .message_history import MessageHistory
from .messaging.message_broadcaster import MessageBroadcaster

logger = get_logger(__name__)


def joined_text(username: str) -> str:
    return f"{username} has joined the chat."


def left_text(username: str) -> str:
    return f"{username} has left the chat."


class SessionGateway:
    """
    Handles the per-connection event stream.

    The gateway is the only writer of the registry. Chat messages are relayed
    by the server itself: every message goes out to every open connection,
    including the sender's, and is then handed to the history collaborator.
    """

    def __init__(
        self,
        sio: socketio.AsyncServer,
        registry: ConnectionRegistry,
        history: MessageHistory | None = None,
        system_author: str = "System",
    ) -> None:
        """
        Initialize the gateway.

        Args:
            sio: Socket.IO server delivering and receiving events
            registry: Registry owned by the application
            history: Optional sink for relayed messages
            system_author: Author name stamped on presence announcements
        """
        self.sio = sio
        self.registry = registry
        self.history = history
        self.broadcaster = MessageBroadcaster(registry, self._send, system_author=system_author)
        self._event_lock = asyncio.Lock()

    def attach(self) -> None:
        """Register this gateway's handlers on the Socket.IO server."""
        self.sio.on("connect", self.handle_connect)
        self.sio.on("disconnect", self.handle_disconnect)
        self.sio.on(USER_REGISTER, self.handle_register)
        self.sio.on(CHAT_MESSAGE, self.handle_chat_message)
        self.sio.on(SEND_CHAT_MESSAGE, self.handle_send_chat_message)
        self.sio.on(HELLO_FROM_CLIENT, self.handle_hello)
        logger.debug("Session gateway attached to Socket.IO server")

    async def shutdown(self) -> None:
        """Forget every connection. The transport closes the sockets itself."""
        async with self._event_lock:
            open_connections = len(self.registry)
            self.registry.clear()
        logger.info("Session gateway shut down", dropped_connections=open_connections)

    async def _send(self, event: str, payload: Any, connection_id: str) -> None:
        await self.sio.emit(event, payload, to=connection_id)

    @asynccontextmanager
    async def _handling(self, connection_id: str, event: str) -> AsyncIterator[None]:
        """
        Serialize one event and scope its logging context.

        Failures are logged here and go no further: a bad event degrades only
        the connection that sent it.
        """
        async with self._event_lock:
            bind_connection_context(connection_id, self.registry.get_username(connection_id), socket_event=event)
            try:
                yield
            except MessageValidationError:
                # logged when raised
                pass
            except Exception as e:  # pylint: disable=broad-exception-caught
                log_exception_once(logger, "error", "Error handling event", exc=e, exc_info=True)
            finally:
                clear_connection_context()

    async def handle_connect(self, sid: str, environ: dict[str, Any] | None = None, auth: Any = None) -> None:
        """Track a freshly accepted transport; nothing is broadcast yet."""
        async with self._handling(sid, "connect"):
            self.registry.add_connection(sid)
            logger.info("New connection established", open_connections=len(self.registry))

    async def handle_register(self, sid: str, data: Any = None) -> None:
        """
        Bind a username to the connection and announce presence.

        An empty or missing username is ignored and the connection stays
        unidentified.
        """
        async with self._handling(sid, USER_REGISTER):
            payload = parse_payload(RegisterPayload, data, USER_REGISTER, sid)
            if not payload.username:
                logger.info("Ignoring registration without a username", reason=ErrorMessages.MISSING_USERNAME)
                return

            if sid not in self.registry:
                # registration queued behind this connection's disconnect
                logger.info("Ignoring registration for a closed connection", username=payload.username)
                return

            username = payload.username
            previous_count = self.registry.count_instances_of(username)
            self.registry.register(sid, username)
            bind_connection_context(sid, username)
            logger.info("User registered", instances=self.registry.count_instances_of(username))

            await self.broadcaster.publish_user_list()
            if previous_count == 0 and self.registry.count_instances_of(username) == 1:
                await self.broadcaster.announce(joined_text(username))

    async def handle_chat_message(self, sid: str, data: Any = None) -> None:
        async with self._handling(sid, CHAT_MESSAGE):
            await self._relay(sid, data, CHAT_MESSAGE)

    async def handle_send_chat_message(self, sid: str, data: Any = None) -> None:
        async with self._handling(sid, SEND_CHAT_MESSAGE):
            await self._relay(sid, data, SEND_CHAT_MESSAGE)

    async def _relay(self, sid: str, data: Any, event: str) -> ChatMessage | None:
        """
        Fan a chat message out to every connection.

        Only identified connections may send; the author is the username bound
        to the sending connection. Text is trimmed and blank text is dropped.
        """
        payload = parse_payload(ChatMessagePayload, data, event, sid)

        metadata = self.registry.get_connection(sid)
        if metadata is None or not metadata.is_identified or metadata.username is None:
            logger.warning("Dropping chat message from unidentified connection", reason=ErrorMessages.NOT_IDENTIFIED)
            return None
        if not payload.text:
            logger.debug("Dropping empty chat message")
            return None
        if payload.user and payload.user != metadata.username:
            logger.warning("Chat payload author differs from registered username", payload_user=payload.user)

        message = ChatMessage(user=metadata.username, text=payload.text)
        stats = await self.broadcaster.broadcast_chat_message(message)
        logger.info(
            "Chat message relayed",
            length=len(message.text),
            delivered=stats["successful_deliveries"],
            failed=stats["failed_deliveries"],
        )
        if self.history is not None:
            self.history.record(message)
        return message

    async def handle_hello(self, sid: str, data: Any = None) -> None:
        """Liveness handshake: answer the sender only."""
        async with self._handling(sid, HELLO_FROM_CLIENT):
            payload = parse_payload(HelloPayload, data, HELLO_FROM_CLIENT, sid)
            logger.info("Received hello from client", message=payload.message)
            await self._send(HELLO_FROM_SERVER, {"message": HELLO_REPLY}, sid)

    async def handle_disconnect(self, sid: str, reason: Any = None) -> None:
        """
        Clean up after a closed transport, whatever closed it.

        The user list is always republished. "left" is announced only when
        the connection had a username and no other connection still holds it.
        """
        async with self._handling(sid, "disconnect"):
            username = self.registry.unregister(sid)
            logger.info(
                "Connection closed",
                username=username,
                reason=str(reason) if reason is not None else None,
                open_connections=len(self.registry),
            )

            await self.broadcaster.publish_user_list()
            if username and not self.registry.is_user_still_present(username):
                await self.broadcaster.announce(left_text(username))
