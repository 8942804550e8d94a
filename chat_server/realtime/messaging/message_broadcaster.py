"""
Presence and chat broadcasting.

Every payload is sent to each open connection individually and concurrently.
A send that fails is logged and counted; it never stops delivery to the
remaining connections and is never retried.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ...error_types import ErrorType
from ...structured_logging.enhanced_logging_config import get_logger
from ..events import CHAT_MESSAGE, USER_LIST_UPDATE, ChatMessage

if TYPE_CHECKING:
    from ..connection_registry import ConnectionRegistry

logger = get_logger(__name__)

# (event, payload, connection_id) -> awaitable send
SendCallback = Callable[[str, Any, str], Awaitable[Any]]


class MessageBroadcaster:
    """
    Pushes the user list, announcements and chat messages to every connection.

    The broadcaster only reads the registry; the gateway owns all mutation.
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        send_callback: SendCallback,
        system_author: str = "System",
    ) -> None:
        """
        Initialize the message broadcaster.

        Args:
            registry: ConnectionRegistry providing targets and presence
            send_callback: Coroutine function delivering one event to one connection
            system_author: Author name stamped on announcements
        """
        self.registry = registry
        self.send = send_callback
        self.system_author = system_author

    async def publish_user_list(self) -> dict[str, Any]:
        """Send the current de-duplicated user list to every connection."""
        users = self.registry.snapshot()
        stats = await self._fan_out(USER_LIST_UPDATE, users)
        logger.info("Active users updated", unique_users=len(users), delivered=stats["successful_deliveries"])
        return stats

    async def announce(self, text: str) -> ChatMessage:
        """Send a system announcement to every connection and return it."""
        message = ChatMessage.system(text, author=self.system_author)
        await self._fan_out(CHAT_MESSAGE, message.to_wire())
        logger.info("System announcement broadcast", text=message.text)
        return message

    async def broadcast_chat_message(self, message: ChatMessage) -> dict[str, Any]:
        """Send a chat message to every connection, the author's included."""
        return await self._fan_out(CHAT_MESSAGE, message.to_wire())

    async def _fan_out(self, event: str, payload: Any) -> dict[str, Any]:
        """
        Deliver one event to every open connection.

        Returns:
            dict: Delivery statistics
        """
        targets = self.registry.connection_ids()
        stats: dict[str, Any] = {
            "event_name": event,
            "total_targets": len(targets),
            "successful_deliveries": 0,
            "failed_deliveries": 0,
        }
        if not targets:
            return stats

        results = await asyncio.gather(
            *[self.send(event, payload, connection_id) for connection_id in targets],
            return_exceptions=True,
        )

        for connection_id, result in zip(targets, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "Delivery to connection failed",
                    event_name=event,
                    connection_id=connection_id,
                    error=str(result),
                    error_type=type(result).__name__,
                    error_category=ErrorType.DELIVERY_FAILED.value,
                )
                stats["failed_deliveries"] += 1
            else:
                stats["successful_deliveries"] += 1

        logger.debug("Fan-out complete", **stats)
        return stats
