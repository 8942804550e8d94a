"""
Bounded in-memory history of relayed chat messages.

Serves the browser client's one-off `GET /api/messages` fetch at startup.
It is a collaborator of the relay, not part of it: the gateway hands each
relayed message over after fan-out, and nothing here survives a restart.
"""

from collections import deque
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger
from .events import ChatMessage, MessageKind

logger = get_logger(__name__)


class MessageHistory:
    """Keeps the most recent ordinary chat messages, oldest first."""

    def __init__(self, max_messages: int = 100) -> None:
        if max_messages < 0:
            raise ValueError("max_messages cannot be negative")
        self.max_messages = max_messages
        self._messages: deque[ChatMessage] = deque(maxlen=max_messages)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def enabled(self) -> bool:
        return self.max_messages > 0

    def record(self, message: ChatMessage) -> None:
        """Remember a relayed message. Announcements are not kept."""
        if not self.enabled or message.kind is MessageKind.SYSTEM:
            return
        self._messages.append(message)

    def messages(self) -> list[dict[str, Any]]:
        """Wire-shaped copies of the stored messages, oldest first."""
        return [message.to_wire() for message in self._messages]

    def clear(self) -> None:
        self._messages.clear()
        logger.debug("Message history cleared")
