"""
Chat history endpoint.

The browser client fetches this once at startup, before it connects to
Socket.IO, to show the conversation so far.
"""

from typing import Any

from fastapi import APIRouter

from ..dependencies import HistoryDep
from ..realtime.message_history import MessageHistory
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

messages_router = APIRouter(prefix="/api", tags=["messages"])


@messages_router.get("/messages")
async def list_messages(history: MessageHistory = HistoryDep) -> list[dict[str, Any]]:
    """
    Return recently relayed chat messages, oldest first.

    Each item has the `chat_message` wire shape: `{user, text, timestamp}`.
    """
    messages = history.messages()
    logger.debug("Chat history requested", count=len(messages))
    return messages
