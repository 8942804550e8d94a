"""
Wire event names and payload models.

Event names match the browser client's socket.io-client calls exactly;
changing one breaks the client.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ErrorContext, MessageValidationError
from .envelope import strip_none, utc_now_z

# client -> server
USER_REGISTER = "user_register"
SEND_CHAT_MESSAGE = "send_chat_message"
HELLO_FROM_CLIENT = "hello_from_client"

# server -> client
USER_LIST_UPDATE = "user_list_update"
HELLO_FROM_SERVER = "hello_from_server"

# both directions
CHAT_MESSAGE = "chat_message"

HELLO_REPLY = "Hello back! Connection acknowledged."


class MessageKind(str, Enum):
    """Kinds of chat-shaped messages."""

    ORDINARY = "ordinary"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """One unit of conversation. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    user: str
    text: str
    timestamp: str = Field(default_factory=utc_now_z)
    kind: MessageKind = MessageKind.ORDINARY

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message text cannot be empty")
        return v

    @classmethod
    def system(cls, text: str, author: str = "System") -> "ChatMessage":
        """Build a presence announcement."""
        return cls(user=author, text=text, kind=MessageKind.SYSTEM)

    def to_wire(self) -> dict[str, Any]:
        """
        Serialize to the `chat_message` payload shape.

        `type` is only present for system announcements.
        """
        return strip_none(
            {
                "user": self.user,
                "text": self.text,
                "timestamp": self.timestamp,
                "type": "system" if self.kind is MessageKind.SYSTEM else None,
            }
        )


class RegisterPayload(BaseModel):
    """`user_register` payload: `{username}`."""

    model_config = ConfigDict(extra="ignore")

    username: str | None = None

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, v: Any) -> str | None:
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("username must be a string")
        return v.strip() or None


class ChatMessagePayload(BaseModel):
    """`chat_message` / `send_chat_message` payload: `{user, text}`."""

    model_config = ConfigDict(extra="ignore")

    user: str | None = None
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if not isinstance(v, str):
            raise ValueError("text must be a string")
        return v.strip()


class HelloPayload(BaseModel):
    """`hello_from_client` payload: `{message}`."""

    model_config = ConfigDict(extra="ignore")

    message: str = ""


def parse_payload(model: type[BaseModel], data: Any, event: str, connection_id: str | None = None) -> Any:
    """
    Validate an inbound event payload against its model.

    Raises:
        MessageValidationError: If the payload is not an object or fails validation
    """
    context = ErrorContext(connection_id=connection_id, event=event)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MessageValidationError(
            f"Expected an object payload for '{event}', got {type(data).__name__}",
            context=context,
            event=event,
        )
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MessageValidationError(
            f"Invalid payload for '{event}'",
            context=context,
            event=event,
            details={"errors": e.errors(include_url=False)},
        ) from e
