"""
Tests for wire event models and payload parsing.
"""

import pytest
from pydantic import ValidationError

from chat_server.exceptions import MessageValidationError
from chat_server.realtime.envelope import strip_none, utc_now_z
from chat_server.realtime.events import (
    CHAT_MESSAGE,
    USER_REGISTER,
    ChatMessage,
    ChatMessagePayload,
    MessageKind,
    RegisterPayload,
    parse_payload,
)


class TestChatMessage:
    """Tests for the ChatMessage model."""

    def test_text_is_trimmed(self):
        message = ChatMessage(user="bob", text="  hi  ")

        assert message.text == "hi"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_blank_text_rejected(self, text):
        with pytest.raises(ValidationError):
            ChatMessage(user="bob", text=text)

    def test_timestamp_is_server_assigned_utc(self):
        message = ChatMessage(user="bob", text="hi")

        assert message.timestamp.endswith("Z")
        assert "T" in message.timestamp

    def test_message_is_immutable(self):
        message = ChatMessage(user="bob", text="hi")

        with pytest.raises(ValidationError):
            message.text = "changed"

    def test_ordinary_wire_shape_has_no_type(self):
        message = ChatMessage(user="bob", text="hi", timestamp="2024-01-01T00:00:00.000Z")

        assert message.to_wire() == {"user": "bob", "text": "hi", "timestamp": "2024-01-01T00:00:00.000Z"}

    def test_system_message_wire_shape(self):
        message = ChatMessage.system("bob has left the chat.")

        wire = message.to_wire()

        assert message.kind is MessageKind.SYSTEM
        assert wire["user"] == "System"
        assert wire["type"] == "system"


class TestPayloadParsing:
    """Tests for parse_payload and the inbound payload models."""

    def test_register_payload_trims_username(self):
        payload = parse_payload(RegisterPayload, {"username": "  alice "}, USER_REGISTER, "c1")

        assert payload.username == "alice"

    @pytest.mark.parametrize("data", [None, {}, {"username": ""}, {"username": "   "}, {"username": None}])
    def test_register_payload_without_username(self, data):
        payload = parse_payload(RegisterPayload, data, USER_REGISTER, "c1")

        assert payload.username is None

    def test_register_payload_ignores_extra_fields(self):
        payload = parse_payload(RegisterPayload, {"username": "alice", "avatar": "x"}, USER_REGISTER)

        assert payload.username == "alice"

    def test_non_string_username_raises(self):
        with pytest.raises(MessageValidationError) as exc_info:
            parse_payload(RegisterPayload, {"username": 42}, USER_REGISTER, "c1")

        assert exc_info.value.details["event"] == USER_REGISTER
        assert exc_info.value.details["errors"]
        assert exc_info.value.context.connection_id == "c1"

    @pytest.mark.parametrize("data", ["alice", 42, ["alice"]])
    def test_non_object_payload_raises(self, data):
        with pytest.raises(MessageValidationError):
            parse_payload(RegisterPayload, data, USER_REGISTER, "c1")

    def test_chat_payload_normalizes_text(self):
        payload = parse_payload(ChatMessagePayload, {"user": "bob", "text": "  hi  "}, CHAT_MESSAGE)

        assert payload.user == "bob"
        assert payload.text == "hi"

    def test_chat_payload_missing_text_is_empty(self):
        payload = parse_payload(ChatMessagePayload, {"user": "bob", "text": None}, CHAT_MESSAGE)

        assert payload.text == ""

    def test_chat_payload_non_string_text_raises(self):
        with pytest.raises(MessageValidationError):
            parse_payload(ChatMessagePayload, {"text": {"nested": True}}, CHAT_MESSAGE)


class TestEnvelopeHelpers:
    def test_utc_now_z_format(self):
        value = utc_now_z()

        assert value.endswith("Z")
        assert "+00:00" not in value

    def test_strip_none_drops_only_none(self):
        assert strip_none({"a": 1, "b": None, "c": "", "d": 0}) == {"a": 1, "c": "", "d": 0}
