"""
Tests for MessageBroadcaster fan-out.
"""

from unittest.mock import AsyncMock

import pytest
import structlog

from chat_server.realtime.connection_registry import ConnectionRegistry
from chat_server.realtime.events import CHAT_MESSAGE, USER_LIST_UPDATE, ChatMessage, MessageKind
from chat_server.realtime.messaging.message_broadcaster import MessageBroadcaster


class TestMessageBroadcaster:
    """Tests for user list publication, announcements and chat fan-out."""

    @pytest.fixture
    def registry(self):
        registry = ConnectionRegistry()
        for connection_id in ("c1", "c2", "c3"):
            registry.add_connection(connection_id)
        registry.register("c1", "alice")
        registry.register("c2", "alice")
        return registry

    @pytest.fixture
    def send(self):
        return AsyncMock()

    @pytest.fixture
    def broadcaster(self, registry, send):
        return MessageBroadcaster(registry, send)

    @pytest.mark.asyncio
    async def test_publish_user_list_reaches_every_connection(self, broadcaster, send):
        stats = await broadcaster.publish_user_list()

        assert send.await_count == 3
        targets = sorted(call.args[2] for call in send.await_args_list)
        assert targets == ["c1", "c2", "c3"]
        for call in send.await_args_list:
            assert call.args[0] == USER_LIST_UPDATE
            assert call.args[1] == ["alice"]
        assert stats["total_targets"] == 3
        assert stats["successful_deliveries"] == 3
        assert stats["failed_deliveries"] == 0

    @pytest.mark.asyncio
    async def test_publish_user_list_with_no_connections(self, send):
        broadcaster = MessageBroadcaster(ConnectionRegistry(), send)

        stats = await broadcaster.publish_user_list()

        send.assert_not_awaited()
        assert stats["total_targets"] == 0

    @pytest.mark.asyncio
    async def test_announce_sends_system_message(self, broadcaster, send):
        message = await broadcaster.announce("alice has joined the chat.")

        assert message.kind is MessageKind.SYSTEM
        assert message.user == "System"
        payload = send.await_args_list[0].args[1]
        assert send.await_args_list[0].args[0] == CHAT_MESSAGE
        assert payload["user"] == "System"
        assert payload["text"] == "alice has joined the chat."
        assert payload["type"] == "system"
        assert payload["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_announce_uses_configured_author(self, registry, send):
        broadcaster = MessageBroadcaster(registry, send, system_author="Relay")

        message = await broadcaster.announce("hello")

        assert message.user == "Relay"
        assert send.await_args_list[0].args[1]["user"] == "Relay"

    @pytest.mark.asyncio
    async def test_broadcast_chat_message_includes_sender(self, broadcaster, send):
        message = ChatMessage(user="alice", text="hi")

        stats = await broadcaster.broadcast_chat_message(message)

        assert stats["successful_deliveries"] == 3
        assert "c1" in [call.args[2] for call in send.await_args_list]
        payload = send.await_args_list[0].args[1]
        assert payload == {"user": "alice", "text": "hi", "timestamp": message.timestamp}

    @pytest.mark.asyncio
    async def test_failed_send_does_not_block_other_connections(self, registry):
        delivered = []

        async def flaky_send(event, payload, connection_id):
            if connection_id == "c2":
                raise ConnectionError("socket closed")
            delivered.append(connection_id)

        broadcaster = MessageBroadcaster(registry, flaky_send)

        stats = await broadcaster.publish_user_list()

        assert sorted(delivered) == ["c1", "c3"]
        assert stats["successful_deliveries"] == 2
        assert stats["failed_deliveries"] == 1

    @pytest.mark.asyncio
    async def test_every_send_failing_is_not_raised(self, registry):
        send = AsyncMock(side_effect=RuntimeError("boom"))
        broadcaster = MessageBroadcaster(registry, send)

        stats = await broadcaster.broadcast_chat_message(ChatMessage(user="alice", text="hi"))

        assert stats["failed_deliveries"] == 3
        assert stats["successful_deliveries"] == 0

    @pytest.mark.asyncio
    async def test_fan_out_through_configured_structlog(self, registry, caplog):
        assert structlog.get_config()["wrapper_class"] is structlog.stdlib.BoundLogger

        async def flaky_send(event, payload, connection_id):
            if connection_id == "c3":
                raise ConnectionError("socket closed")

        broadcaster = MessageBroadcaster(registry, flaky_send)

        with caplog.at_level("DEBUG"):
            stats = await broadcaster.publish_user_list()
            message = await broadcaster.announce("alice has joined the chat.")

        assert stats["event_name"] == USER_LIST_UPDATE
        assert stats["failed_deliveries"] == 1
        assert message.text == "alice has joined the chat."
        assert "Fan-out complete" in caplog.text
        assert "error_category='delivery_failed'" in caplog.text
