"""
Test configuration and fixtures for the chat relay server test suite.
"""

import os

# Set environment before any chat_server module builds its configuration
os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_DISABLE_LOGGING", "true")
os.environ.setdefault("SERVER_HOST", "127.0.0.1")
os.environ.setdefault("SERVER_PORT", "54731")

from unittest.mock import AsyncMock, Mock  # noqa: E402

import pytest  # noqa: E402
import structlog  # noqa: E402

from chat_server.config.models import AppConfig, ChatConfig, LoggingConfig  # noqa: E402
from chat_server.realtime.connection_registry import ConnectionRegistry  # noqa: E402
from chat_server.realtime.message_history import MessageHistory  # noqa: E402
from chat_server.realtime.session_gateway import SessionGateway  # noqa: E402
from chat_server.structured_logging.enhanced_logging_config import setup_enhanced_logging  # noqa: E402

TEST_LOGGING_CONFIG = {
    "logging": {
        "environment": "unit_test",
        "level": "DEBUG",
        "disable_logging": True,
    }
}


@pytest.fixture(scope="session")
def test_logging_config() -> dict:
    return TEST_LOGGING_CONFIG


@pytest.fixture(scope="session", autouse=True)
def _configure_logging(test_logging_config):
    """Run the suite through the same structlog pipeline the server uses."""
    setup_enhanced_logging(test_logging_config, force_reconfigure=True)
    yield


@pytest.fixture(autouse=True)
def _isolate_logging_context():
    """Keep bound connection context from leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def test_config() -> AppConfig:
    """Application configuration with file logging off and a small history."""
    return AppConfig(
        logging=LoggingConfig(environment="unit_test", disable_logging=True),
        chat=ChatConfig(history_limit=10),
    )


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def history() -> MessageHistory:
    return MessageHistory(max_messages=10)


@pytest.fixture
def mock_sio():
    """Socket.IO server double recording every emit."""
    sio = Mock()
    sio.emit = AsyncMock()
    sio.on = Mock()
    return sio


@pytest.fixture
def gateway(mock_sio, registry, history) -> SessionGateway:
    return SessionGateway(mock_sio, registry, history=history)


@pytest.fixture
def emitted_to(mock_sio):
    """Return a helper listing the (event, payload) pairs sent to one connection, in order."""

    def _emitted_to(connection_id: str) -> list[tuple[str, object]]:
        return [
            (call.args[0], call.args[1])
            for call in mock_sio.emit.call_args_list
            if call.kwargs.get("to") == connection_id
        ]

    return _emitted_to
