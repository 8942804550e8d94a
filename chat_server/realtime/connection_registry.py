"""
Connection registry: the live map from connection id to username.

The registry is the only stateful component of the relay core. It is an
explicitly owned object created by the application at startup and handed to
the gateway and broadcaster; nothing reaches it through module globals.

All methods are synchronous. A handler that mutates the registry finishes
the mutation before it awaits anything, so readers never observe a
half-applied change.
"""

import time

from ..exceptions import ErrorContext, RegistryError
from ..structured_logging.enhanced_logging_config import get_logger
from .connection_models import ConnectionMetadata, ConnectionState

logger = get_logger(__name__)


class ConnectionRegistry:
    """
    Tracks open connections and the usernames bound to them.

    A username may be bound to any number of connections. Presence is the
    de-duplicated set of bound usernames.
    """

    def __init__(self) -> None:
        # connection_id -> metadata, for every open connection (identified or not)
        self._connections: dict[str, ConnectionMetadata] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def add_connection(self, connection_id: str) -> ConnectionMetadata:
        """
        Start tracking a freshly accepted transport.

        Re-adding an id that is already tracked keeps the existing entry.
        """
        metadata = self._connections.get(connection_id)
        if metadata is None:
            metadata = ConnectionMetadata(connection_id=connection_id)
            self._connections[connection_id] = metadata
            logger.debug("Connection tracked", connection_id=connection_id, open_connections=len(self))
        return metadata

    def register(self, connection_id: str, username: str) -> ConnectionMetadata:
        """
        Bind a username to a connection.

        Last write wins: re-registering under a different name overwrites the
        old binding without any rename bookkeeping.

        Raises:
            RegistryError: If username is empty or the connection is not open
        """
        if not username:
            raise RegistryError(
                "Cannot register an empty username",
                context=ErrorContext(connection_id=connection_id),
                connection_id=connection_id,
            )

        metadata = self._connections.get(connection_id)
        if metadata is None:
            raise RegistryError(
                "Cannot register a username on a connection that is not open",
                context=ErrorContext(connection_id=connection_id, username=username),
                connection_id=connection_id,
            )

        previous = metadata.username
        metadata.username = username
        metadata.state = ConnectionState.IDENTIFIED
        metadata.identified_at = time.time()

        if previous is not None and previous != username:
            logger.info("Connection re-registered", connection_id=connection_id, previous=previous, username=username)
        return metadata

    def unregister(self, connection_id: str) -> str | None:
        """
        Forget a connection.

        Returns:
            The username that was bound to it, or None. Calling this for an
            id that is not tracked is a no-op that returns None.
        """
        metadata = self._connections.pop(connection_id, None)
        if metadata is None:
            return None
        metadata.state = ConnectionState.CLOSED
        logger.debug(
            "Connection untracked",
            connection_id=connection_id,
            username=metadata.username,
            open_connections=len(self),
        )
        return metadata.username

    def snapshot(self) -> list[str]:
        """
        Usernames with at least one open connection, each listed once.

        Order is not part of the contract.
        """
        return list(
            dict.fromkeys(metadata.username for metadata in self._connections.values() if metadata.username)
        )

    def is_user_still_present(self, username: str) -> bool:
        return any(metadata.username == username for metadata in self._connections.values())

    def count_instances_of(self, username: str) -> int:
        return sum(1 for metadata in self._connections.values() if metadata.username == username)

    def connection_ids(self) -> list[str]:
        """Every open connection, identified or not. These are the fan-out targets."""
        return list(self._connections)

    def get_connection(self, connection_id: str) -> ConnectionMetadata | None:
        return self._connections.get(connection_id)

    def get_username(self, connection_id: str) -> str | None:
        metadata = self._connections.get(connection_id)
        return metadata.username if metadata else None

    def clear(self) -> None:
        """Drop every entry. Used at shutdown."""
        for metadata in self._connections.values():
            metadata.state = ConnectionState.CLOSED
        self._connections.clear()
