"""
Data models for connection management.

This module defines data structures used by the connection registry
for tracking connection state and metadata.
"""

import time
from dataclasses import dataclass, field
from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of one transport session."""

    CONNECTED = "connected"  # transport open, no username bound
    IDENTIFIED = "identified"  # username bound via user_register
    CLOSED = "closed"  # terminal


@dataclass
class ConnectionMetadata:
    """
    Metadata for one open Socket.IO connection.

    A username may appear on several connections at once (one per browser
    tab or device); the connection id is what is unique.
    """

    connection_id: str
    username: str | None = None
    state: ConnectionState = ConnectionState.CONNECTED
    established_at: float = field(default_factory=time.time)
    identified_at: float | None = None

    @property
    def is_identified(self) -> bool:
        return self.state is ConnectionState.IDENTIFIED and self.username is not None
