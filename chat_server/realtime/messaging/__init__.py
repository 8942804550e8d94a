"""
Messaging components for the relay.

This package provides fan-out delivery to every open connection.
"""

from .message_broadcaster import MessageBroadcaster

__all__ = ["MessageBroadcaster"]
