"""
Group chat relay server.

Tracks which usernames are online across Socket.IO connections, announces
joins and leaves, and fans chat messages out to every connected client.
"""

__version__ = "0.1.0"
