"""
Real-time presence and chat relay.

Leaf-first: connection_registry holds the connection -> username map,
messaging.message_broadcaster fans payloads out, and session_gateway wires
Socket.IO events to both.
"""
