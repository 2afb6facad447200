"""
Real-time shared code rooms.

Clients attach to a named room over a WebSocket, share one text buffer and
language tag with last-write-wins replication, and see who else is present.
"""

__all__ = ["app", "config", "events", "executor", "registry", "schemas", "session"]
