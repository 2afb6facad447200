"""FastAPI routers: the WebSocket transport and read-only room views."""

__all__ = ["rooms", "websockets"]
