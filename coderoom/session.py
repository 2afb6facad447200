"""Transport session: one live client connection and its outbound queue."""
from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from typing import Any, Optional

from .schemas import OutboundEvent, dump_outbound

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    ANONYMOUS = "anonymous"
    IN_ROOM = "in_room"


class Session:
    """A connected client.

    ``send`` never blocks: messages are queued and drained to the socket by
    :meth:`writer` in the order they were sent. Messages sent after
    :meth:`close`, or after the writer failed to deliver one, are dropped.
    """

    def __init__(self, ws: Any = None, session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.ws = ws
        self.state = SessionState.ANONYMOUS
        self.room_id: Optional[str] = None
        self.display_name: Optional[str] = None
        self.outbox: asyncio.Queue[Optional[dict]] = asyncio.Queue()
        self.writable = True

    def __repr__(self) -> str:
        return f"Session({self.session_id[:8]}, state={self.state.value}, room={self.room_id!r})"

    # -------------------- Membership bookkeeping -------------------- #

    @property
    def in_room(self) -> bool:
        return self.state is SessionState.IN_ROOM

    def enter(self, room_id: str, display_name: str) -> None:
        self.room_id = room_id
        self.display_name = display_name
        self.state = SessionState.IN_ROOM

    def exit(self) -> None:
        self.room_id = None
        self.display_name = None
        if self.state is SessionState.IN_ROOM:
            self.state = SessionState.ANONYMOUS

    # -------------------- Outbound -------------------- #

    def send(self, event: OutboundEvent) -> None:
        if self.state is SessionState.DISCONNECTED or not self.writable:
            return
        self.outbox.put_nowait(dump_outbound(event))

    def close(self) -> None:
        """Mark the session disconnected and wake the writer so it can exit."""
        if self.state is SessionState.DISCONNECTED:
            return
        self.room_id = None
        self.display_name = None
        self.state = SessionState.DISCONNECTED
        self.outbox.put_nowait(None)

    async def writer(self) -> None:
        """Drain the outbox to the websocket until the session is closed."""
        while True:
            message = await self.outbox.get()
            if message is None:
                return
            try:
                await self.ws.send_json(message)
            except Exception:
                # Peer went away; queued and future messages are undeliverable.
                logger.debug("dropping messages for %r, send failed", self)
                self.writable = False
                while not self.outbox.empty():
                    self.outbox.get_nowait()
                return


__all__ = ["Session", "SessionState"]
