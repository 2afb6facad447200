"""In-memory registry of rooms, their members and their shared document.

The registry is a plain object owned by whoever creates it (the FastAPI app
factory in production, individual tests otherwise). It performs no I/O and
never awaits, so every call is atomic with respect to the event loop.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Union

from .constants import DEFAULT_BUFFER, DEFAULT_LANGUAGE
from .schemas import RoomSummary
from .session import Session

logger = logging.getLogger(__name__)


class _RoomRemoved:
    """Sentinel returned by :meth:`SessionRegistry.leave` when the last member left."""

    def __repr__(self) -> str:
        return "ROOM_REMOVED"


ROOM_REMOVED = _RoomRemoved()

LeaveResult = Union[List[str], _RoomRemoved, None]


@dataclass
class DocumentState:
    buffer: str
    language: str


class Room:
    """A live collaboration space: one buffer, one language tag, some members."""

    def __init__(self, room_id: str, buffer: str = DEFAULT_BUFFER, language: str = DEFAULT_LANGUAGE):
        self.room_id = room_id
        self.buffer = buffer
        self.language = language
        # display name -> bound transport session (None when joined without one)
        self.members: Dict[str, Optional[Session]] = {}

    def __repr__(self) -> str:
        return f"Room({self.room_id!r}, members={self.member_names()})"

    # -------------------- Member management -------------------- #

    def add_member(self, display_name: str, session: Optional[Session] = None) -> None:
        if display_name in self.members and session is None:
            return
        self.members[display_name] = session

    def remove_member(self, display_name: str) -> bool:
        if display_name not in self.members:
            return False
        del self.members[display_name]
        return True

    def member_names(self) -> List[str]:
        """Presence list in join order."""
        return list(self.members)

    def session_for(self, display_name: str) -> Optional[Session]:
        return self.members.get(display_name)

    def peers(self, exclude: Optional[Session] = None) -> List[Session]:
        """Every bound session in the room except *exclude*."""
        return [s for s in self.members.values() if s is not None and s is not exclude]

    @property
    def document(self) -> DocumentState:
        return DocumentState(buffer=self.buffer, language=self.language)


class SessionRegistry:
    """Owns room -> members and member -> room, plus per-room document state."""

    def __init__(self, default_buffer: str = DEFAULT_BUFFER, default_language: str = DEFAULT_LANGUAGE):
        self.default_buffer = default_buffer
        self.default_language = default_language
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    # -------------------- Lifecycle -------------------- #

    def create_or_join(self, room_id: str, display_name: str, session: Optional[Session] = None) -> List[str]:
        """Add *display_name* to *room_id*, creating the room on first use.

        Any string is accepted for either argument. Joining twice under the
        same name is not an error; the presence list holds each name once.
        Returns the presence list after the join.
        """
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, buffer=self.default_buffer, language=self.default_language)
            self._rooms[room_id] = room
            logger.info("room %r created", room_id)
        room.add_member(display_name, session)
        return room.member_names()

    def leave(self, room_id: str, display_name: str) -> LeaveResult:
        """Remove *display_name* from *room_id*.

        Returns the remaining presence list, ``ROOM_REMOVED`` if the room was
        emptied and deleted, or ``None`` when there was nothing to remove.
        """
        room = self._rooms.get(room_id)
        if room is None or not room.remove_member(display_name):
            return None
        if not room.members:
            del self._rooms[room_id]
            logger.info("room %r removed", room_id)
            return ROOM_REMOVED
        return room.member_names()

    # -------------------- Document state -------------------- #

    def update_document(self, room_id: str, buffer: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None:
            room.buffer = buffer

    def update_language(self, room_id: str, language: str) -> None:
        room = self._rooms.get(room_id)
        if room is not None:
            room.language = language

    def document(self, room_id: str) -> Optional[DocumentState]:
        room = self._rooms.get(room_id)
        return room.document if room is not None else None

    # -------------------- Read-only views -------------------- #

    def current_members(self, room_id: str) -> List[str]:
        room = self._rooms.get(room_id)
        return room.member_names() if room is not None else []

    def has_member(self, room_id: str, display_name: str) -> bool:
        room = self._rooms.get(room_id)
        return room is not None and display_name in room.members

    def peers(self, room_id: str, exclude: Optional[Session] = None) -> List[Session]:
        room = self._rooms.get(room_id)
        return room.peers(exclude) if room is not None else []

    def summaries(self) -> List[RoomSummary]:
        return [
            RoomSummary(room_id=room.room_id, member_count=len(room.members), language=room.language)
            for room in self
        ]


__all__ = ["ROOM_REMOVED", "DocumentState", "Room", "SessionRegistry", "LeaveResult"]
