"""Per-session state machine and fan-out rules.

Sessions move ``anonymous -> in_room -> anonymous`` via join/leave and end in
``disconnected``. Every room-scoped event is applied to the registry and its
broadcasts are queued without yielding to the event loop, so from the point of
view of other sessions each event is atomic and rooms observe updates in
arrival order.

Events from a session that is not in the room they name are dropped without
reply, as are frames that fail validation.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .constants import REASON_NAME_TAKEN
from .executor import CodeExecutor
from .registry import ROOM_REMOVED, SessionRegistry
from .schemas import (
    CodeChangeEvent,
    CodeUpdate,
    ExecutionResult,
    InboundEvent,
    JoinEvent,
    JoinRejected,
    JoinRejectedPayload,
    LanguageChangeEvent,
    LanguageUpdate,
    LeaveRoomEvent,
    OutboundEvent,
    RoomState,
    RoomStatePayload,
    RunCodeEvent,
    RunResult,
    TypingEvent,
    UserJoined,
    UserTyping,
    parse_inbound,
)
from .session import Session, SessionState

logger = logging.getLogger(__name__)


class EventRouter:
    def __init__(self, registry: SessionRegistry, executor: Optional[CodeExecutor] = None):
        self.registry = registry
        self.executor = executor
        self.sessions: Dict[str, Session] = {}

    # ---------------------------------------------------------------------
    # Connection lifecycle
    # ---------------------------------------------------------------------

    def connect(self, session: Session) -> None:
        session.state = SessionState.ANONYMOUS
        self.sessions[session.session_id] = session
        logger.debug("%r connected", session)

    def disconnect(self, session: Session) -> None:
        """Implicit leave followed by teardown; safe to call more than once."""
        if session.in_room:
            self._leave(session)
        session.close()
        self.sessions.pop(session.session_id, None)
        logger.debug("%r disconnected", session)

    # ---------------------------------------------------------------------
    # Inbound
    # ---------------------------------------------------------------------

    async def handle_message(self, session: Session, raw: Any) -> None:
        """Validate a decoded frame and dispatch it. Never raises."""
        if session.state is SessionState.DISCONNECTED:
            return
        try:
            event = parse_inbound(raw)
        except ValidationError as exc:
            logger.debug("dropping malformed frame from %r: %s", session, exc.errors()[:1])
            return
        try:
            await self.dispatch(session, event)
        except Exception:
            logger.exception("error handling %s from %r", type(event).__name__, session)

    async def dispatch(self, session: Session, event: InboundEvent) -> None:
        if isinstance(event, JoinEvent):
            self.handle_join(session, event)
        elif isinstance(event, CodeChangeEvent):
            self.handle_code_change(session, event)
        elif isinstance(event, TypingEvent):
            self.handle_typing(session, event)
        elif isinstance(event, LanguageChangeEvent):
            self.handle_language_change(session, event)
        elif isinstance(event, LeaveRoomEvent):
            self.handle_leave(session)
        elif isinstance(event, RunCodeEvent):
            await self.handle_run_code(session, event)

    # ---------------------------------------------------------------------
    # Handlers
    # ---------------------------------------------------------------------

    def handle_join(self, session: Session, event: JoinEvent) -> None:
        room_id, name = event.room_id, event.display_name

        room = self.registry.get(room_id)
        if room is not None and name in room.members and room.session_for(name) is not session:
            logger.info("rejecting %r: name %r already active in room %r", session, name, room_id)
            session.send(JoinRejected(data=JoinRejectedPayload(room_id=room_id, reason=REASON_NAME_TAKEN)))
            return

        if session.in_room and session.room_id == room_id:
            # Rejoining the same room (possibly under a new name): add before
            # removing so the room is never emptied in between.
            previous = session.display_name
            self.registry.create_or_join(room_id, name, session)
            if previous is not None and previous != name:
                self.registry.leave(room_id, previous)
        else:
            if session.in_room:
                self._leave(session)
            self.registry.create_or_join(room_id, name, session)

        session.enter(room_id, name)
        logger.info("%r joined room %r as %r", session, room_id, name)

        doc = self.registry.document(room_id)
        if doc is not None:
            session.send(RoomState(data=RoomStatePayload(room_id=room_id, buffer=doc.buffer, language=doc.language)))
        self._broadcast(room_id, UserJoined(data=self.registry.current_members(room_id)))

    def handle_code_change(self, session: Session, event: CodeChangeEvent) -> None:
        if not self._accepts(session, event.room_id):
            return
        self.registry.update_document(event.room_id, event.code)
        self._broadcast(event.room_id, CodeUpdate(data=event.code), exclude=session)

    def handle_typing(self, session: Session, event: TypingEvent) -> None:
        if not self._accepts(session, event.room_id) or session.display_name is None:
            return
        self._broadcast(event.room_id, UserTyping(data=session.display_name), exclude=session)

    def handle_language_change(self, session: Session, event: LanguageChangeEvent) -> None:
        if not self._accepts(session, event.room_id):
            return
        self.registry.update_language(event.room_id, event.language)
        self._broadcast(event.room_id, LanguageUpdate(data=event.language), exclude=session)

    def handle_leave(self, session: Session) -> None:
        if session.in_room:
            self._leave(session)

    async def handle_run_code(self, session: Session, event: RunCodeEvent) -> None:
        if not self._accepts(session, event.room_id):
            return
        if self.executor is None:
            result = ExecutionResult(ok=False, error="code execution is disabled")
        else:
            result = await self.executor.run(event.language, event.code, event.stdin)
        session.send(RunResult(data=result))

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _accepts(self, session: Session, room_id: str) -> bool:
        """True if *session* is currently a member of *room_id*."""
        return (
            session.in_room
            and session.room_id == room_id
            and session.display_name is not None
            and self.registry.has_member(room_id, session.display_name)
        )

    def _leave(self, session: Session) -> None:
        room_id, name = session.room_id, session.display_name
        session.exit()
        if room_id is None or name is None:
            return
        result = self.registry.leave(room_id, name)
        logger.info("%s left room %r", name, room_id)
        if result is None or result is ROOM_REMOVED:
            return
        self._broadcast(room_id, UserJoined(data=result))

    def _broadcast(self, room_id: str, event: OutboundEvent, exclude: Optional[Session] = None) -> None:
        for peer in self.registry.peers(room_id, exclude=exclude):
            peer.send(event)


__all__ = ["EventRouter"]
