"""Pydantic models for everything that crosses the wire.

Inbound frames are a closed, ``type``-tagged union: anything that does not
validate against exactly one variant is rejected at the boundary before it
can touch room state. Outbound frames are serialised as
``{"type": ..., "data": ...}`` using camelCase field names.
"""
from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# -----------------------------
# Inbound (client -> server)
# -----------------------------

class JoinEvent(_Wire):
    type: Literal["join"]
    room_id: str = Field(alias="roomId", min_length=1)
    display_name: str = Field(alias="displayName", min_length=1)


class CodeChangeEvent(_Wire):
    type: Literal["codeChange"]
    room_id: str = Field(alias="roomId")
    code: str = Field(validation_alias=AliasChoices("code", "buffer"))


class TypingEvent(_Wire):
    type: Literal["typing"]
    room_id: str = Field(alias="roomId")
    # Clients send their own name; the router relays the name bound to the session instead.
    display_name: Optional[str] = Field(default=None, alias="displayName")


class LanguageChangeEvent(_Wire):
    type: Literal["languageChange"]
    room_id: str = Field(alias="roomId")
    language: str = Field(min_length=1)


class LeaveRoomEvent(_Wire):
    type: Literal["leaveRoom"]


class RunCodeEvent(_Wire):
    type: Literal["runCode"]
    room_id: str = Field(alias="roomId")
    language: str = Field(min_length=1)
    code: str = Field(validation_alias=AliasChoices("code", "buffer"))
    stdin: str = ""


InboundEvent = Annotated[
    Union[JoinEvent, CodeChangeEvent, TypingEvent, LanguageChangeEvent, LeaveRoomEvent, RunCodeEvent],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[Any] = TypeAdapter(InboundEvent)


def parse_inbound(raw: Any) -> InboundEvent:
    """Validate a decoded JSON frame; raises ``pydantic.ValidationError``."""
    return _inbound_adapter.validate_python(raw)


# -----------------------------
# Outbound (server -> client)
# -----------------------------

class RoomStatePayload(_Wire):
    room_id: str = Field(alias="roomId")
    buffer: str
    language: str


class JoinRejectedPayload(_Wire):
    room_id: str = Field(alias="roomId")
    reason: str


class ExecutionResult(_Wire):
    """Outcome of a code-execution request. ``ok`` is False on any failure."""

    ok: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = Field(default=None, alias="exitCode")
    error: Optional[str] = None


class UserJoined(_Wire):
    type: Literal["userJoined"] = "userJoined"
    data: List[str]


class CodeUpdate(_Wire):
    type: Literal["codeUpdate"] = "codeUpdate"
    data: str


class UserTyping(_Wire):
    type: Literal["userTyping"] = "userTyping"
    data: str


class LanguageUpdate(_Wire):
    type: Literal["languageUpdate"] = "languageUpdate"
    data: str


class RoomState(_Wire):
    type: Literal["roomState"] = "roomState"
    data: RoomStatePayload


class JoinRejected(_Wire):
    type: Literal["joinRejected"] = "joinRejected"
    data: JoinRejectedPayload


class RunResult(_Wire):
    type: Literal["runResult"] = "runResult"
    data: ExecutionResult


OutboundEvent = Union[UserJoined, CodeUpdate, UserTyping, LanguageUpdate, RoomState, JoinRejected, RunResult]


def dump_outbound(event: OutboundEvent) -> dict:
    return event.model_dump(by_alias=True)


# -----------------------------
# REST response models
# -----------------------------

class RoomSummary(BaseModel):
    room_id: str
    member_count: int
    language: str


class RoomDetail(BaseModel):
    room_id: str
    members: List[str]
    language: str
    buffer: str


__all__ = [
    # inbound
    "JoinEvent",
    "CodeChangeEvent",
    "TypingEvent",
    "LanguageChangeEvent",
    "LeaveRoomEvent",
    "RunCodeEvent",
    "InboundEvent",
    "parse_inbound",
    # outbound
    "RoomStatePayload",
    "JoinRejectedPayload",
    "ExecutionResult",
    "UserJoined",
    "CodeUpdate",
    "UserTyping",
    "LanguageUpdate",
    "RoomState",
    "JoinRejected",
    "RunResult",
    "OutboundEvent",
    "dump_outbound",
    # rest
    "RoomSummary",
    "RoomDetail",
]
