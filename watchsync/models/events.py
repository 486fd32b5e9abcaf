from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from watchsync.models.playback import (
    FACT_TYPES,
    PausedAt,
    PlaybackState,
    PlayedAt,
    SeekedTo,
    TimelineFact,
)


EventType = Literal[
    "state",
    "play",
    "pause",
    "seek",
    "resource-available",
    "resource-removed",
]


class InvalidCommand(ValueError):
    pass


class WsEvent(BaseModel):
    type: EventType
    data: Dict[str, Any] = Field(default_factory=dict)


# =========================
# COMMANDS (viewer -> server)
# =========================

class TimeCommand(BaseModel):
    type: Literal["play", "pause", "seek"]
    currentTime: float = Field(allow_inf_nan=False)
    # optional: the resource the viewer believed was active when it acted
    resourceRef: Optional[str] = None

    def to_fact(self) -> TimelineFact:
        if self.type == "play":
            return PlayedAt(self.currentTime)
        if self.type == "pause":
            return PausedAt(self.currentTime)
        return SeekedTo(self.currentTime)


class DeleteResourceCommand(BaseModel):
    type: Literal["delete-resource"]


Command = Union[TimeCommand, DeleteResourceCommand]


def parse_command(raw: str) -> Command:
    """
    Turns one inbound text frame into a command.

    Frames look like {"type": "play", "data": {"currentTime": 12.5}}.
    Anything that does not fit raises InvalidCommand.
    """
    try:
        msg = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise InvalidCommand(f"not json: {e}") from e

    if not isinstance(msg, dict):
        raise InvalidCommand("frame is not an object")

    msg_type = msg.get("type")
    data = msg.get("data") or {}
    if not isinstance(data, dict):
        raise InvalidCommand("data is not an object")

    try:
        if msg_type in ("play", "pause", "seek"):
            return TimeCommand.model_validate({**data, "type": msg_type})
        if msg_type == "delete-resource":
            return DeleteResourceCommand(type="delete-resource")
    except ValidationError as e:
        raise InvalidCommand(str(e)) from e

    raise InvalidCommand(f"unknown command type: {msg_type!r}")


# =========================
# FACTS (server -> viewers)
# =========================

def resource_url(resource_ref: Optional[str], prefix: str = "/uploads") -> Optional[str]:
    if resource_ref is None:
        return None
    return f"{prefix.rstrip('/')}/{resource_ref}"


def state_event(state: PlaybackState, prefix: str = "/uploads") -> dict:
    data = state.model_dump()
    data["resourceUrl"] = resource_url(state.resourceRef, prefix)
    return WsEvent(type="state", data=data).model_dump()


def timeline_event(fact: TimelineFact) -> dict:
    return WsEvent(type=FACT_TYPES[type(fact)], data={"currentTime": fact.time}).model_dump()


def resource_available_event(resource_ref: str, prefix: str = "/uploads") -> dict:
    return WsEvent(
        type="resource-available",
        data={"resourceRef": resource_ref, "resourceUrl": resource_url(resource_ref, prefix)},
    ).model_dump()


def resource_removed_event() -> dict:
    return WsEvent(type="resource-removed").model_dump()
