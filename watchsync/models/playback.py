from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel


class PlaybackState(BaseModel):
    isPlaying: bool = False
    currentTime: float = 0.0
    resourceRef: Optional[str] = None
    lastUpdate: int = 0


# =========================
# FACTS
# =========================

@dataclass(frozen=True)
class PlayedAt:
    time: float


@dataclass(frozen=True)
class PausedAt:
    time: float


@dataclass(frozen=True)
class SeekedTo:
    time: float


@dataclass(frozen=True)
class ResourceReplaced:
    resource_ref: str


@dataclass(frozen=True)
class ResourceRemoved:
    pass


TimelineFact = Union[PlayedAt, PausedAt, SeekedTo]
Fact = Union[PlayedAt, PausedAt, SeekedTo, ResourceReplaced, ResourceRemoved]

# wire name of each timeline fact, shared by the command and the broadcast
FACT_TYPES = {
    PlayedAt: "play",
    PausedAt: "pause",
    SeekedTo: "seek",
}
