from __future__ import annotations

import logging
import time
from typing import Callable

from watchsync.models.playback import (
    Fact,
    PausedAt,
    PlaybackState,
    PlayedAt,
    ResourceRemoved,
    ResourceReplaced,
    SeekedTo,
)

log = logging.getLogger("playback.state")


def now_ms() -> int:
    return int(time.time() * 1000)


class PlaybackStore:
    """
    Holds the one shared PlaybackState.

    `apply` is the only way to change it. The store does not lock: callers
    serialize access (the relay does it with its own lock).
    """

    def __init__(self, clock: Callable[[], int] = now_ms) -> None:
        self._clock = clock
        self._state = PlaybackState(lastUpdate=clock())

    def snapshot(self) -> PlaybackState:
        return self._state.model_copy(deep=True)

    def apply(self, fact: Fact) -> PlaybackState:
        s = self._state

        if isinstance(fact, ResourceReplaced):
            s.resourceRef = fact.resource_ref
            s.currentTime = 0.0
            s.isPlaying = False

        elif isinstance(fact, ResourceRemoved):
            s.resourceRef = None
            s.currentTime = 0.0
            s.isPlaying = False

        elif isinstance(fact, (PlayedAt, PausedAt, SeekedTo)):
            # nothing to position without a resource: stay at rest
            if s.resourceRef is not None:
                s.currentTime = max(0.0, float(fact.time))
                if isinstance(fact, PlayedAt):
                    s.isPlaying = True
                elif isinstance(fact, PausedAt):
                    s.isPlaying = False

        else:
            raise TypeError(f"unknown fact: {fact!r}")

        s.lastUpdate = self._clock()
        log.debug("state_applied", extra={"fact": type(fact).__name__, "state": s.model_dump()})
        return self.snapshot()
