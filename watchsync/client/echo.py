from __future__ import annotations

import time
from typing import Callable, Optional

DEFAULT_WINDOW_S = 0.5


class EchoSuppressor:
    """
    "Ignore the next local player notification" flag.

    Armed right before a remote fact is applied to the local player. The
    player's next played/paused/seeked notification consumes it and is
    dropped instead of becoming a command. The flag expires on its own after
    `window_s`, whether or not that notification ever shows up (a refused
    autoplay fires nothing), so a later genuine user action still goes out.

    `arm(count)` covers a fact that makes the player fire more than one
    notification (seek + play); each notification consumes one. Arming again
    before earlier notifications arrive adds to what is still owed and
    restarts the window.
    """

    def __init__(self, window_s: float = DEFAULT_WINDOW_S, clock: Callable[[], float] = time.monotonic) -> None:
        self.window_s = window_s
        self._clock = clock
        self._deadline: Optional[float] = None
        self._pending = 0

    @property
    def armed(self) -> bool:
        if self._pending <= 0 or self._deadline is None:
            return False
        if self._clock() >= self._deadline:
            self.disarm()
            return False
        return True

    def arm(self, count: int = 1) -> None:
        # notifications still owed from an earlier fact keep counting
        self._pending = (self._pending if self.armed else 0) + max(1, count)
        self._deadline = self._clock() + self.window_s

    def disarm(self) -> None:
        self._pending = 0
        self._deadline = None

    def consume(self) -> bool:
        """True if this notification is an echo and must not be sent."""
        if not self.armed:
            return False
        self._pending -= 1
        if self._pending <= 0:
            self.disarm()
        return True
