from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from watchsync.client.echo import EchoSuppressor

log = logging.getLogger("viewer")

# closer than this and the player is already where the fact says
SEEK_TOLERANCE_S = 0.01


class LocalPlayer(ABC):
    """
    What a viewer needs from its media player.

    Implementations report their own state changes back through
    SyncViewer.on_played / on_paused / on_seeked, including the ones caused
    by SyncViewer itself.
    """

    @property
    @abstractmethod
    def current_time(self) -> float: ...

    @property
    @abstractmethod
    def is_playing(self) -> bool: ...

    @abstractmethod
    def load(self, url: str) -> None: ...

    @abstractmethod
    def unload(self) -> None: ...

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def seek(self, time_s: float) -> None: ...


class SyncViewer:
    """
    Viewer half of the protocol, without any transport.

    - apply_fact(): server message -> local player, with echo suppression armed
    - on_played/on_paused/on_seeked(): local notification -> outbound command or None
    """

    def __init__(self, player: LocalPlayer, suppressor: Optional[EchoSuppressor] = None) -> None:
        self.player = player
        self.suppressor = suppressor or EchoSuppressor()
        self.resource_ref: Optional[str] = None
        self.resource_url: Optional[str] = None

    # =========================
    # SERVER -> PLAYER
    # =========================

    def apply_fact(self, message: Dict[str, Any]) -> None:
        msg_type = message.get("type")
        data = message.get("data") or {}

        if msg_type == "state":
            self._load(data.get("resourceRef"), data.get("resourceUrl"))
            if self.resource_ref is not None:
                self._move(data.get("currentTime"), playing=bool(data.get("isPlaying")))
        elif msg_type == "resource-available":
            self._load(data.get("resourceRef"), data.get("resourceUrl"))
        elif msg_type == "resource-removed":
            self._load(None, None)
        elif msg_type == "play":
            self._move(data.get("currentTime"), playing=True)
        elif msg_type == "pause":
            self._move(data.get("currentTime"), playing=False)
        elif msg_type == "seek":
            self._move(data.get("currentTime"), playing=None)
        else:
            log.debug("viewer_unknown_fact", extra={"type": msg_type})

    def _load(self, resource_ref: Optional[str], resource_url: Optional[str]) -> None:
        if resource_ref == self.resource_ref and resource_url == self.resource_url:
            return
        self.suppressor.disarm()
        self.resource_ref = resource_ref
        self.resource_url = resource_url
        if resource_url:
            self.player.load(resource_url)
            log.info("viewer_resource_loaded", extra={"ref": resource_ref})
        else:
            self.player.unload()
            log.info("viewer_resource_unloaded")

    def _move(self, time_s: Any, playing: Optional[bool]) -> None:
        if self.resource_ref is None or not isinstance(time_s, (int, float)):
            return

        seek = abs(self.player.current_time - time_s) > SEEK_TOLERANCE_S
        play = playing is True and not self.player.is_playing
        pause = playing is False and self.player.is_playing

        expected = int(seek) + int(play or pause)
        if expected:
            self.suppressor.arm(expected)

        if seek:
            self.player.seek(float(time_s))
        if play:
            try:
                self.player.play()
            except Exception as e:
                # nothing will fire; don't swallow the user's next action
                self.suppressor.disarm()
                log.warning("viewer_play_failed", extra={"error": str(e)})
        elif pause:
            self.player.pause()

    # =========================
    # PLAYER -> SERVER
    # =========================

    def on_played(self) -> Optional[Dict[str, Any]]:
        return self._outbound("play")

    def on_paused(self) -> Optional[Dict[str, Any]]:
        return self._outbound("pause")

    def on_seeked(self) -> Optional[Dict[str, Any]]:
        return self._outbound("seek")

    def _outbound(self, command_type: str) -> Optional[Dict[str, Any]]:
        if self.suppressor.consume():
            log.debug("viewer_echo_suppressed", extra={"type": command_type})
            return None
        if self.resource_ref is None:
            return None
        return {
            "type": command_type,
            "data": {"currentTime": self.player.current_time, "resourceRef": self.resource_ref},
        }

    @staticmethod
    def delete_command() -> Dict[str, Any]:
        return {"type": "delete-resource", "data": {}}
