from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from fastapi import WebSocket

log = logging.getLogger("ws")


class ViewerPhase(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(eq=False)
class Viewer:
    websocket: WebSocket
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    phase: ViewerPhase = ViewerPhase.CONNECTING


class ViewerManager:
    def __init__(self) -> None:
        self._viewers: Dict[str, Viewer] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._viewers)

    async def accept(self, ws: WebSocket) -> Viewer:
        await ws.accept()
        viewer = Viewer(websocket=ws)
        log.info("ws_accepted", extra={"viewer": viewer.id})
        return viewer

    async def register(self, viewer: Viewer) -> None:
        async with self._lock:
            viewer.phase = ViewerPhase.CONNECTED
            self._viewers[viewer.id] = viewer
        log.info("ws_connected", extra={"viewer": viewer.id, "viewers": len(self._viewers)})

    async def disconnect(self, viewer: Viewer) -> None:
        async with self._lock:
            viewer.phase = ViewerPhase.DISCONNECTED
            self._viewers.pop(viewer.id, None)
        log.info("ws_disconnected", extra={"viewer": viewer.id, "viewers": len(self._viewers)})

    async def send(self, viewer: Viewer, message: dict) -> bool:
        try:
            await viewer.websocket.send_json(message)
            return True
        except Exception as e:
            log.warning("ws_send_failed", extra={"viewer": viewer.id, "error": str(e)})
            await self.disconnect(viewer)
            return False

    async def broadcast(self, message: dict, exclude: Optional[Viewer] = None) -> int:
        """Sends to every connected viewer except `exclude`; returns how many got it."""
        async with self._lock:
            targets: List[Viewer] = [v for v in self._viewers.values() if v is not exclude]

        dead: List[Viewer] = []
        for viewer in targets:
            try:
                await viewer.websocket.send_json(message)
            except Exception:
                dead.append(viewer)

        if dead:
            async with self._lock:
                for viewer in dead:
                    viewer.phase = ViewerPhase.DISCONNECTED
                    self._viewers.pop(viewer.id, None)
            log.warning("ws_viewers_pruned", extra={"removed": len(dead), "viewers": len(self._viewers)})

        return len(targets) - len(dead)
