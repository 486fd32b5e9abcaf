from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import websockets

from watchsync.client.echo import EchoSuppressor
from watchsync.client.viewer import LocalPlayer, SyncViewer
from watchsync.core.config import Settings, get_settings

log = logging.getLogger("viewer.client")


class ViewerClient:
    """
    Binds a SyncViewer to a running server.

    Persistent connection over websockets for facts and commands, plain HTTP
    (httpx) for uploads, same split as the browser viewer.
    """

    def __init__(
        self,
        base_url: str,
        viewer: SyncViewer,
        http: Optional[httpx.AsyncClient] = None,
        timeout_s: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.viewer = viewer
        self._http = http or httpx.AsyncClient(base_url=self.base_url, timeout=timeout_s)
        self._ws: Any = None

    @classmethod
    def for_player(cls, base_url: str, player: LocalPlayer, settings: Optional[Settings] = None) -> "ViewerClient":
        settings = settings or get_settings()
        suppressor = EchoSuppressor(window_s=settings.echo_suppress_ms / 1000.0)
        return cls(base_url, SyncViewer(player, suppressor))

    @property
    def ws_url(self) -> str:
        if self.base_url.startswith("https://"):
            return "wss://" + self.base_url[len("https://"):] + "/ws"
        if self.base_url.startswith("http://"):
            return "ws://" + self.base_url[len("http://"):] + "/ws"
        return self.base_url + "/ws"

    # =========================
    # CONNECTION
    # =========================

    async def connect(self) -> None:
        self._ws = await websockets.connect(self.ws_url)
        log.info("viewer_connected", extra={"url": self.ws_url})

    async def close(self) -> None:
        if self._ws is not None:
            try:
                await self._ws.close()
            finally:
                self._ws = None
        await self._http.aclose()
        log.info("viewer_closed")

    async def run(self) -> None:
        """Applies every fact the server sends until the connection ends."""
        if self._ws is None:
            await self.connect()
        async for raw in self._ws:
            try:
                message = json.loads(raw)
            except ValueError:
                log.warning("viewer_bad_frame")
                continue
            self.viewer.apply_fact(message)

    async def send(self, command: Optional[Dict[str, Any]]) -> bool:
        if command is None or self._ws is None:
            return False
        await self._ws.send(json.dumps(command))
        return True

    # =========================
    # LOCAL PLAYER NOTIFICATIONS
    # =========================

    async def notify_played(self) -> bool:
        return await self.send(self.viewer.on_played())

    async def notify_paused(self) -> bool:
        return await self.send(self.viewer.on_paused())

    async def notify_seeked(self) -> bool:
        return await self.send(self.viewer.on_seeked())

    # =========================
    # RESOURCE
    # =========================

    async def delete_resource(self) -> bool:
        return await self.send(SyncViewer.delete_command())

    async def upload(self, path: str | Path) -> str:
        """Uploads a video file and returns the new resource ref."""
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            r = await self._http.post("/api/upload", files={"video": (path.name, f, content_type)})
        r.raise_for_status()
        resource_ref = r.json()["resourceRef"]
        log.info("viewer_uploaded", extra={"ref": resource_ref, "file": path.name})
        return resource_ref
