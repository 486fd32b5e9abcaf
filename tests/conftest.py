"""Shared pytest fixtures for watchsync tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator, List, Optional

import pytest
from fastapi.testclient import TestClient

from watchsync.client.viewer import LocalPlayer
from watchsync.core.config import Settings
from watchsync.main import create_app


class CapturingWebSocket:
    """Stands in for a Starlette WebSocket; records every JSON frame sent."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail
        self.accepted = False

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict) -> None:
        if self.fail:
            raise RuntimeError("boom")
        self.sent.append(payload)

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture
def settings(media_dir: Path) -> Settings:
    return Settings(media_dir=str(media_dir), log_level="WARNING", max_upload_bytes=1024 * 1024)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as c:
        yield c


def upload(client: TestClient, name: str = "movie.mkv", body: bytes = b"0123456789", content_type: str = "video/x-matroska"):
    return client.post("/api/upload", files={"video": (name, body, content_type)})


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePlayer(LocalPlayer):
    """
    Mimics an HTML video element: every state change fires a notification
    back into the viewer, as the browser would.
    """

    def __init__(self) -> None:
        self._time = 0.0
        self._playing = False
        self.url: Optional[str] = None
        self.notify: Optional[Callable[[str], None]] = None
        self.refuse_play = False
        self.calls: List[str] = []

    @property
    def current_time(self) -> float:
        return self._time

    @property
    def is_playing(self) -> bool:
        return self._playing

    def load(self, url: str) -> None:
        self.url = url
        self._time = 0.0
        self._playing = False
        self.calls.append(f"load:{url}")

    def unload(self) -> None:
        self.url = None
        self._playing = False
        self.calls.append("unload")

    def play(self) -> None:
        if self.refuse_play:
            raise RuntimeError("autoplay blocked")
        self._playing = True
        self.calls.append("play")
        self._fire("played")

    def pause(self) -> None:
        self._playing = False
        self.calls.append("pause")
        self._fire("paused")

    def seek(self, time_s: float) -> None:
        self._time = time_s
        self.calls.append(f"seek:{time_s}")
        self._fire("seeked")

    # user actions: same state change, same notification
    def user_play(self) -> None:
        self.play()

    def user_seek(self, time_s: float) -> None:
        self.seek(time_s)

    def _fire(self, kind: str) -> None:
        if self.notify:
            self.notify(kind)
