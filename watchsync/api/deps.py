from __future__ import annotations

from fastapi import Request, WebSocket

from watchsync.core.config import Settings
from watchsync.services.relay import EventRelay
from watchsync.ws.manager import ViewerManager


# =========================
# SETTINGS
# =========================

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# =========================
# RELAY (HTTP)
# =========================

def get_relay(request: Request) -> EventRelay:
    return request.app.state.relay


# =========================
# WEBSOCKET
# =========================

def get_relay_ws(websocket: WebSocket) -> EventRelay:
    return websocket.app.state.relay


def get_viewer_manager_ws(websocket: WebSocket) -> ViewerManager:
    return websocket.app.state.viewers
