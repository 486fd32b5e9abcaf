from __future__ import annotations

from fastapi import APIRouter, Depends

from watchsync.api.deps import get_app_settings, get_relay
from watchsync.core.config import Settings
from watchsync.models.events import resource_url
from watchsync.services.relay import EventRelay

router = APIRouter(prefix="/status", tags=["status"])


@router.get("")
async def get_status(
    relay: EventRelay = Depends(get_relay),
    settings: Settings = Depends(get_app_settings),
):
    state = relay.snapshot()
    return {
        **state.model_dump(),
        "resourceUrl": resource_url(state.resourceRef, settings.media_url_prefix),
    }
