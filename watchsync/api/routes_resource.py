from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from watchsync.api.deps import get_app_settings, get_relay
from watchsync.core.config import Settings
from watchsync.models.events import resource_url
from watchsync.services.relay import EventRelay
from watchsync.services.uploads import UploadRejected, save_upload

log = logging.getLogger("uploads")

router = APIRouter(prefix="/api", tags=["resource"])


# =====================================================
# UPLOAD (replaces the active video)
# =====================================================

@router.post("/upload")
async def upload_video(
    video: UploadFile = File(...),
    relay: EventRelay = Depends(get_relay),
    settings: Settings = Depends(get_app_settings),
):
    try:
        resource_ref = await save_upload(video, settings)
    except UploadRejected as e:
        log.warning("upload_rejected", extra={"status": e.status_code, "detail": e.detail})
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    finally:
        await video.close()

    # once saved, the file must become current even if the request goes away
    await asyncio.shield(relay.replace_resource(resource_ref))

    return {
        "resourceRef": resource_ref,
        "videoUrl": resource_url(resource_ref, settings.media_url_prefix),
    }


# =====================================================
# DELETE (same effect as the "delete-resource" ws command)
# =====================================================

@router.delete("/resource")
async def delete_video(relay: EventRelay = Depends(get_relay)):
    await relay.remove_resource()
    return {"ok": True}
