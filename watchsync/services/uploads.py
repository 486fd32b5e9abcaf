from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from watchsync.core.config import Settings

log = logging.getLogger("uploads")


class UploadRejected(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


def _is_video(upload: UploadFile, ext: str, settings: Settings) -> bool:
    if ext in settings.allowed_extensions:
        return True
    return (upload.content_type or "").startswith("video/")


def new_resource_ref(media_dir: Path, ext: str) -> str:
    base = f"video_{int(time.time() * 1000)}"
    name = f"{base}{ext}"
    n = 1
    while (media_dir / name).exists():
        name = f"{base}_{n}{ext}"
        n += 1
    return name


async def save_upload(upload: UploadFile, settings: Settings) -> str:
    """
    Writes an uploaded video into the media dir and returns its resource ref.

    Nothing shared is touched here: the caller decides whether the file becomes
    the active resource. A rejected upload leaves no file behind.
    """
    if not upload.filename:
        raise UploadRejected(400, "no file provided")

    ext = Path(upload.filename).suffix.lower()
    if not _is_video(upload, ext, settings):
        raise UploadRejected(400, "not a video file")

    media_dir = Path(settings.media_dir)
    media_dir.mkdir(parents=True, exist_ok=True)
    resource_ref = new_resource_ref(media_dir, ext)
    path = media_dir / resource_ref

    written = 0
    try:
        with open(path, "wb") as f:
            while True:
                chunk = await upload.read(settings.upload_chunk_bytes)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.max_upload_bytes:
                    raise UploadRejected(413, "file too large")
                await run_in_threadpool(f.write, chunk)
    except BaseException:
        try:
            os.remove(path)
        except OSError:
            log.warning("upload_cleanup_failed", extra={"path": str(path)})
        raise

    log.info(
        "upload_saved",
        extra={"ref": resource_ref, "bytes": written, "originalName": upload.filename},
    )
    return resource_ref
