from __future__ import annotations

import os
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, Request, HTTPException
from starlette.responses import StreamingResponse, Response

from watchsync.api.deps import get_relay
from watchsync.services.relay import EventRelay

# not in every platform's mime table
mimetypes.add_type("video/x-matroska", ".mkv")

router = APIRouter(tags=["media"])


def _file_iterator(path: str, start: int, end: int, chunk_size: int = 1024 * 256):
    with open(path, "rb") as f:
        f.seek(start)
        remaining = end - start + 1
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


def parse_range(range_header: str, file_size: int) -> Optional[tuple[int, int]]:
    """
    bytes=START-END, bytes=START- or bytes=-SUFFIX.
    Returns an inclusive (start, end) or None when unsatisfiable.
    """
    if not range_header.startswith("bytes="):
        return None

    part = range_header[len("bytes="):].strip()
    if "," in part or "-" not in part:
        # multi-range not supported
        return None

    start_s, end_s = (p.strip() for p in part.split("-", 1))
    try:
        if not start_s:
            suffix = int(end_s)
            if suffix <= 0 or file_size == 0:
                return None
            return (max(0, file_size - suffix), file_size - 1)

        start = int(start_s)
        end = int(end_s) if end_s else file_size - 1
    except ValueError:
        return None

    if start < 0 or end < start or start >= file_size:
        return None

    return (start, min(end, file_size - 1))


@router.get("/{filename}")
async def stream_media(filename: str, request: Request, relay: EventRelay = Depends(get_relay)):
    if "/" in filename or "\\" in filename or ".." in filename:
        raise HTTPException(status_code=400, detail="invalid filename")

    # only the active resource is served
    if filename != relay.resources.current():
        raise HTTPException(status_code=404, detail="media not found")

    path = str(relay.resources.path_for(filename))
    if not os.path.isfile(path):
        raise HTTPException(status_code=404, detail="media not found")

    file_size = os.path.getsize(path)
    content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"

    range_header = request.headers.get("range")
    # unknown range units are ignored: full content
    if not range_header or not range_header.startswith("bytes="):
        headers = {
            "Accept-Ranges": "bytes",
            "Content-Length": str(file_size),
        }
        return StreamingResponse(
            _file_iterator(path, 0, file_size - 1),
            media_type=content_type,
            headers=headers,
        )

    r = parse_range(range_header, file_size)
    if not r:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{file_size}"})

    start, end = r
    headers = {
        "Content-Range": f"bytes {start}-{end}/{file_size}",
        "Accept-Ranges": "bytes",
        "Content-Length": str(end - start + 1),
    }
    return StreamingResponse(
        _file_iterator(path, start, end),
        status_code=206,
        media_type=content_type,
        headers=headers,
    )
