from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
import logging

from watchsync.api.deps import (
    get_relay_ws,
    get_viewer_manager_ws,
)

log = logging.getLogger("ws")

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    relay = Depends(get_relay_ws),
    viewers = Depends(get_viewer_manager_ws),
):
    viewer = await viewers.accept(websocket)

    try:
        await relay.join(viewer)
        while True:
            raw = await websocket.receive_text()
            await relay.handle_text(viewer, raw)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        log.warning("ws_connection_closed", extra={"viewer": viewer.id, "error": str(e)})
    finally:
        await relay.leave(viewer)
