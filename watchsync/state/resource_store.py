from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

from watchsync.workers.background import DetachedTasks

log = logging.getLogger("resource.store")


def _delete_file(path: Path) -> bool:
    try:
        os.remove(path)
    except FileNotFoundError:
        log.warning("resource_delete_missing", extra={"path": str(path)})
        return False
    except OSError:
        log.exception("resource_delete_failed", extra={"path": str(path)})
        return False
    log.info("resource_deleted", extra={"path": str(path)})
    return True


class ResourceStore:
    """
    The single "current resource" slot.

    - replace/remove swap the pointer in one step (no await in between), so a
      reader sees the old id or the new one, never something in between.
    - the bytes of the outgoing resource are deleted in the background, one
      attempt per outgoing resource; failures are logged, never raised.
    """

    def __init__(self, media_dir: str | Path, tasks: Optional[DetachedTasks] = None) -> None:
        self.media_dir = Path(media_dir)
        self._tasks = tasks or DetachedTasks()
        self._current: Optional[str] = None

    def current(self) -> Optional[str]:
        return self._current

    def path_for(self, resource_ref: str) -> Path:
        return self.media_dir / resource_ref

    def replace(self, new_ref: str) -> str:
        old, self._current = self._current, new_ref
        log.info("resource_replaced", extra={"old": old, "new": new_ref})
        if old is not None and old != new_ref:
            self._schedule_delete(old)
        return new_ref

    def remove(self) -> Optional[str]:
        old, self._current = self._current, None
        log.info("resource_removed", extra={"old": old})
        if old is not None:
            self._schedule_delete(old)
        return old

    def _schedule_delete(self, resource_ref: str) -> None:
        path = self.path_for(resource_ref)
        self._tasks.spawn(asyncio.to_thread(_delete_file, path), name=f"delete:{resource_ref}")

    async def drain(self) -> None:
        """Waits for every scheduled deletion to finish."""
        await self._tasks.drain()
