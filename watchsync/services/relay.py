from __future__ import annotations

import asyncio
import logging
from typing import Optional

from watchsync.models.events import (
    DeleteResourceCommand,
    InvalidCommand,
    TimeCommand,
    parse_command,
    resource_available_event,
    resource_removed_event,
    state_event,
    timeline_event,
)
from watchsync.models.playback import PlaybackState, ResourceRemoved, ResourceReplaced
from watchsync.state.playback_state import PlaybackStore
from watchsync.state.resource_store import ResourceStore
from watchsync.ws.manager import Viewer, ViewerManager

log = logging.getLogger("relay")


class EventRelay:
    """
    Connection gateway and command relay.

    Every mutation of the shared state and the broadcast that reports it run
    under one lock, so:
    - facts go out in the order they were applied,
    - a joining viewer's snapshot never lands between a mutation and its broadcast,
    - a resource swap and the state reset that goes with it are never split by a command.
    """

    def __init__(
        self,
        store: PlaybackStore,
        resources: ResourceStore,
        manager: ViewerManager,
        url_prefix: str = "/uploads",
    ) -> None:
        self.store = store
        self.resources = resources
        self.manager = manager
        self.url_prefix = url_prefix
        self._lock = asyncio.Lock()

    def snapshot(self) -> PlaybackState:
        return self.store.snapshot()

    # =========================
    # GATEWAY
    # =========================

    async def join(self, viewer: Viewer) -> None:
        async with self._lock:
            await self.manager.register(viewer)
            await self.manager.send(viewer, state_event(self.store.snapshot(), self.url_prefix))

    async def leave(self, viewer: Viewer) -> None:
        await self.manager.disconnect(viewer)

    # =========================
    # COMMANDS
    # =========================

    async def handle_text(self, viewer: Viewer, raw: str) -> bool:
        """Returns True when the frame was accepted and relayed."""
        try:
            command = parse_command(raw)
        except InvalidCommand as e:
            log.warning("command_dropped_invalid", extra={"viewer": viewer.id, "error": str(e)})
            return False

        # finish mutate + broadcast even if the viewer's handler gets cancelled
        if isinstance(command, DeleteResourceCommand):
            await asyncio.shield(self.remove_resource(origin=viewer))
            return True
        return await asyncio.shield(self._relay_timeline(viewer, command))

    async def _relay_timeline(self, viewer: Viewer, command: TimeCommand) -> bool:
        async with self._lock:
            current = self.resources.current()
            if current is None:
                log.warning("command_dropped_no_resource", extra={"viewer": viewer.id, "type": command.type})
                return False
            if command.resourceRef is not None and command.resourceRef != current:
                log.warning(
                    "command_dropped_stale_resource",
                    extra={"viewer": viewer.id, "type": command.type, "ref": command.resourceRef, "current": current},
                )
                return False

            fact = command.to_fact()
            state = self.store.apply(fact)
            # report the time as stored (negative input is clamped)
            applied = type(fact)(state.currentTime)
            delivered = await self.manager.broadcast(timeline_event(applied), exclude=viewer)

        log.info(
            "command_relayed",
            extra={"viewer": viewer.id, "type": command.type, "currentTime": state.currentTime, "delivered": delivered},
        )
        return True

    # =========================
    # RESOURCE LIFECYCLE
    # =========================

    async def replace_resource(self, resource_ref: str) -> PlaybackState:
        async with self._lock:
            self.resources.replace(resource_ref)
            state = self.store.apply(ResourceReplaced(resource_ref))
            delivered = await self.manager.broadcast(resource_available_event(resource_ref, self.url_prefix))
        log.info("resource_available", extra={"ref": resource_ref, "delivered": delivered})
        return state

    async def remove_resource(self, origin: Optional[Viewer] = None) -> PlaybackState:
        async with self._lock:
            removed = self.resources.remove()
            state = self.store.apply(ResourceRemoved())
            delivered = await self.manager.broadcast(resource_removed_event())
        log.info(
            "resource_removed",
            extra={"ref": removed, "delivered": delivered, "viewer": origin.id if origin else None},
        )
        return state
