from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable

from livefloor.application.dto.responses import LiveFloorResponse
from livefloor.application.mappers.event_envelope import (
    serialize_floor_snapshot,
    serialize_notification,
)
from livefloor.application.ports.notifier import Notification, Notifier

SnapshotSource = Callable[[], LiveFloorResponse]


class FloorOutbox(Notifier):
    """Frames waiting to be sent to one websocket client.

    Notifications are queued as they fire. Snapshot requests are coalesced:
    any number of store changes before the next send produce one snapshot,
    built from the session state at send time.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._snapshot_source: SnapshotSource | None = None
        self._snapshot_pending = False

    def bind(self, snapshot_source: SnapshotSource) -> None:
        self._snapshot_source = snapshot_source

    def notify(self, notification: Notification) -> None:
        self._queue.put_nowait(
            serialize_notification(
                occurred_at=datetime.now(timezone.utc),
                notification=notification,
            )
        )

    def mark_changed(self) -> None:
        if self._snapshot_pending:
            return
        self._snapshot_pending = True
        self._queue.put_nowait(None)

    async def next_frame(self) -> str:
        while True:
            item = await self._queue.get()
            if item is not None:
                return item
            self._snapshot_pending = False
            if self._snapshot_source is None:
                continue
            return serialize_floor_snapshot(
                occurred_at=datetime.now(timezone.utc),
                snapshot=self._snapshot_source(),
            )
