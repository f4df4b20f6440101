from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from livefloor.api.ws.outbox import FloorOutbox
from livefloor.application.dto.responses import FloorStatsResponse, LiveFloorResponse
from livefloor.application.ports.notifier import Notification


def _snapshot(counter: list[int]):
    def build() -> LiveFloorResponse:
        counter.append(1)
        return LiveFloorResponse(
            branchId="brn_1",
            stats=FloorStatsResponse(
                activeOrders=len(counter),
                readyOrders=0,
                tablesAwaitingPayment=0,
                pendingRequests=0,
            ),
        )

    return build


def test_snapshots_are_coalesced_and_built_at_send_time() -> None:
    async def scenario() -> list[dict]:
        built: list[int] = []
        outbox = FloorOutbox()
        outbox.bind(_snapshot(built))

        outbox.mark_changed()
        outbox.mark_changed()
        outbox.notify(Notification(entity="orders", record_id="ord_1", table_number="5"))
        outbox.mark_changed()

        frames = [json.loads(await outbox.next_frame()) for _ in range(2)]
        assert len(built) == 1

        outbox.mark_changed()
        frames.append(json.loads(await outbox.next_frame()))
        assert len(built) == 2
        return frames

    frames = asyncio.run(scenario())

    assert [frame["event_type"] for frame in frames] == [
        "floor.snapshot",
        "floor.notification",
        "floor.snapshot",
    ]
    assert frames[0]["payload"]["branchId"] == "brn_1"
    assert frames[0]["payload"]["stats"]["activeOrders"] == 1
    assert frames[2]["payload"]["stats"]["activeOrders"] == 2
