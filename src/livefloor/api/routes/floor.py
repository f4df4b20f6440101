from __future__ import annotations

from fastapi import APIRouter, Query

from livefloor.api import dependencies
from livefloor.application.dto.responses import (
    CloseTableResponse,
    KitchenQueueResponse,
    LiveFloorResponse,
)
from livefloor.domain.common.ids import TableNumber

router = APIRouter()


@router.get("/v1/floor/live-tables", response_model=LiveFloorResponse)
async def live_tables(branch_id: str | None = Query(default=None)) -> LiveFloorResponse:
    async with dependencies.loaded_session("waiter", branch_id) as session:
        return session.snapshot()


@router.get("/v1/floor/kitchen-queue", response_model=KitchenQueueResponse)
async def kitchen_queue(branch_id: str | None = Query(default=None)) -> KitchenQueueResponse:
    async with dependencies.loaded_session("kitchen", branch_id) as session:
        return session.kitchen_snapshot()


@router.post("/v1/floor/tables/{table_number}/close", response_model=CloseTableResponse)
async def close_table(
    table_number: str,
    branch_id: str | None = Query(default=None),
) -> CloseTableResponse:
    async with dependencies.loaded_session("waiter", branch_id) as session:
        return await session.transitions.close_table(
            TableNumber(table_number),
            trace_ctx=dependencies.current_trace_context(),
        )
