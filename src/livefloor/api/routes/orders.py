from __future__ import annotations

from fastapi import APIRouter, Query

from livefloor.api import dependencies
from livefloor.application.dto.responses import OrderResponse
from livefloor.domain.common.ids import OrderId

router = APIRouter()


@router.post("/v1/orders/{order_id}/served", response_model=OrderResponse)
async def mark_order_served(
    order_id: str,
    branch_id: str | None = Query(default=None),
) -> OrderResponse:
    async with dependencies.loaded_session("waiter", branch_id) as session:
        return await session.transitions.mark_served(
            OrderId(order_id),
            trace_ctx=dependencies.current_trace_context(),
        )


@router.post("/v1/orders/{order_id}/advance", response_model=OrderResponse)
async def advance_order(
    order_id: str,
    branch_id: str | None = Query(default=None),
) -> OrderResponse:
    async with dependencies.loaded_session("kitchen", branch_id) as session:
        return await session.transitions.advance_order(
            OrderId(order_id),
            trace_ctx=dependencies.current_trace_context(),
        )


@router.post("/v1/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    branch_id: str | None = Query(default=None),
) -> OrderResponse:
    async with dependencies.loaded_session("waiter", branch_id) as session:
        return await session.transitions.cancel_order(
            OrderId(order_id),
            trace_ctx=dependencies.current_trace_context(),
        )
