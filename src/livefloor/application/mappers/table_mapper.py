from __future__ import annotations

from livefloor.application.dto.responses import (
    FloorStatsResponse,
    KitchenQueueResponse,
    LiveFloorResponse,
    LiveTableResponse,
)
from livefloor.application.mappers.order_mapper import (
    to_order_response,
    to_service_request_response,
)
from livefloor.domain.floor.live_table import FloorStats, LiveTable
from livefloor.domain.order.entities import Order


def to_live_table_response(table: LiveTable) -> LiveTableResponse:
    return LiveTableResponse(
        tableNumber=str(table.table_number),
        orders=[to_order_response(order) for order in table.orders],
        serviceRequests=[
            to_service_request_response(request) for request in table.service_requests
        ],
        totalAmount=table.total_amount,
        hasReadyOrders=table.has_ready_orders,
        hasServedOrders=table.has_served_orders,
        allServed=table.all_served,
    )


def to_floor_stats_response(stats: FloorStats) -> FloorStatsResponse:
    return FloorStatsResponse(
        activeOrders=stats.active_orders,
        readyOrders=stats.ready_orders,
        tablesAwaitingPayment=stats.tables_awaiting_payment,
        pendingRequests=stats.pending_requests,
    )


def to_live_floor_response(
    *,
    branch_id: str | None,
    tables: list[LiveTable],
    ready_orders: list[Order],
    stats: FloorStats,
) -> LiveFloorResponse:
    return LiveFloorResponse(
        branchId=branch_id,
        tables=[to_live_table_response(table) for table in tables],
        readyOrders=[to_order_response(order) for order in ready_orders],
        stats=to_floor_stats_response(stats),
    )


def to_kitchen_queue_response(
    *,
    branch_id: str | None,
    orders: list[Order],
) -> KitchenQueueResponse:
    return KitchenQueueResponse(
        branchId=branch_id,
        orders=[to_order_response(order) for order in orders],
    )
