from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floor_fakes import FakeAuditLog, FakeGateway, fixed_clock, make_order, make_request
from livefloor.application.ports.audit import AuditAction
from livefloor.application.stores.order_store import OrderRecordStore
from livefloor.application.stores.service_request_queue import ServiceRequestQueue
from livefloor.application.use_cases.context import TraceContext
from livefloor.application.use_cases.order_status import (
    GatewayWriteError,
    InvalidOrderTransitionError,
    OrderNotFoundError,
    OrderStatusConflictError,
)
from livefloor.application.use_cases.status_transitions import StatusTransitionController
from livefloor.domain.floor.live_table import aggregate
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.order.entities import OrderStatus


class Floor:
    def __init__(self, gateway: FakeGateway) -> None:
        scope = AccessScope.all_branches()
        self.gateway = gateway
        self.audit = FakeAuditLog()
        self.orders = OrderRecordStore(gateway, scope, fixed_clock)
        self.requests = ServiceRequestQueue(gateway, scope, fixed_clock)
        self.controller = StatusTransitionController(gateway, self.orders, self.requests, self.audit)
        asyncio.run(self.orders.refresh())
        asyncio.run(self.requests.refresh())

    def live_tables(self):
        return aggregate(self.orders.orders, self.requests.requests)


def test_mark_served_writes_then_patches_store() -> None:
    floor = Floor(FakeGateway(orders=[make_order("ord_1", status=OrderStatus.READY)]))

    response = asyncio.run(
        floor.controller.mark_served("ord_1", TraceContext(trace_id="t-1", request_id="r-1"))
    )

    assert response.status == "served"
    assert floor.gateway.writes == [("orders", "ord_1", "served")]
    assert floor.orders.get("ord_1").status == OrderStatus.SERVED
    assert floor.audit.entries[0].action == AuditAction.ORDER_SERVED
    assert floor.audit.entries[0].trace_id == "t-1"
    assert floor.audit.entries[0].old_data == {"status": "ready"}


def test_mark_served_rejects_order_that_is_not_ready() -> None:
    floor = Floor(FakeGateway(orders=[make_order("ord_1", status=OrderStatus.PREPARING)]))

    with pytest.raises(InvalidOrderTransitionError) as exc_info:
        asyncio.run(floor.controller.mark_served("ord_1"))

    assert exc_info.value.details == {"from": "preparing", "to": "served"}
    assert floor.gateway.writes == []
    assert floor.orders.get("ord_1").status == OrderStatus.PREPARING


def test_mark_served_write_failure_leaves_store_unchanged() -> None:
    gateway = FakeGateway(orders=[make_order("ord_1", status=OrderStatus.READY)])
    floor = Floor(gateway)
    gateway.failing_writes.add("ord_1")

    with pytest.raises(GatewayWriteError):
        asyncio.run(floor.controller.mark_served("ord_1"))

    assert floor.orders.get("ord_1").status == OrderStatus.READY
    assert floor.audit.entries == []


def test_unknown_order_is_not_found() -> None:
    floor = Floor(FakeGateway())

    with pytest.raises(OrderNotFoundError):
        asyncio.run(floor.controller.cancel_order("ord_missing"))


def test_advance_order_follows_kitchen_flow() -> None:
    floor = Floor(FakeGateway(orders=[make_order("ord_1", status=OrderStatus.NEW)]))

    statuses = [asyncio.run(floor.controller.advance_order("ord_1")).status for _ in range(3)]

    assert statuses == ["accepted", "preparing", "ready"]
    with pytest.raises(InvalidOrderTransitionError):
        asyncio.run(floor.controller.advance_order("ord_1"))


def test_cancel_order() -> None:
    floor = Floor(FakeGateway(orders=[make_order("ord_1", status=OrderStatus.PREPARING)]))

    response = asyncio.run(floor.controller.cancel_order("ord_1"))

    assert response.status == "cancelled"
    assert floor.audit.entries[0].action == AuditAction.ORDER_CANCELLED


def test_acknowledge_request_is_idempotent() -> None:
    floor = Floor(FakeGateway(requests=[make_request("req_1")]))

    first = asyncio.run(floor.controller.acknowledge_request("req_1"))
    second = asyncio.run(floor.controller.acknowledge_request("req_1"))

    assert first.changed is True
    assert second.changed is False
    assert second.status is None
    assert floor.gateway.writes == [("service_requests", "req_1", "completed")]
    assert floor.requests.get("req_1") is None


def test_acknowledge_write_failure_keeps_request_pending() -> None:
    gateway = FakeGateway(requests=[make_request("req_1")])
    floor = Floor(gateway)
    gateway.failing_writes.add("req_1")

    with pytest.raises(GatewayWriteError):
        asyncio.run(floor.controller.acknowledge_request("req_1"))

    assert floor.requests.get("req_1") is not None


def test_close_table_reports_partial_failure() -> None:
    gateway = FakeGateway(
        orders=[
            make_order("ord_a", table_number="5", status=OrderStatus.SERVED),
            make_order("ord_b", table_number="5", status=OrderStatus.READY),
            make_order("ord_other", table_number="6", status=OrderStatus.SERVED),
        ],
        requests=[make_request("req_r", table_number="5", minutes_ago=1)],
    )
    floor = Floor(gateway)
    gateway.failing_writes.add("ord_b")

    result = asyncio.run(floor.controller.close_table("5"))

    assert result.completedOrderIds == ["ord_a"]
    assert result.failedOrderIds == ["ord_b"]
    assert result.completedRequestIds == ["req_r"]
    assert result.failedRequestIds == []
    assert not result.fully_closed

    assert floor.orders.get("ord_a").status == OrderStatus.COMPLETED
    assert floor.orders.get("ord_b").status == OrderStatus.READY
    assert floor.orders.get("ord_other").status == OrderStatus.SERVED
    assert floor.requests.get("req_r") is None
    assert floor.audit.entries[-1].action == AuditAction.TABLE_CLOSED
    assert floor.audit.entries[-1].new_data["failed_order_ids"] == ["ord_b"]

    assert [table.table_number for table in floor.live_tables()] == ["5", "6"]

    gateway.failing_writes.clear()
    retry = asyncio.run(floor.controller.close_table("5"))

    assert retry.completedOrderIds == ["ord_b"]
    assert retry.fully_closed
    assert [table.table_number for table in floor.live_tables()] == ["6"]


def test_close_table_without_live_table_is_a_noop() -> None:
    floor = Floor(FakeGateway(orders=[make_order("ord_1", table_number="3")]))

    result = asyncio.run(floor.controller.close_table("99"))

    assert result.fully_closed
    assert result.completedOrderIds == []
    assert floor.gateway.writes == []


def test_mark_served_conflicts_when_order_changed_elsewhere() -> None:
    gateway = FakeGateway(orders=[make_order("ord_1", status=OrderStatus.READY)])
    floor = Floor(gateway)
    gateway.orders["ord_1"] = replace(gateway.orders["ord_1"], status=OrderStatus.CANCELLED)

    with pytest.raises(OrderStatusConflictError) as exc_info:
        asyncio.run(floor.controller.mark_served("ord_1"))

    assert exc_info.value.details == {
        "record_id": "ord_1",
        "expected": "ready",
        "current": "cancelled",
    }
    assert gateway.writes == []
    assert gateway.orders["ord_1"].status == OrderStatus.CANCELLED
    assert floor.orders.get("ord_1").status == OrderStatus.CANCELLED
    assert floor.audit.entries == []


def test_close_table_reports_order_changed_elsewhere_as_failed() -> None:
    gateway = FakeGateway(
        orders=[
            make_order("ord_a", table_number="5", status=OrderStatus.SERVED),
            make_order("ord_b", table_number="5", status=OrderStatus.READY),
        ],
    )
    floor = Floor(gateway)
    gateway.orders["ord_b"] = replace(gateway.orders["ord_b"], status=OrderStatus.PREPARING)

    result = asyncio.run(floor.controller.close_table("5"))

    assert result.completedOrderIds == ["ord_a"]
    assert result.failedOrderIds == ["ord_b"]
    assert gateway.orders["ord_b"].status == OrderStatus.PREPARING
    assert floor.orders.get("ord_b").status == OrderStatus.PREPARING
