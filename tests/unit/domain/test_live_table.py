from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floor_fakes import make_order, make_request
from livefloor.domain.floor.live_table import aggregate, natural_sort_key, summarize
from livefloor.domain.order.entities import OrderStatus
from livefloor.domain.service_request.entities import ServiceRequestStatus


def test_tables_are_sorted_naturally() -> None:
    orders = [
        make_order("ord_1", table_number="10"),
        make_order("ord_2", table_number="2"),
        make_order("ord_3", table_number="1"),
    ]

    tables = aggregate(orders, [])

    assert [table.table_number for table in tables] == ["1", "2", "10"]


def test_natural_sort_handles_prefixed_table_numbers() -> None:
    values = ["B1", "A10", "A2", "3", "terrace"]
    assert sorted(values, key=natural_sort_key) == ["3", "A2", "A10", "B1", "terrace"]


def test_each_open_order_and_pending_request_appears_exactly_once() -> None:
    orders = [
        make_order("ord_1", table_number="5", status=OrderStatus.PREPARING),
        make_order("ord_2", table_number="5", status=OrderStatus.READY),
        make_order("ord_3", table_number="7", status=OrderStatus.NEW),
    ]
    requests = [
        make_request("req_1", table_number="5"),
        make_request("req_2", table_number="9"),
    ]

    tables = aggregate(orders, requests)

    order_ids = [order.order_id for table in tables for order in table.orders]
    request_ids = [request.request_id for table in tables for request in table.service_requests]
    assert sorted(order_ids) == ["ord_1", "ord_2", "ord_3"]
    assert sorted(request_ids) == ["req_1", "req_2"]
    assert [table.table_number for table in tables] == ["5", "7", "9"]

    request_only = tables[-1]
    assert request_only.orders == ()
    assert request_only.total_amount == Decimal("0")
    assert not request_only.all_served


def test_orders_without_table_and_closed_orders_are_excluded() -> None:
    orders = [
        make_order("ord_1", table_number=None),
        make_order("ord_2", table_number="3", status=OrderStatus.COMPLETED),
        make_order("ord_3", table_number="4", status=OrderStatus.CANCELLED),
    ]
    requests = [make_request("req_1", table_number="6", status=ServiceRequestStatus.COMPLETED)]

    assert aggregate(orders, requests) == []


def test_derived_flags_and_exact_totals() -> None:
    orders = [
        make_order("ord_1", table_number="5", status=OrderStatus.SERVED, total="10.10"),
        make_order("ord_2", table_number="5", status=OrderStatus.READY, total="0.20"),
        make_order("ord_3", table_number="8", status=OrderStatus.SERVED, total="0.10"),
        make_order("ord_4", table_number="8", status=OrderStatus.SERVED, total="0.20"),
    ]

    table_5, table_8 = aggregate(orders, [])

    assert table_5.total_amount == Decimal("10.30")
    assert table_5.has_ready_orders
    assert table_5.has_served_orders
    assert not table_5.all_served

    assert table_8.total_amount == Decimal("0.30")
    assert not table_8.has_ready_orders
    assert table_8.all_served
    assert table_8.awaiting_payment


def test_summarize_counts_floor_state() -> None:
    orders = [
        make_order("ord_1", table_number="1", status=OrderStatus.SERVED),
        make_order("ord_2", table_number="2", status=OrderStatus.READY),
        make_order("ord_3", table_number=None, status=OrderStatus.READY),
        make_order("ord_4", table_number="3", status=OrderStatus.COMPLETED),
    ]
    requests = [make_request("req_1", table_number="2")]

    stats = summarize(orders, requests, aggregate(orders, requests))

    assert stats.active_orders == 3
    assert stats.ready_orders == 2
    assert stats.tables_awaiting_payment == 1
    assert stats.pending_requests == 1
