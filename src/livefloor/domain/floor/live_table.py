from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from livefloor.domain.common.ids import TableNumber
from livefloor.domain.order.entities import Order, OrderStatus
from livefloor.domain.service_request.entities import ServiceRequest

_DIGITS = re.compile(r"(\d+)")


@dataclass(frozen=True)
class LiveTable:
    table_number: TableNumber
    orders: tuple[Order, ...]
    service_requests: tuple[ServiceRequest, ...]
    total_amount: Decimal
    has_ready_orders: bool
    has_served_orders: bool
    all_served: bool

    @property
    def awaiting_payment(self) -> bool:
        return self.all_served


def natural_sort_key(value: str) -> tuple[tuple[tuple[int, int, str], ...], str]:
    """Sort key that orders embedded numbers numerically ("2" < "10", "A2" < "A10")."""
    chunks: list[tuple[int, int, str]] = []
    for chunk in _DIGITS.split(value.strip()):
        if not chunk:
            continue
        if chunk.isdigit():
            chunks.append((0, int(chunk), chunk))
        else:
            chunks.append((1, 0, chunk.casefold()))
    return tuple(chunks), value


def _qualifies(order: Order) -> bool:
    return order.is_table_order and order.is_open


def aggregate(
    orders: Iterable[Order],
    service_requests: Iterable[ServiceRequest],
) -> list[LiveTable]:
    """Group open table orders and pending service requests into live tables.

    Orders without a table number (takeout, delivery) and orders in a terminal
    status are left out. A table is listed when it has at least one open order
    or one pending request; the result is sorted by natural table order.
    """
    order_buckets: dict[str, list[Order]] = {}
    request_buckets: dict[str, list[ServiceRequest]] = {}

    for order in orders:
        if not _qualifies(order):
            continue
        order_buckets.setdefault(str(order.table_number), []).append(order)

    for request in service_requests:
        if not request.is_pending or not request.table_number:
            continue
        table_number = str(request.table_number)
        order_buckets.setdefault(table_number, [])
        request_buckets.setdefault(table_number, []).append(request)

    live_tables: list[LiveTable] = []
    for table_number, table_orders in order_buckets.items():
        statuses = [order.status for order in table_orders]
        live_tables.append(
            LiveTable(
                table_number=TableNumber(table_number),
                orders=tuple(table_orders),
                service_requests=tuple(request_buckets.get(table_number, ())),
                total_amount=sum((order.total.amount for order in table_orders), Decimal("0")),
                has_ready_orders=OrderStatus.READY in statuses,
                has_served_orders=OrderStatus.SERVED in statuses,
                all_served=bool(statuses)
                and all(status == OrderStatus.SERVED for status in statuses),
            )
        )

    live_tables.sort(key=lambda table: natural_sort_key(table.table_number))
    return live_tables


@dataclass(frozen=True)
class FloorStats:
    active_orders: int
    ready_orders: int
    tables_awaiting_payment: int
    pending_requests: int


def summarize(
    orders: Iterable[Order],
    service_requests: Iterable[ServiceRequest],
    live_tables: Iterable[LiveTable],
) -> FloorStats:
    orders = list(orders)
    return FloorStats(
        active_orders=sum(1 for order in orders if order.is_open),
        ready_orders=sum(1 for order in orders if order.status == OrderStatus.READY),
        tables_awaiting_payment=sum(1 for table in live_tables if table.all_served),
        pending_requests=sum(1 for request in service_requests if request.is_pending),
    )
