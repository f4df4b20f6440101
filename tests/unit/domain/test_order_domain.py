from __future__ import annotations

import sys
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floor_fakes import make_item, make_order
from livefloor.domain.common.ids import OrderItemId
from livefloor.domain.common.money import Money
from livefloor.domain.order.entities import (
    Modifier,
    OrderItem,
    OrderStatus,
    OrderTransitionError,
    can_transition,
)


def test_mark_served_only_from_ready() -> None:
    served = make_order("ord_1", status=OrderStatus.READY).mark_served()
    assert served.status == OrderStatus.SERVED

    for status in (OrderStatus.NEW, OrderStatus.PREPARING, OrderStatus.SERVED, OrderStatus.COMPLETED):
        with pytest.raises(OrderTransitionError):
            make_order("ord_1", status=status).mark_served()


def test_kitchen_advance_walks_to_ready_and_stops() -> None:
    order = make_order("ord_1", status=OrderStatus.NEW)
    order = order.advance()
    assert order.status == OrderStatus.ACCEPTED
    order = order.advance()
    assert order.status == OrderStatus.PREPARING
    order = order.advance()
    assert order.status == OrderStatus.READY

    with pytest.raises(OrderTransitionError):
        order.advance()


def test_cancel_and_complete_from_any_open_status() -> None:
    for status in (OrderStatus.NEW, OrderStatus.ACCEPTED, OrderStatus.READY, OrderStatus.SERVED):
        assert make_order("ord_1", status=status).cancel().status == OrderStatus.CANCELLED
        assert make_order("ord_1", status=status).complete().status == OrderStatus.COMPLETED


def test_terminal_orders_do_not_move() -> None:
    for status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        order = make_order("ord_1", status=status)
        assert not order.is_open
        with pytest.raises(OrderTransitionError):
            order.cancel()
        with pytest.raises(OrderTransitionError):
            order.complete()


def test_transition_table() -> None:
    assert can_transition(OrderStatus.NEW, OrderStatus.PREPARING)
    assert can_transition(OrderStatus.NEW, OrderStatus.ACCEPTED)
    assert not can_transition(OrderStatus.NEW, OrderStatus.READY)
    assert not can_transition(OrderStatus.PREPARING, OrderStatus.SERVED)
    assert not can_transition(OrderStatus.SERVED, OrderStatus.READY)


def test_order_rejects_negative_total_and_naive_timestamp() -> None:
    order = make_order("ord_1")
    with pytest.raises(ValueError):
        type(order)(**{**order.__dict__, "total": Money(Decimal("-1"))})
    with pytest.raises(ValueError):
        type(order)(**{**order.__dict__, "created_at": datetime(2026, 3, 14, 12, 0)})


def test_order_item_totals_must_match() -> None:
    assert make_item("itm_1", quantity=3, unit_price="2.10").total_price == Money(Decimal("6.30"))

    with pytest.raises(ValueError):
        OrderItem(
            item_id=OrderItemId("itm_2"),
            item_name="Soup",
            quantity=2,
            unit_price=Money(Decimal("4.00")),
            total_price=Money(Decimal("9.00")),
        )
    with pytest.raises(ValueError):
        make_item("itm_3", quantity=0)


def test_order_item_total_includes_modifier_adjustments() -> None:
    item = OrderItem(
        item_id=OrderItemId("itm_1"),
        item_name="Adana Kebab",
        quantity=2,
        unit_price=Money(Decimal("10.00")),
        total_price=Money(Decimal("24.00")),
        modifiers=(
            Modifier(name="Extra lavash", price_adjustment=Money(Decimal("1.50"))),
            Modifier(name="Ayran", price_adjustment=Money(Decimal("0.50"))),
        ),
    )

    assert item.line_price == Money(Decimal("12.00"))

    with pytest.raises(ValueError):
        OrderItem(
            item_id=OrderItemId("itm_2"),
            item_name="Adana Kebab",
            quantity=2,
            unit_price=Money(Decimal("10.00")),
            total_price=Money(Decimal("20.00")),
            modifiers=(Modifier(name="Ayran", price_adjustment=Money(Decimal("0.50"))),),
        )


def test_status_parse_reads_in_progress_as_preparing() -> None:
    assert OrderStatus.parse("in_progress") == OrderStatus.PREPARING
    assert OrderStatus.parse(" Ready ") == OrderStatus.READY
    assert OrderStatus.PREPARING.stored_values == ("preparing", "in_progress")
    assert OrderStatus.READY.stored_values == ("ready",)

    with pytest.raises(ValueError):
        OrderStatus.parse("lost")


def test_table_order_requires_table_number() -> None:
    assert make_order("ord_1", table_number="12").is_table_order
    assert not make_order("ord_2", table_number=None).is_table_order


def test_money_of_float_keeps_decimal_text() -> None:
    assert Money.of(12.3).amount == Decimal("12.3")
    assert Money.of("0.1") + Money.of("0.2") == Money.of("0.3")
    with pytest.raises(ValueError):
        Money.of("twelve")
