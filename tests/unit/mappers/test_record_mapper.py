from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from livefloor.application.mappers.record_mapper import (
    MalformedRecordError,
    order_from_record,
    order_item_from_record,
    record_id_of,
    service_request_from_record,
)
from livefloor.domain.order.entities import OrderStatus
from livefloor.domain.service_request.entities import ServiceRequestType


def _order_row(**overrides) -> dict:
    row = {
        "id": "ord_1",
        "order_number": 42,
        "branch_id": "brn_1",
        "table_number": "12",
        "customer_name": "Ayse",
        "status": "preparing",
        "total": 24.9,
        "order_type": "dine_in",
        "payment_method": "card",
        "created_at": "2026-03-14T18:05:00+00:00",
        "some_new_column": "ignored",
    }
    row.update(overrides)
    return row


def test_order_row_maps_to_domain() -> None:
    order = order_from_record(_order_row())

    assert order.order_id == "ord_1"
    assert order.status == OrderStatus.PREPARING
    assert order.total.amount == Decimal("24.9")
    assert order.created_at == datetime(2026, 3, 14, 18, 5, tzinfo=timezone.utc)


def test_in_progress_status_reads_as_preparing() -> None:
    order = order_from_record(_order_row(status="in_progress"))

    assert order.status == OrderStatus.PREPARING


def test_blank_table_number_becomes_none() -> None:
    assert order_from_record(_order_row(table_number="  ")).table_number is None
    assert order_from_record(_order_row(table_number=None)).table_number is None


def test_naive_timestamp_is_read_as_utc() -> None:
    order = order_from_record(_order_row(created_at="2026-03-14T18:05:00"))
    assert order.created_at.tzinfo is not None


def test_bad_order_rows_raise_malformed_record() -> None:
    with pytest.raises(MalformedRecordError) as exc_info:
        order_from_record(_order_row(status="lost"))
    assert exc_info.value.record_id == "ord_1"

    with pytest.raises(MalformedRecordError):
        order_from_record(_order_row(total="-3.00"))

    with pytest.raises(MalformedRecordError):
        order_from_record("not a row")


def test_item_row_with_camel_case_modifiers() -> None:
    item = order_item_from_record(
        {
            "id": "itm_1",
            "order_id": "ord_1",
            "item_name": "Pide",
            "quantity": 2,
            "unit_price": "7.25",
            "total_price": "17.50",
            "modifiers": [{"name": "Extra cheese", "priceAdjustment": 1.5}],
        }
    )

    assert item.total_price.amount == Decimal("17.50")
    assert item.modifiers[0].price_adjustment.amount == Decimal("1.5")


def test_item_row_with_inconsistent_total_is_malformed() -> None:
    with pytest.raises(MalformedRecordError):
        order_item_from_record(
            {"id": "itm_1", "item_name": "Pide", "quantity": 2, "unit_price": "7.25", "total_price": "7.25"}
        )


def test_service_request_row() -> None:
    request = service_request_from_record(
        {
            "id": "req_1",
            "table_number": "3",
            "request_type": "request_bill",
            "status": "pending",
            "created_at": "2026-03-14T18:05:00Z",
        }
    )
    assert request.request_type == ServiceRequestType.REQUEST_BILL
    assert request.is_pending

    padded = service_request_from_record(
        {
            "id": "req_3",
            "table_number": " 5 ",
            "request_type": "call_waiter",
            "status": "pending",
            "created_at": "2026-03-14T18:05:00Z",
        }
    )
    assert padded.table_number == "5"

    with pytest.raises(MalformedRecordError):
        service_request_from_record({"id": "req_2", "table_number": "", "request_type": "call_waiter"})
    with pytest.raises(MalformedRecordError):
        service_request_from_record(
            {
                "id": "req_4",
                "table_number": "   ",
                "request_type": "call_waiter",
                "status": "pending",
                "created_at": "2026-03-14T18:05:00Z",
            }
        )


def test_record_id_of_requires_id() -> None:
    assert record_id_of({"id": 7}) == "7"
    with pytest.raises(MalformedRecordError):
        record_id_of({"status": "new"})
