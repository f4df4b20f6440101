from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from livefloor.application.dto.records import (
    OrderItemRecord,
    OrderRecord,
    ServiceRequestRecord,
)
from livefloor.domain.common.ids import (
    BranchId,
    OrderId,
    OrderItemId,
    ServiceRequestId,
    TableNumber,
)
from livefloor.domain.common.money import Money
from livefloor.domain.order.entities import Modifier, Order, OrderItem, OrderStatus
from livefloor.domain.service_request.entities import (
    ServiceRequest,
    ServiceRequestStatus,
    ServiceRequestType,
)


class MalformedRecordError(Exception):
    def __init__(self, message: str, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id
        self.details = {"record_id": record_id}


def _record_id_hint(record: Any) -> str | None:
    if isinstance(record, dict) and record.get("id") is not None:
        return str(record["id"])
    return None


def record_id_of(record: Any) -> str:
    record_id = _record_id_hint(record)
    if not record_id:
        raise MalformedRecordError("record has no id")
    return record_id


def order_from_record(record: Any) -> Order:
    try:
        parsed = OrderRecord.model_validate(record)
        return Order(
            order_id=OrderId(parsed.id),
            order_number=parsed.order_number,
            table_number=TableNumber(parsed.table_number) if parsed.table_number else None,
            customer_name=parsed.customer_name,
            status=OrderStatus.parse(parsed.status),
            total=Money(parsed.total),
            created_at=parsed.created_at,
            order_type=parsed.order_type,
            payment_method=parsed.payment_method,
            notes=parsed.notes,
            branch_id=BranchId(parsed.branch_id) if parsed.branch_id else None,
        )
    except (ValidationError, ValueError) as exc:
        raise MalformedRecordError(
            f"malformed order record: {exc}", record_id=_record_id_hint(record)
        ) from exc


def order_item_from_record(record: Any) -> OrderItem:
    try:
        parsed = OrderItemRecord.model_validate(record)
        return OrderItem(
            item_id=OrderItemId(parsed.id),
            item_name=parsed.item_name,
            item_name_tr=parsed.item_name_tr,
            quantity=parsed.quantity,
            unit_price=Money(parsed.unit_price),
            total_price=Money(parsed.total_price),
            special_instructions=parsed.special_instructions,
            modifiers=tuple(
                Modifier(
                    name=modifier.name,
                    name_tr=modifier.name_tr,
                    price_adjustment=Money(modifier.price_adjustment),
                )
                for modifier in parsed.modifiers or []
            ),
        )
    except (ValidationError, ValueError) as exc:
        raise MalformedRecordError(
            f"malformed order item record: {exc}", record_id=_record_id_hint(record)
        ) from exc


def service_request_from_record(record: Any) -> ServiceRequest:
    try:
        parsed = ServiceRequestRecord.model_validate(record)
        return ServiceRequest(
            request_id=ServiceRequestId(parsed.id),
            table_number=TableNumber(parsed.table_number),
            request_type=ServiceRequestType(parsed.request_type),
            status=ServiceRequestStatus(parsed.status),
            created_at=parsed.created_at,
            branch_id=BranchId(parsed.branch_id) if parsed.branch_id else None,
            order_id=OrderId(parsed.order_id) if parsed.order_id else None,
        )
    except (ValidationError, ValueError) as exc:
        raise MalformedRecordError(
            f"malformed service request record: {exc}", record_id=_record_id_hint(record)
        ) from exc


def order_to_record(order: Order) -> dict[str, Any]:
    return {
        "id": str(order.order_id),
        "order_number": order.order_number,
        "branch_id": order.branch_id,
        "table_number": order.table_number,
        "customer_name": order.customer_name,
        "status": order.status.value,
        "total": str(order.total.amount),
        "created_at": order.created_at.isoformat(),
        "order_type": order.order_type,
        "payment_method": order.payment_method,
        "notes": order.notes,
    }


def service_request_to_record(request: ServiceRequest) -> dict[str, Any]:
    return {
        "id": str(request.request_id),
        "branch_id": request.branch_id,
        "order_id": request.order_id,
        "table_number": request.table_number,
        "request_type": request.request_type.value,
        "status": request.status.value,
        "created_at": request.created_at.isoformat(),
    }
