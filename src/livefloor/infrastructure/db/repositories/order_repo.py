from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session

from livefloor.infrastructure.db.models.order import OrderItemModel, OrderModel
from livefloor.infrastructure.db.session import get_engine


class RecordNotFoundError(Exception):
    pass


class StatusConflictError(Exception):
    def __init__(self, message: str, current_status: str) -> None:
        super().__init__(message)
        self.current_status = current_status


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def order_record(model: OrderModel) -> dict[str, Any]:
    return {
        "id": model.id,
        "order_number": model.order_number,
        "branch_id": model.branch_id,
        "table_number": model.table_number,
        "customer_name": model.customer_name,
        "status": model.status,
        "total": model.total,
        "order_type": model.order_type,
        "payment_method": model.payment_method,
        "notes": model.notes,
        "created_at": _as_utc(model.created_at),
    }


def order_item_record(model: OrderItemModel) -> dict[str, Any]:
    return {
        "id": model.id,
        "order_id": model.order_id,
        "item_name": model.item_name,
        "item_name_tr": model.item_name_tr,
        "quantity": model.quantity,
        "unit_price": model.unit_price,
        "total_price": model.total_price,
        "special_instructions": model.special_instructions,
        "modifiers": model.modifiers or [],
    }


class SqlAlchemyOrderRepository:
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_since(self, since: datetime, branch_id: str | None = None) -> list[dict[str, Any]]:
        statement = select(OrderModel).where(OrderModel.created_at >= _as_utc(since))
        if branch_id is not None:
            statement = statement.where(OrderModel.branch_id == branch_id)
        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())

        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [order_record(model) for model in models]

    def list_items(self, order_id: str) -> list[dict[str, Any]]:
        statement = (
            select(OrderItemModel)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.id)
        )
        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [order_item_record(model) for model in models]

    def update_status(
        self,
        order_id: str,
        new_status: str,
        expected_statuses: tuple[str, ...] | None = None,
    ) -> dict[str, Any]:
        statement = update(OrderModel).where(OrderModel.id == order_id)
        if expected_statuses is not None:
            statement = statement.where(OrderModel.status.in_(expected_statuses))
        statement = statement.values(status=new_status)
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                current = session.get(OrderModel, order_id)
                if current is None:
                    raise RecordNotFoundError(f"order {order_id} not found")
                raise StatusConflictError(
                    f"order {order_id} status conflict: expected={expected_statuses} "
                    f"actual={current.status}",
                    current_status=current.status,
                )
            session.commit()
            model = session.get(OrderModel, order_id)
            if model is None:
                raise RecordNotFoundError(f"order {order_id} not found after status update")
            return order_record(model)

    def add(self, record: dict[str, Any], items: list[dict[str, Any]]) -> dict[str, Any]:
        model = OrderModel(
            id=record["id"],
            order_number=record["order_number"],
            branch_id=record.get("branch_id"),
            table_number=record.get("table_number"),
            customer_name=record.get("customer_name", ""),
            status=record.get("status", "new"),
            total=record["total"],
            order_type=record.get("order_type", "dine_in"),
            payment_method=record.get("payment_method", "cash"),
            notes=record.get("notes"),
            created_at=_as_utc(record["created_at"]),
        )
        model.items = [
            OrderItemModel(
                id=item["id"],
                order_id=record["id"],
                item_name=item["item_name"],
                item_name_tr=item.get("item_name_tr"),
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total_price=item["total_price"],
                special_instructions=item.get("special_instructions"),
                modifiers=item.get("modifiers") or [],
            )
            for item in items
        ]
        with Session(self._engine) as session:
            session.add(model)
            session.commit()
            return order_record(model)
