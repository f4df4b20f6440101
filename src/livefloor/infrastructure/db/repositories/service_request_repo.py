from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Engine, select, update
from sqlalchemy.orm import Session

from livefloor.infrastructure.db.models.service_request import ServiceRequestModel
from livefloor.infrastructure.db.repositories.order_repo import RecordNotFoundError, _as_utc
from livefloor.infrastructure.db.session import get_engine


def service_request_record(model: ServiceRequestModel) -> dict[str, Any]:
    return {
        "id": model.id,
        "branch_id": model.branch_id,
        "order_id": model.order_id,
        "table_number": model.table_number,
        "request_type": model.request_type,
        "status": model.status,
        "created_at": _as_utc(model.created_at),
    }


class SqlAlchemyServiceRequestRepository:
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_by_status(
        self,
        status: str,
        since: datetime,
        branch_id: str | None = None,
    ) -> list[dict[str, Any]]:
        statement = select(ServiceRequestModel).where(
            ServiceRequestModel.status == status,
            ServiceRequestModel.created_at >= _as_utc(since),
        )
        if branch_id is not None:
            statement = statement.where(ServiceRequestModel.branch_id == branch_id)
        statement = statement.order_by(ServiceRequestModel.created_at, ServiceRequestModel.id)

        with Session(self._engine) as session:
            models = session.execute(statement).scalars().all()
            return [service_request_record(model) for model in models]

    def update_status(self, request_id: str, new_status: str) -> dict[str, Any]:
        statement = (
            update(ServiceRequestModel)
            .where(ServiceRequestModel.id == request_id)
            .values(status=new_status)
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise RecordNotFoundError(f"service request {request_id} not found")
            session.commit()
            model = session.get(ServiceRequestModel, request_id)
            if model is None:
                raise RecordNotFoundError(f"service request {request_id} not found after update")
            return service_request_record(model)

    def add(self, record: dict[str, Any]) -> dict[str, Any]:
        model = ServiceRequestModel(
            id=record["id"],
            branch_id=record.get("branch_id"),
            order_id=record.get("order_id"),
            table_number=record["table_number"],
            request_type=record["request_type"],
            status=record.get("status", "pending"),
            created_at=_as_utc(record["created_at"]),
        )
        with Session(self._engine) as session:
            session.add(model)
            session.commit()
            return service_request_record(model)
