from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from livefloor.application.mappers.record_mapper import (
    MalformedRecordError,
    order_from_record,
    order_item_from_record,
    service_request_from_record,
)
from livefloor.application.ports.gateway import (
    ChangeHandler,
    ChangeOperation,
    Entity,
    GatewayConflictError,
    GatewayError,
    RemoteDataGateway,
    Subscription,
)
from livefloor.domain.common.ids import OrderId, ServiceRequestId
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.order.entities import Order, OrderItem, OrderStatus
from livefloor.domain.service_request.entities import ServiceRequest, ServiceRequestStatus
from livefloor.infrastructure.cache.redis_client import redis_configured
from livefloor.infrastructure.db.repositories.order_repo import (
    RecordNotFoundError,
    SqlAlchemyOrderRepository,
    StatusConflictError,
)
from livefloor.infrastructure.db.repositories.service_request_repo import (
    SqlAlchemyServiceRequestRepository,
)
from livefloor.infrastructure.messaging.redis_change_feed import (
    RedisChangePublisher,
    subscribe_changes,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WRAPPED_ERRORS = (SQLAlchemyError, RecordNotFoundError)


class ChangePublisher(Protocol):
    def publish(
        self,
        entity: str,
        operation: ChangeOperation,
        record: dict[str, Any],
    ) -> None: ...


Subscriber = Callable[[str, ChangeHandler], Subscription]


def _map_rows(rows: list[dict[str, Any]], mapper: Callable[[dict[str, Any]], T]) -> list[T]:
    mapped: list[T] = []
    for row in rows:
        try:
            mapped.append(mapper(row))
        except MalformedRecordError as exc:
            logger.warning(
                "gateway_row_skipped",
                extra={"record_id": exc.record_id, "reason": str(exc)},
            )
    return mapped


class SqlAlchemyGateway(RemoteDataGateway):
    """Gateway over the relational store, with writes echoed onto the change feed."""

    def __init__(
        self,
        order_repository: SqlAlchemyOrderRepository | None = None,
        request_repository: SqlAlchemyServiceRequestRepository | None = None,
        publisher: ChangePublisher | None = None,
        subscriber: Subscriber | None = None,
    ) -> None:
        self._order_repository = order_repository or SqlAlchemyOrderRepository()
        self._request_repository = request_repository or SqlAlchemyServiceRequestRepository()
        if publisher is None and redis_configured():
            publisher = RedisChangePublisher()
        self._publisher = publisher
        self._subscriber = subscriber or subscribe_changes

    async def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except StatusConflictError as exc:
            raise GatewayConflictError(
                f"{operation} rejected: {exc}", current_status=exc.current_status
            ) from exc
        except _WRAPPED_ERRORS as exc:
            raise GatewayError(f"{operation} failed: {exc}") from exc

    def _publish(self, entity: Entity, operation: ChangeOperation, record: dict[str, Any]) -> None:
        if self._publisher is None:
            return
        try:
            self._publisher.publish(entity.value, operation, record)
        except Exception:
            logger.warning(
                "change_publish_failed",
                exc_info=True,
                extra={"entity": entity.value, "record_id": record.get("id")},
            )

    async def fetch_orders(self, since: datetime, scope: AccessScope) -> list[Order]:
        rows = await self._call(
            "fetch_orders",
            self._order_repository.list_since,
            since,
            scope.branch_id,
        )
        return _map_rows(rows, order_from_record)

    async def fetch_order_items(self, order_id: OrderId) -> list[OrderItem]:
        rows = await self._call(
            "fetch_order_items",
            self._order_repository.list_items,
            str(order_id),
        )
        return _map_rows(rows, order_item_from_record)

    async def fetch_service_requests(
        self,
        status: ServiceRequestStatus,
        since: datetime,
        scope: AccessScope,
    ) -> list[ServiceRequest]:
        rows = await self._call(
            "fetch_service_requests",
            self._request_repository.list_by_status,
            status.value,
            since,
            scope.branch_id,
        )
        return _map_rows(rows, service_request_from_record)

    async def update_order_status(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_status: OrderStatus | None = None,
    ) -> None:
        record = await self._call(
            "update_order_status",
            self._order_repository.update_status,
            str(order_id),
            new_status.value,
            expected_status.stored_values if expected_status is not None else None,
        )
        self._publish(Entity.ORDERS, ChangeOperation.UPDATE, record)

    async def update_service_request_status(
        self,
        request_id: ServiceRequestId,
        new_status: ServiceRequestStatus,
    ) -> None:
        record = await self._call(
            "update_service_request_status",
            self._request_repository.update_status,
            str(request_id),
            new_status.value,
        )
        self._publish(Entity.SERVICE_REQUESTS, ChangeOperation.UPDATE, record)

    async def subscribe(self, entity: Entity, on_event: ChangeHandler) -> Subscription:
        return self._subscriber(entity.value, on_event)
