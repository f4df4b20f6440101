from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Protocol

from livefloor.domain.common.ids import OrderId, ServiceRequestId
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.order.entities import Order, OrderItem, OrderStatus
from livefloor.domain.service_request.entities import ServiceRequest, ServiceRequestStatus


class Entity(str, Enum):
    ORDERS = "orders"
    SERVICE_REQUESTS = "service_requests"


class ChangeOperation(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent:
    entity: str
    operation: ChangeOperation
    record: dict[str, Any] = field(default_factory=dict)


ChangeHandler = Callable[[ChangeEvent], None]


class Subscription(Protocol):
    async def cancel(self) -> None: ...


class RemoteDataGateway(Protocol):
    async def fetch_orders(self, since: datetime, scope: AccessScope) -> list[Order]: ...

    async def fetch_order_items(self, order_id: OrderId) -> list[OrderItem]: ...

    async def fetch_service_requests(
        self,
        status: ServiceRequestStatus,
        since: datetime,
        scope: AccessScope,
    ) -> list[ServiceRequest]: ...

    async def update_order_status(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_status: OrderStatus | None = None,
    ) -> None: ...

    async def update_service_request_status(
        self,
        request_id: ServiceRequestId,
        new_status: ServiceRequestStatus,
    ) -> None: ...

    async def subscribe(self, entity: Entity, on_event: ChangeHandler) -> Subscription: ...


class GatewayError(Exception):
    """Raised by gateway adapters for transport, timeout or rejected-write failures."""


class GatewayConflictError(GatewayError):
    """The row no longer had the status the write expected."""

    def __init__(self, message: str, current_status: str | None = None) -> None:
        super().__init__(message)
        self.current_status = current_status
