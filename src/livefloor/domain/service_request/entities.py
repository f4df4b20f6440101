from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from livefloor.domain.common.ids import BranchId, OrderId, ServiceRequestId, TableNumber


class ServiceRequestType(str, Enum):
    CALL_WAITER = "call_waiter"
    REQUEST_BILL = "request_bill"


class ServiceRequestStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ServiceRequest:
    request_id: ServiceRequestId
    table_number: TableNumber
    request_type: ServiceRequestType
    status: ServiceRequestStatus
    created_at: datetime
    branch_id: BranchId | None = None
    order_id: OrderId | None = None

    def __post_init__(self) -> None:
        if not self.table_number:
            raise ValueError("table_number is required")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")

    @property
    def is_pending(self) -> bool:
        return self.status == ServiceRequestStatus.PENDING

    def complete(self) -> ServiceRequest:
        if not self.is_pending:
            return self
        return replace(self, status=ServiceRequestStatus.COMPLETED)
