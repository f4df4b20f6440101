from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class AuditAction(str, Enum):
    ORDER_STATUS_CHANGED = "order_status_changed"
    ORDER_SERVED = "order_served"
    ORDER_CANCELLED = "order_cancelled"
    ORDER_COMPLETED = "order_completed"
    SERVICE_REQUEST_COMPLETED = "service_request_completed"
    TABLE_CLOSED = "table_closed"


@dataclass(frozen=True)
class AuditEntry:
    action: AuditAction
    table_name: str
    record_id: str | None
    new_data: dict[str, Any] = field(default_factory=dict)
    old_data: dict[str, Any] | None = None
    trace_id: str | None = None
    request_id: str | None = None


class AuditLog(Protocol):
    async def record(self, entry: AuditEntry) -> None: ...
