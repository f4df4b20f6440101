from __future__ import annotations

from livefloor.application.dto.responses import (
    AcknowledgeRequestResponse,
    CloseTableResponse,
    OrderResponse,
)
from livefloor.application.ports.audit import AuditLog
from livefloor.application.ports.gateway import RemoteDataGateway
from livefloor.application.stores.order_store import OrderRecordStore
from livefloor.application.stores.service_request_queue import ServiceRequestQueue
from livefloor.application.use_cases.acknowledge_request import AcknowledgeServiceRequest
from livefloor.application.use_cases.advance_order import AdvanceOrder
from livefloor.application.use_cases.cancel_order import CancelOrder
from livefloor.application.use_cases.close_table import CloseTable
from livefloor.application.use_cases.context import TraceContext
from livefloor.application.use_cases.mark_order_served import MarkOrderServed
from livefloor.domain.common.ids import OrderId, ServiceRequestId, TableNumber


class StatusTransitionController:
    """Staff actions of one display session, bound to that session's stores."""

    def __init__(
        self,
        gateway: RemoteDataGateway,
        order_store: OrderRecordStore,
        request_queue: ServiceRequestQueue,
        audit_log: AuditLog | None = None,
        scope_label: str = "all",
    ) -> None:
        self._mark_served = MarkOrderServed(gateway, order_store, audit_log)
        self._advance = AdvanceOrder(gateway, order_store, audit_log)
        self._cancel = CancelOrder(gateway, order_store, audit_log)
        self._acknowledge = AcknowledgeServiceRequest(gateway, request_queue, audit_log)
        self._close_table = CloseTable(
            gateway,
            order_store,
            request_queue,
            audit_log,
            scope_label=scope_label,
        )

    async def mark_served(
        self, order_id: OrderId, trace_ctx: TraceContext | None = None
    ) -> OrderResponse:
        return await self._mark_served.execute(order_id, trace_ctx)

    async def advance_order(
        self, order_id: OrderId, trace_ctx: TraceContext | None = None
    ) -> OrderResponse:
        return await self._advance.execute(order_id, trace_ctx)

    async def cancel_order(
        self, order_id: OrderId, trace_ctx: TraceContext | None = None
    ) -> OrderResponse:
        return await self._cancel.execute(order_id, trace_ctx)

    async def acknowledge_request(
        self, request_id: ServiceRequestId, trace_ctx: TraceContext | None = None
    ) -> AcknowledgeRequestResponse:
        return await self._acknowledge.execute(request_id, trace_ctx)

    async def close_table(
        self, table_number: TableNumber, trace_ctx: TraceContext | None = None
    ) -> CloseTableResponse:
        return await self._close_table.execute(table_number, trace_ctx)
