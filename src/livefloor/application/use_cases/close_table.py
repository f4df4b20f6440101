from __future__ import annotations

import logging

from livefloor.application.dto.responses import CloseTableResponse
from livefloor.application.metrics.floor_metrics import (
    record_gateway_write_failure,
    record_table_closed,
    record_transition,
)
from livefloor.application.ports.audit import AuditAction, AuditEntry, AuditLog
from livefloor.application.ports.gateway import (
    Entity,
    GatewayConflictError,
    GatewayError,
    RemoteDataGateway,
)
from livefloor.application.stores.order_store import OrderRecordStore
from livefloor.application.stores.service_request_queue import ServiceRequestQueue
from livefloor.application.use_cases.context import TraceContext
from livefloor.application.use_cases.order_status import record_audit
from livefloor.domain.common.ids import TableNumber
from livefloor.domain.floor.live_table import LiveTable, aggregate
from livefloor.domain.order.entities import OrderStatus
from livefloor.domain.service_request.entities import ServiceRequestStatus

logger = logging.getLogger(__name__)


class CloseTable:
    """Complete every open order and pending request at one table.

    Rows are written one by one. A failed row does not stop the others; the
    response lists completed and failed ids so the caller can retry the rest.
    Nothing is rolled back.
    """

    def __init__(
        self,
        gateway: RemoteDataGateway,
        order_store: OrderRecordStore,
        request_queue: ServiceRequestQueue,
        audit_log: AuditLog | None = None,
        scope_label: str = "all",
    ) -> None:
        self._gateway = gateway
        self._order_store = order_store
        self._request_queue = request_queue
        self._audit_log = audit_log
        self._scope_label = scope_label

    def _live_table(self, table_number: TableNumber) -> LiveTable | None:
        for table in aggregate(self._order_store.orders, self._request_queue.requests):
            if table.table_number == table_number:
                return table
        return None

    async def execute(
        self,
        table_number: TableNumber,
        trace_ctx: TraceContext | None = None,
    ) -> CloseTableResponse:
        result = CloseTableResponse(tableNumber=str(table_number))
        table = self._live_table(table_number)
        if table is None:
            logger.info("close_table_noop", extra={"table_number": table_number})
            return result

        for order in table.orders:
            try:
                await self._gateway.update_order_status(
                    order.order_id,
                    OrderStatus.COMPLETED,
                    expected_status=order.status,
                )
            except GatewayError as exc:
                if isinstance(exc, GatewayConflictError):
                    self._order_store.apply_remote_status(order.order_id, exc.current_status)
                record_gateway_write_failure(Entity.ORDERS.value)
                logger.warning(
                    "close_table_order_failed",
                    exc_info=True,
                    extra={"table_number": table_number, "order_id": order.order_id},
                )
                result.failedOrderIds.append(str(order.order_id))
                continue
            self._order_store.apply_confirmed_status(order.order_id, OrderStatus.COMPLETED)
            record_transition(from_status=order.status, to_status=OrderStatus.COMPLETED)
            result.completedOrderIds.append(str(order.order_id))

        for request in table.service_requests:
            try:
                await self._gateway.update_service_request_status(
                    request.request_id,
                    ServiceRequestStatus.COMPLETED,
                )
            except GatewayError:
                record_gateway_write_failure(Entity.SERVICE_REQUESTS.value)
                logger.warning(
                    "close_table_request_failed",
                    exc_info=True,
                    extra={
                        "table_number": table_number,
                        "service_request_id": request.request_id,
                    },
                )
                result.failedRequestIds.append(str(request.request_id))
                continue
            self._request_queue.apply_confirmed_completion(request.request_id)
            result.completedRequestIds.append(str(request.request_id))

        record_table_closed(scope=self._scope_label, fully_closed=result.fully_closed)
        logger.info(
            "table_closed",
            extra={
                "table_number": table_number,
                "failed_orders": len(result.failedOrderIds),
                "failed_requests": len(result.failedRequestIds),
            },
        )

        ctx = TraceContext.resolve(trace_ctx)
        await record_audit(
            self._audit_log,
            AuditEntry(
                action=AuditAction.TABLE_CLOSED,
                table_name=Entity.ORDERS.value,
                record_id=None,
                new_data={
                    "table_number": str(table_number),
                    "total_amount": str(table.total_amount),
                    "order_count": len(table.orders),
                    "failed_order_ids": result.failedOrderIds,
                    "failed_request_ids": result.failedRequestIds,
                },
                trace_id=ctx.trace_id,
                request_id=ctx.request_id,
            ),
        )
        return result
