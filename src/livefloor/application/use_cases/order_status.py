from __future__ import annotations

import logging

from livefloor.application.dto.responses import OrderResponse
from livefloor.application.mappers.order_mapper import to_order_response
from livefloor.application.metrics.floor_metrics import (
    record_gateway_write_failure,
    record_transition,
    record_transition_rejected,
)
from livefloor.application.ports.audit import AuditAction, AuditEntry, AuditLog
from livefloor.application.ports.gateway import (
    Entity,
    GatewayConflictError,
    GatewayError,
    RemoteDataGateway,
)
from livefloor.application.stores.order_store import OrderRecordStore
from livefloor.application.use_cases.context import TraceContext
from livefloor.domain.common.ids import OrderId
from livefloor.domain.order.entities import Order, OrderStatus, OrderTransitionError

logger = logging.getLogger(__name__)


class OrderNotFoundError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    def __init__(self, message: str, from_status: str, to_status: str) -> None:
        super().__init__(message)
        self.details = {"from": from_status, "to": to_status}


class GatewayWriteError(Exception):
    def __init__(self, message: str, record_id: str) -> None:
        super().__init__(message)
        self.details = {"record_id": record_id}


class OrderStatusConflictError(Exception):
    def __init__(
        self,
        message: str,
        record_id: str,
        expected_status: str,
        current_status: str | None,
    ) -> None:
        super().__init__(message)
        self.details = {
            "record_id": record_id,
            "expected": expected_status,
            "current": current_status,
        }


async def record_audit(
    audit_log: AuditLog | None,
    entry: AuditEntry,
) -> None:
    if audit_log is None:
        return
    try:
        await audit_log.record(entry)
    except Exception:
        logger.warning(
            "audit_log_failed",
            exc_info=True,
            extra={"action": entry.action.value, "record_id": entry.record_id},
        )


class OrderStatusChange:
    """Validate one order transition locally, write it through the gateway, then patch the store.

    The store is only patched once the gateway confirms the write.
    """

    action: AuditAction = AuditAction.ORDER_STATUS_CHANGED
    target_status: OrderStatus | None = None

    def __init__(
        self,
        gateway: RemoteDataGateway,
        order_store: OrderRecordStore,
        audit_log: AuditLog | None = None,
    ) -> None:
        self._gateway = gateway
        self._order_store = order_store
        self._audit_log = audit_log

    async def execute(
        self,
        order_id: OrderId,
        trace_ctx: TraceContext | None = None,
    ) -> OrderResponse:
        order = self._order_store.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")

        try:
            changed = self._transition(order)
        except OrderTransitionError as exc:
            target = self.target_status or order.status
            record_transition_rejected(from_status=order.status, to_status=target)
            raise InvalidOrderTransitionError(
                str(exc),
                from_status=order.status.value,
                to_status=target.value,
            ) from exc

        try:
            await self._gateway.update_order_status(
                order.order_id,
                changed.status,
                expected_status=order.status,
            )
        except GatewayConflictError as exc:
            self._order_store.apply_remote_status(order.order_id, exc.current_status)
            logger.warning(
                "order_status_conflict",
                extra={"order_id": order.order_id, "status": exc.current_status},
            )
            raise OrderStatusConflictError(
                f"order {order_id} changed elsewhere; status is now {exc.current_status}",
                record_id=str(order_id),
                expected_status=order.status.value,
                current_status=exc.current_status,
            ) from exc
        except GatewayError as exc:
            record_gateway_write_failure(Entity.ORDERS.value)
            logger.warning(
                "order_status_write_failed",
                exc_info=True,
                extra={"order_id": order.order_id, "status": changed.status.value},
            )
            raise GatewayWriteError(
                f"failed to update order {order_id} to status={changed.status.value}",
                record_id=str(order_id),
            ) from exc

        confirmed = (
            self._order_store.apply_confirmed_status(order.order_id, changed.status) or changed
        )
        record_transition(from_status=order.status, to_status=changed.status)
        self._after_confirmed(confirmed)

        ctx = TraceContext.resolve(trace_ctx)
        await record_audit(
            self._audit_log,
            AuditEntry(
                action=self.action,
                table_name=Entity.ORDERS.value,
                record_id=str(order.order_id),
                old_data={"status": order.status.value},
                new_data={"status": changed.status.value, "table_number": order.table_number},
                trace_id=ctx.trace_id,
                request_id=ctx.request_id,
            ),
        )
        return to_order_response(confirmed)

    def _transition(self, order: Order) -> Order:
        raise NotImplementedError

    def _after_confirmed(self, order: Order) -> None:
        return None
