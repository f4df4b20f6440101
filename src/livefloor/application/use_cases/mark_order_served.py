from __future__ import annotations

from livefloor.application.metrics.floor_metrics import record_time_to_serve
from livefloor.application.ports.audit import AuditAction
from livefloor.application.use_cases.order_status import OrderStatusChange
from livefloor.domain.order.entities import Order, OrderStatus


class MarkOrderServed(OrderStatusChange):
    action = AuditAction.ORDER_SERVED
    target_status = OrderStatus.SERVED

    def _transition(self, order: Order) -> Order:
        return order.mark_served()

    def _after_confirmed(self, order: Order) -> None:
        record_time_to_serve(order)
