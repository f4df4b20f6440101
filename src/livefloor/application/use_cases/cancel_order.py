from __future__ import annotations

from livefloor.application.ports.audit import AuditAction
from livefloor.application.use_cases.order_status import OrderStatusChange
from livefloor.domain.order.entities import Order, OrderStatus


class CancelOrder(OrderStatusChange):
    action = AuditAction.ORDER_CANCELLED
    target_status = OrderStatus.CANCELLED

    def _transition(self, order: Order) -> Order:
        return order.cancel()
