from __future__ import annotations

from livefloor.application.ports.audit import AuditAction
from livefloor.application.use_cases.order_status import OrderStatusChange
from livefloor.domain.order.entities import Order


class AdvanceOrder(OrderStatusChange):
    """Kitchen bump: new -> accepted -> preparing -> ready."""

    action = AuditAction.ORDER_STATUS_CHANGED

    def _transition(self, order: Order) -> Order:
        return order.advance()
