from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime

from livefloor.application.mappers.record_mapper import order_from_record, record_id_of
from livefloor.application.ports.gateway import (
    ChangeEvent,
    ChangeOperation,
    Entity,
    GatewayError,
    RemoteDataGateway,
)
from livefloor.application.stores.base import Clock, Patch, RecordStore, StoreChange
from livefloor.domain.common.ids import OrderId
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.order.entities import KITCHEN_STATUSES, Order, OrderStatus

logger = logging.getLogger(__name__)


def _keep_items(order: Order, existing: Order) -> Order:
    # change events carry no items; hydration patches do
    if order.items:
        return order
    return order.with_items(existing.items)


class OrderRecordStore(RecordStore[Order]):
    entity = Entity.ORDERS.value

    def __init__(self, gateway: RemoteDataGateway, scope: AccessScope, clock: Clock) -> None:
        super().__init__(scope=scope, clock=clock)
        self._gateway = gateway

    @property
    def orders(self) -> list[Order]:
        return self.values()

    def kitchen_queue(self) -> list[Order]:
        queued = [order for order in self.values() if order.status in KITCHEN_STATUSES]
        return sorted(queued, key=lambda order: (order.created_at, order.order_number))

    def with_status(self, status: OrderStatus) -> list[Order]:
        matching = [order for order in self.values() if order.status == status]
        return sorted(matching, key=lambda order: (order.created_at, order.order_number))

    async def hydrate_items(self, order_id: OrderId) -> bool:
        """Load the items of an order that arrived through an insert event."""
        try:
            items = await self._gateway.fetch_order_items(order_id)
        except GatewayError:
            logger.warning("order_items_fetch_failed", exc_info=True, extra={"order_id": order_id})
            return False

        current = self.get(order_id)
        if self.closed or current is None or not items:
            return False
        patch = Patch(
            operation=ChangeOperation.UPDATE,
            record_id=str(order_id),
            value=current.with_items(tuple(items)),
        )
        return self._apply_patch(patch) is not None

    def apply_confirmed_status(self, order_id: OrderId, new_status: OrderStatus) -> Order | None:
        current = self.get(order_id)
        if current is None or self.closed:
            return None
        updated = replace(current, status=new_status)
        self._apply_patch(
            Patch(operation=ChangeOperation.UPDATE, record_id=str(order_id), value=updated)
        )
        return self.get(order_id)

    def apply_remote_status(self, order_id: OrderId, status: str | None) -> Order | None:
        """Adopt the status the gateway reported for a rejected write."""
        if not status:
            return None
        try:
            remote_status = OrderStatus.parse(status)
        except ValueError:
            logger.warning(
                "order_status_unknown",
                extra={"order_id": order_id, "status": status},
            )
            return None
        return self.apply_confirmed_status(order_id, remote_status)

    async def _fetch(self, since: datetime) -> list[Order]:
        orders = await self._gateway.fetch_orders(since=since, scope=self._scope)
        item_lists = await asyncio.gather(
            *(self._gateway.fetch_order_items(order.order_id) for order in orders)
        )
        return [order.with_items(tuple(items)) for order, items in zip(orders, item_lists)]

    def _parse(self, event: ChangeEvent) -> Patch[Order]:
        if event.operation == ChangeOperation.DELETE:
            record_id = record_id_of(event.record)
            return Patch(operation=event.operation, record_id=record_id, value=None)
        order = order_from_record(event.record)
        return Patch(operation=event.operation, record_id=str(order.order_id), value=order)

    def _patch(self, target: dict[str, Order], patch: Patch[Order]) -> StoreChange | None:
        existing = target.get(patch.record_id)

        if patch.operation == ChangeOperation.DELETE or patch.value is None:
            if target.pop(patch.record_id, None) is None:
                return None
            return StoreChange.REMOVED

        order = patch.value
        if patch.operation == ChangeOperation.INSERT:
            if not self._in_window(order):
                return None
            if existing is not None:
                target[patch.record_id] = _keep_items(order, existing)
                return StoreChange.UPDATED
            target[patch.record_id] = order
            return StoreChange.INSERTED

        if existing is None:
            return None
        if not self._scope.includes(order.branch_id):
            del target[patch.record_id]
            return StoreChange.REMOVED
        target[patch.record_id] = _keep_items(order, existing)
        return StoreChange.UPDATED

    def _in_window(self, record: Order) -> bool:
        return record.created_at >= self.window_start() and self._scope.includes(record.branch_id)

    def _id_of(self, record: Order) -> str:
        return str(record.order_id)
