from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from datetime import datetime
from typing import Callable

from livefloor.application.dto.responses import KitchenQueueResponse, LiveFloorResponse
from livefloor.application.mappers.table_mapper import (
    to_kitchen_queue_response,
    to_live_floor_response,
)
from livefloor.application.metrics.floor_metrics import (
    record_live_tables,
    session_started,
    session_stopped,
)
from livefloor.application.notifications.trigger import (
    NotificationTrigger,
    notifications_preference_key,
)
from livefloor.application.ports.audit import AuditLog
from livefloor.application.ports.gateway import (
    ChangeEvent,
    Entity,
    GatewayError,
    RemoteDataGateway,
    Subscription,
)
from livefloor.application.ports.notifier import Notifier
from livefloor.application.ports.preferences import PreferenceStore
from livefloor.application.stores.base import Clock, StoreChange
from livefloor.application.stores.order_store import OrderRecordStore
from livefloor.application.stores.service_request_queue import ServiceRequestQueue
from livefloor.application.use_cases.status_transitions import StatusTransitionController
from livefloor.domain.common.ids import OrderId
from livefloor.domain.floor.live_table import FloorStats, LiveTable, aggregate, summarize
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.order.entities import Order, OrderStatus

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


def local_clock() -> datetime:
    return datetime.now().astimezone()


class DisplaySession:
    """One waiter or kitchen display: its own stores, subscriptions and refresh loop.

    Nothing is shared between sessions except the gateway. `stop()` cancels
    the subscriptions and the refresh loop and closes both stores, so a fetch
    that completes afterwards has no effect.
    """

    def __init__(
        self,
        gateway: RemoteDataGateway,
        notifier: Notifier,
        *,
        display: str,
        scope: AccessScope | None = None,
        preferences: PreferenceStore | None = None,
        audit_log: AuditLog | None = None,
        clock: Clock = local_clock,
        refresh_interval_seconds: float | None = None,
    ) -> None:
        self.display = display
        self.scope = scope or AccessScope.all_branches()
        self._gateway = gateway
        self._refresh_interval_seconds = refresh_interval_seconds

        self.orders = OrderRecordStore(gateway, self.scope, clock)
        self.requests = ServiceRequestQueue(gateway, self.scope, clock)
        self.notifications = NotificationTrigger(
            notifier,
            preferences=preferences,
            preference_key=notifications_preference_key(display, self.scope.label),
        )
        self.transitions = StatusTransitionController(
            gateway,
            self.orders,
            self.requests,
            audit_log,
            scope_label=self.scope.label,
        )

        self._subscriptions: list[Subscription] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[Listener] = []
        self._memo_key: tuple[int, int] | None = None
        self._memo: list[LiveTable] = []
        self._started = False
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    async def __aenter__(self) -> DisplaySession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        session_started(self.display)
        self.notifications.load()

        for entity, handler in (
            (Entity.ORDERS, self._on_order_event),
            (Entity.SERVICE_REQUESTS, self._on_request_event),
        ):
            try:
                self._subscriptions.append(await self._gateway.subscribe(entity, handler))
            except GatewayError:
                # periodic refresh still keeps the display current
                logger.warning(
                    "display_subscribe_failed",
                    exc_info=True,
                    extra={"display": self.display, "entity": entity.value},
                )

        await self.refresh()

        if self._refresh_interval_seconds:
            self._spawn(self._refresh_loop(self._refresh_interval_seconds))

        logger.info(
            "display_session_started",
            extra={"display": self.display, "scope": self.scope.label},
        )

    async def stop(self) -> None:
        if self._stopped or not self._started:
            self._stopped = True
            return
        self._stopped = True
        self.orders.close()
        self.requests.close()

        for subscription in self._subscriptions:
            try:
                await subscription.cancel()
            except Exception:
                logger.warning(
                    "display_unsubscribe_failed",
                    exc_info=True,
                    extra={"display": self.display},
                )
        self._subscriptions.clear()

        for task in list(self._tasks):
            task.cancel()
        for task in list(self._tasks):
            with suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        self._listeners.clear()

        session_stopped(self.display)
        logger.info(
            "display_session_stopped",
            extra={"display": self.display, "scope": self.scope.label},
        )

    async def refresh(self) -> bool:
        if self._stopped:
            return False
        orders_changed, requests_changed = await asyncio.gather(
            self.orders.refresh(),
            self.requests.refresh(),
        )
        changed = orders_changed or requests_changed
        if changed:
            self._changed()
        return changed

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def live_tables(self) -> list[LiveTable]:
        key = (self.orders.version, self.requests.version)
        if key != self._memo_key:
            self._memo = aggregate(self.orders.orders, self.requests.requests)
            self._memo_key = key
            record_live_tables(self.scope.label, len(self._memo))
        return list(self._memo)

    def stats(self) -> FloorStats:
        return summarize(self.orders.orders, self.requests.requests, self.live_tables())

    def kitchen_queue(self) -> list[Order]:
        return self.orders.kitchen_queue()

    def ready_orders(self) -> list[Order]:
        return self.orders.with_status(OrderStatus.READY)

    def snapshot(self) -> LiveFloorResponse:
        return to_live_floor_response(
            branch_id=self.scope.branch_id,
            tables=self.live_tables(),
            ready_orders=self.ready_orders(),
            stats=self.stats(),
        )

    def kitchen_snapshot(self) -> KitchenQueueResponse:
        return to_kitchen_queue_response(
            branch_id=self.scope.branch_id,
            orders=self.kitchen_queue(),
        )

    def set_notifications_enabled(self, enabled: bool) -> None:
        self.notifications.set_enabled(enabled)

    def _on_order_event(self, event: ChangeEvent) -> None:
        change = self.orders.apply_event(event)
        if change is None:
            return
        if change == StoreChange.INSERTED:
            order_id = str(event.record.get("id"))
            order = self.orders.get(order_id)
            self.notifications.on_change(
                Entity.ORDERS.value,
                change,
                record_id=order_id,
                table_number=order.table_number if order else None,
            )
            self._spawn(self._hydrate(OrderId(order_id)))
        self._changed()

    def _on_request_event(self, event: ChangeEvent) -> None:
        change = self.requests.apply_event(event)
        if change is None:
            return
        if change == StoreChange.INSERTED:
            request_id = str(event.record.get("id"))
            request = self.requests.get(request_id)
            self.notifications.on_change(
                Entity.SERVICE_REQUESTS.value,
                change,
                record_id=request_id,
                table_number=request.table_number if request else None,
            )
        self._changed()

    async def _hydrate(self, order_id: OrderId) -> None:
        if await self.orders.hydrate_items(order_id):
            self._changed()

    async def _refresh_loop(self, interval_seconds: float) -> None:
        while not self._stopped:
            await asyncio.sleep(interval_seconds)
            await self.refresh()

    def _spawn(self, coro) -> None:
        if self._stopped:
            coro.close()
            return
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("display_task_not_scheduled", extra={"display": self.display})
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("display_listener_failed", extra={"display": self.display})
