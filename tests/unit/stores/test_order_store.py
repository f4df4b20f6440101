from __future__ import annotations

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floor_fakes import FakeGateway, fixed_clock, make_item, make_order, order_event
from livefloor.application.ports.gateway import ChangeEvent, ChangeOperation, Entity
from livefloor.application.stores.base import StoreChange
from livefloor.application.stores.order_store import OrderRecordStore
from livefloor.domain.floor.scope import AccessScope
from livefloor.domain.order.entities import OrderStatus


def _store(gateway: FakeGateway, scope: AccessScope | None = None) -> OrderRecordStore:
    return OrderRecordStore(gateway, scope or AccessScope.all_branches(), fixed_clock)


def test_refresh_loads_todays_orders_with_items() -> None:
    gateway = FakeGateway(
        orders=[make_order("ord_1"), make_order("ord_old", minutes_ago=24 * 60)],
        items={"ord_1": [make_item("itm_1", quantity=2)]},
    )
    store = _store(gateway)

    assert asyncio.run(store.refresh()) is True

    assert store.loaded
    assert [order.order_id for order in store.orders] == ["ord_1"]
    assert len(store.get("ord_1").items) == 1


def test_refresh_failure_keeps_previous_set() -> None:
    gateway = FakeGateway(orders=[make_order("ord_1")])
    store = _store(gateway)
    asyncio.run(store.refresh())
    version = store.version

    gateway.fail_fetch = True
    gateway.orders.clear()

    assert asyncio.run(store.refresh()) is False
    assert [order.order_id for order in store.orders] == ["ord_1"]
    assert store.version == version


def test_insert_update_and_delete_events() -> None:
    store = _store(FakeGateway())
    asyncio.run(store.refresh())
    order = make_order("ord_1", status=OrderStatus.NEW)

    assert store.apply_event(order_event(ChangeOperation.INSERT, order)) == StoreChange.INSERTED
    assert store.apply_event(order_event(ChangeOperation.INSERT, order)) == StoreChange.UPDATED

    ready = order.advance().advance().advance()
    assert store.apply_event(order_event(ChangeOperation.UPDATE, ready)) == StoreChange.UPDATED
    assert store.get("ord_1").status == OrderStatus.READY

    assert store.apply_event(order_event(ChangeOperation.DELETE, ready)) == StoreChange.REMOVED
    assert store.get("ord_1") is None
    assert store.apply_event(order_event(ChangeOperation.DELETE, ready)) is None


def test_update_for_unknown_order_is_ignored() -> None:
    store = _store(FakeGateway())
    asyncio.run(store.refresh())

    change = store.apply_event(order_event(ChangeOperation.UPDATE, make_order("ord_9")))

    assert change is None
    assert len(store) == 0


def test_update_keeps_hydrated_items() -> None:
    gateway = FakeGateway(orders=[make_order("ord_1")], items={"ord_1": [make_item("itm_1")]})
    store = _store(gateway)
    asyncio.run(store.refresh())

    store.apply_event(order_event(ChangeOperation.UPDATE, make_order("ord_1", status=OrderStatus.PREPARING)))

    assert store.get("ord_1").status == OrderStatus.PREPARING
    assert len(store.get("ord_1").items) == 1


def test_out_of_window_insert_is_ignored() -> None:
    store = _store(FakeGateway())
    asyncio.run(store.refresh())

    yesterday = make_order("ord_old", minutes_ago=24 * 60)

    assert store.apply_event(order_event(ChangeOperation.INSERT, yesterday)) is None
    assert store.get("ord_old") is None


def test_branch_scope_filters_inserts() -> None:
    store = _store(FakeGateway(), AccessScope.for_branch("brn_1"))
    asyncio.run(store.refresh())

    other_branch = make_order("ord_2", branch_id="brn_2")

    assert store.apply_event(order_event(ChangeOperation.INSERT, other_branch)) is None
    assert store.apply_event(order_event(ChangeOperation.INSERT, make_order("ord_1"))) == StoreChange.INSERTED


def test_malformed_and_foreign_events_are_dropped() -> None:
    store = _store(FakeGateway())
    asyncio.run(store.refresh())
    version = store.version

    malformed = ChangeEvent(
        entity=Entity.ORDERS.value,
        operation=ChangeOperation.INSERT,
        record={"id": "ord_1", "status": "teleported"},
    )
    foreign = ChangeEvent(
        entity=Entity.SERVICE_REQUESTS.value,
        operation=ChangeOperation.INSERT,
        record={"id": "req_1"},
    )

    assert store.apply_event(malformed) is None
    assert store.apply_event(foreign) is None
    assert store.version == version


def test_events_during_refresh_are_replayed_on_fetched_set() -> None:
    async def scenario() -> OrderRecordStore:
        gateway = FakeGateway(orders=[make_order("ord_1", status=OrderStatus.PREPARING)])
        gateway.order_fetch_gate = asyncio.Event()
        store = _store(gateway)

        refresh = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        store.apply_event(order_event(ChangeOperation.INSERT, make_order("ord_2")))

        gateway.order_fetch_gate.set()
        assert await refresh is True
        return store

    store = asyncio.run(scenario())

    assert sorted(order.order_id for order in store.orders) == ["ord_1", "ord_2"]


def test_slow_refresh_does_not_roll_back_push_update() -> None:
    async def scenario() -> OrderRecordStore:
        gateway = FakeGateway(orders=[make_order("ord_1", status=OrderStatus.PREPARING)])
        store = _store(gateway)
        await store.refresh()

        gateway.order_fetch_gate = asyncio.Event()
        refresh = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        store.apply_event(
            order_event(ChangeOperation.UPDATE, make_order("ord_1", status=OrderStatus.READY))
        )
        gateway.order_fetch_gate.set()
        await refresh
        return store

    store = asyncio.run(scenario())

    assert store.get("ord_1").status == OrderStatus.READY


def test_closed_store_discards_refresh_result() -> None:
    async def scenario() -> OrderRecordStore:
        gateway = FakeGateway(orders=[make_order("ord_1")])
        gateway.order_fetch_gate = asyncio.Event()
        store = _store(gateway)

        refresh = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        store.close()
        gateway.order_fetch_gate.set()

        assert await refresh is False
        return store

    store = asyncio.run(scenario())

    assert len(store) == 0
    assert not store.loaded


def test_kitchen_queue_is_oldest_first() -> None:
    gateway = FakeGateway(
        orders=[
            make_order("ord_new", status=OrderStatus.NEW, minutes_ago=2),
            make_order("ord_old", status=OrderStatus.PREPARING, minutes_ago=30),
            make_order("ord_served", status=OrderStatus.SERVED, minutes_ago=40),
            make_order("ord_ready", status=OrderStatus.READY, minutes_ago=15),
        ]
    )
    store = _store(gateway)
    asyncio.run(store.refresh())

    assert [order.order_id for order in store.kitchen_queue()] == ["ord_old", "ord_ready", "ord_new"]
    assert [order.order_id for order in store.with_status(OrderStatus.READY)] == ["ord_ready"]


def test_hydrate_items_for_inserted_order() -> None:
    gateway = FakeGateway(items={"ord_1": [make_item("itm_1"), make_item("itm_2")]})
    store = _store(gateway)
    asyncio.run(store.refresh())
    store.apply_event(order_event(ChangeOperation.INSERT, make_order("ord_1")))

    assert asyncio.run(store.hydrate_items("ord_1")) is True
    assert len(store.get("ord_1").items) == 2


def test_confirmed_status_survives_slow_refresh() -> None:
    async def scenario() -> OrderRecordStore:
        gateway = FakeGateway(orders=[make_order("ord_1", status=OrderStatus.READY)])
        store = _store(gateway)
        await store.refresh()

        gateway.order_fetch_gate = asyncio.Event()
        refresh = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        store.apply_confirmed_status("ord_1", OrderStatus.SERVED)
        gateway.order_fetch_gate.set()
        assert await refresh is True
        return store

    store = asyncio.run(scenario())

    assert store.get("ord_1").status == OrderStatus.SERVED


def test_hydrated_items_survive_slow_refresh() -> None:
    async def scenario() -> OrderRecordStore:
        gateway = FakeGateway(items={"ord_1": [make_item("itm_1"), make_item("itm_2")]})
        store = _store(gateway)
        await store.refresh()

        gateway.order_fetch_gate = asyncio.Event()
        refresh = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)

        store.apply_event(order_event(ChangeOperation.INSERT, make_order("ord_1")))
        assert await store.hydrate_items("ord_1") is True
        gateway.order_fetch_gate.set()
        await refresh
        return store

    store = asyncio.run(scenario())

    assert len(store.get("ord_1").items) == 2


def test_remote_status_is_adopted_after_conflict() -> None:
    store = _store(FakeGateway(orders=[make_order("ord_1", status=OrderStatus.PREPARING)]))
    asyncio.run(store.refresh())

    assert store.apply_remote_status("ord_1", "in_progress").status == OrderStatus.PREPARING
    assert store.apply_remote_status("ord_1", "cancelled").status == OrderStatus.CANCELLED
    assert store.apply_remote_status("ord_1", "lost") is None
    assert store.apply_remote_status("ord_1", None) is None
    assert store.get("ord_1").status == OrderStatus.CANCELLED
