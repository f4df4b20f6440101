from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from livefloor.application.ports.gateway import ChangeOperation, Entity
from livefloor.infrastructure.cache.redis_client import redis_configured
from livefloor.infrastructure.db.models.order import OrderModel
from livefloor.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from livefloor.infrastructure.db.repositories.service_request_repo import (
    SqlAlchemyServiceRequestRepository,
)
from livefloor.infrastructure.db.session import create_schema, get_engine
from livefloor.infrastructure.messaging.redis_change_feed import RedisChangePublisher

DEMO_BRANCH_ID = "brn_demo"


def _item(item_id: str, name: str, quantity: int, unit_price: str, **extra: Any) -> dict[str, Any]:
    price = Decimal(unit_price)
    return {
        "id": item_id,
        "item_name": name,
        "quantity": quantity,
        "unit_price": price,
        "total_price": price * quantity,
        **extra,
    }


def demo_orders(now: datetime) -> list[tuple[dict[str, Any], list[dict[str, Any]]]]:
    rows = [
        ("ord_demo_001", 101, "2", "Ayse", "ready", 35, [
            _item("itm_demo_001", "Lentil Soup", 2, "6.50", item_name_tr="Mercimek Corbasi"),
            _item("itm_demo_002", "Pide", 1, "14.00"),
        ]),
        ("ord_demo_002", 102, "10", "Mehmet", "preparing", 20, [
            _item(
                "itm_demo_003",
                "Iskender",
                1,
                "18.50",
                special_instructions="no butter",
                modifiers=[{"name": "Extra yogurt", "price_adjustment": "0.00"}],
            ),
        ]),
        ("ord_demo_003", 103, "2", "Ayse", "served", 50, [
            _item("itm_demo_004", "Turkish Tea", 3, "1.50"),
        ]),
        ("ord_demo_004", 104, None, "Takeaway", "new", 5, [
            _item("itm_demo_005", "Baklava", 4, "3.25"),
        ]),
        ("ord_demo_005", 105, "1", "Deniz", "new", 2, [
            _item("itm_demo_006", "Ayran", 2, "2.00"),
        ]),
    ]
    orders: list[tuple[dict[str, Any], list[dict[str, Any]]]] = []
    for order_id, number, table, customer, status, minutes_ago, items in rows:
        record = {
            "id": order_id,
            "order_number": number,
            "branch_id": DEMO_BRANCH_ID,
            "table_number": table,
            "customer_name": customer,
            "status": status,
            "total": sum((item["total_price"] for item in items), Decimal("0")),
            "order_type": "dine_in" if table else "takeaway",
            "payment_method": "cash",
            "created_at": now - timedelta(minutes=minutes_ago),
        }
        orders.append((record, items))
    return orders


def demo_service_requests(now: datetime) -> list[dict[str, Any]]:
    return [
        {
            "id": "req_demo_001",
            "branch_id": DEMO_BRANCH_ID,
            "table_number": "2",
            "request_type": "request_bill",
            "created_at": now - timedelta(minutes=3),
        },
        {
            "id": "req_demo_002",
            "branch_id": DEMO_BRANCH_ID,
            "table_number": "7",
            "request_type": "call_waiter",
            "created_at": now - timedelta(minutes=1),
        },
    ]


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    create_schema(engine)

    with Session(engine) as session:
        existing = session.execute(
            select(func.count())
            .select_from(OrderModel)
            .where(OrderModel.branch_id == DEMO_BRANCH_ID)
        ).scalar_one()
    if existing:
        print("demo branch already seeded")
        return

    now = datetime.now(timezone.utc)
    orders = SqlAlchemyOrderRepository(engine)
    requests = SqlAlchemyServiceRequestRepository(engine)
    publisher = RedisChangePublisher() if redis_configured() else None

    for record, items in demo_orders(now):
        stored = orders.add(record, items)
        if publisher is not None:
            publisher.publish(Entity.ORDERS.value, ChangeOperation.INSERT, stored)

    for record in demo_service_requests(now):
        stored = requests.add(record)
        if publisher is not None:
            publisher.publish(Entity.SERVICE_REQUESTS.value, ChangeOperation.INSERT, stored)

    print("seed complete")


if __name__ == "__main__":
    main()
