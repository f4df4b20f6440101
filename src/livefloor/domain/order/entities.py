from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from livefloor.domain.common.ids import BranchId, OrderId, OrderItemId, TableNumber
from livefloor.domain.common.money import Money


class OrderStatus(str, Enum):
    NEW = "new"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: str) -> OrderStatus:
        normalized = value.strip().lower()
        return cls(_STATUS_ALIASES.get(normalized, normalized))

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def stored_values(self) -> tuple[str, ...]:
        aliases = tuple(alias for alias, value in _STATUS_ALIASES.items() if value == self.value)
        return (self.value, *aliases)


# spellings other order clients write for the same state
_STATUS_ALIASES: dict[str, str] = {"in_progress": "preparing"}


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

KITCHEN_STATUSES = (
    OrderStatus.NEW,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)

_ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.ACCEPTED, OrderStatus.PREPARING}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset({OrderStatus.SERVED}),
    OrderStatus.SERVED: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# next step of the kitchen bump button
_KITCHEN_NEXT: dict[OrderStatus, OrderStatus] = {
    OrderStatus.NEW: OrderStatus.ACCEPTED,
    OrderStatus.ACCEPTED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
}


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    """Return whether an order may move from one status to another.

    Completion and cancellation are reachable from every non-terminal status;
    the remaining moves follow the kitchen/service flow.
    """
    if from_status.is_terminal:
        return False
    if to_status in TERMINAL_STATUSES:
        return True
    return to_status in _ALLOWED_TRANSITIONS[from_status]


@dataclass(frozen=True)
class Modifier:
    name: str
    price_adjustment: Money
    name_tr: str | None = None


@dataclass(frozen=True)
class OrderItem:
    item_id: OrderItemId
    item_name: str
    quantity: int
    unit_price: Money
    total_price: Money
    item_name_tr: str | None = None
    special_instructions: str | None = None
    modifiers: tuple[Modifier, ...] = ()

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.line_price * self.quantity != self.total_price:
            raise ValueError("total_price must equal (unit_price + modifiers) * quantity")

    @property
    def line_price(self) -> Money:
        """Unit price including every modifier's price adjustment."""
        price = self.unit_price
        for modifier in self.modifiers:
            price = price + modifier.price_adjustment
        return price


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: int
    table_number: TableNumber | None
    customer_name: str
    status: OrderStatus
    total: Money
    created_at: datetime
    order_type: str
    payment_method: str
    notes: str | None = None
    branch_id: BranchId | None = None
    items: tuple[OrderItem, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if self.total.is_negative:
            raise ValueError("order total must be >= 0")
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")

    @property
    def is_open(self) -> bool:
        return not self.status.is_terminal

    @property
    def is_table_order(self) -> bool:
        return bool(self.table_number)

    def with_items(self, items: tuple[OrderItem, ...]) -> Order:
        return replace(self, items=items)

    def transition_to(self, new_status: OrderStatus) -> Order:
        if not can_transition(self.status, new_status):
            raise OrderTransitionError(
                f"cannot move order {self.order_id} from status={self.status.value} "
                f"to status={new_status.value}"
            )
        return replace(self, status=new_status)

    def mark_served(self) -> Order:
        if self.status != OrderStatus.READY:
            raise OrderTransitionError(f"cannot mark served from status={self.status.value}")
        return replace(self, status=OrderStatus.SERVED)

    def advance(self) -> Order:
        next_status = _KITCHEN_NEXT.get(self.status)
        if next_status is None:
            raise OrderTransitionError(f"cannot advance order from status={self.status.value}")
        return replace(self, status=next_status)

    def complete(self) -> Order:
        return self.transition_to(OrderStatus.COMPLETED)

    def cancel(self) -> Order:
        return self.transition_to(OrderStatus.CANCELLED)


class OrderTransitionError(Exception):
    pass
