from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class Money:
    amount: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("amount must be a Decimal")
        if not self.amount.is_finite():
            raise ValueError("amount must be finite")

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + other.amount)

    def __mul__(self, quantity: int) -> Money:
        return Money(self.amount * quantity)

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    @classmethod
    def of(cls, value: Decimal | int | float | str) -> Money:
        if isinstance(value, Decimal):
            return cls(value)
        try:
            # floats go through str() so 12.3 stays 12.3
            return cls(Decimal(str(value)))
        except InvalidOperation as exc:
            raise ValueError(f"invalid money amount: {value!r}") from exc
