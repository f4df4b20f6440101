"""Row-shaped records as the gateway and its change feed deliver them."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from livefloor.application.dto.requests import _to_camel


def _decimal_from_number(value: Any) -> Any:
    if isinstance(value, float):
        return str(value)
    return value


Amount = Annotated[Decimal, BeforeValidator(_decimal_from_number)]


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ModifierRecord(BaseModel):
    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True, extra="ignore")

    name: str
    name_tr: str | None = None
    price_adjustment: Amount = Decimal("0")


class OrderItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_id: str | None = None
    item_name: str
    item_name_tr: str | None = None
    quantity: int = Field(ge=1)
    unit_price: Amount
    total_price: Amount
    special_instructions: str | None = None
    modifiers: list[ModifierRecord] | None = None


class OrderRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_number: int
    table_number: str | None = None
    customer_name: str = ""
    status: str
    total: Amount = Field(ge=0)
    created_at: datetime
    order_type: str = "dine_in"
    payment_method: str = "cash"
    notes: str | None = None
    branch_id: str | None = None

    @field_validator("created_at")
    @classmethod
    def _created_at_aware(cls, value: datetime) -> datetime:
        return _aware(value)

    @field_validator("table_number")
    @classmethod
    def _blank_table_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class ServiceRequestRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    table_number: str = Field(min_length=1)
    request_type: str
    status: str
    created_at: datetime
    branch_id: str | None = None
    order_id: str | None = None

    @field_validator("created_at")
    @classmethod
    def _created_at_aware(cls, value: datetime) -> datetime:
        return _aware(value)

    @field_validator("table_number")
    @classmethod
    def _strip_table(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("table_number must not be blank")
        return value.strip()
