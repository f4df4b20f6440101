from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ModifierResponse(BaseModel):
    name: str
    nameTr: str | None = None
    priceAdjustment: Decimal


class OrderItemResponse(BaseModel):
    itemId: str
    itemName: str
    itemNameTr: str | None = None
    quantity: int
    unitPrice: Decimal
    totalPrice: Decimal
    specialInstructions: str | None = None
    modifiers: list[ModifierResponse] = Field(default_factory=list)


class OrderResponse(BaseModel):
    orderId: str
    orderNumber: int
    branchId: str | None = None
    tableNumber: str | None = None
    customerName: str
    status: str
    total: Decimal
    orderType: str
    paymentMethod: str
    notes: str | None = None
    createdAt: datetime
    items: list[OrderItemResponse] = Field(default_factory=list)


class ServiceRequestResponse(BaseModel):
    requestId: str
    branchId: str | None = None
    tableNumber: str
    requestType: str
    status: str
    createdAt: datetime


class LiveTableResponse(BaseModel):
    tableNumber: str
    orders: list[OrderResponse] = Field(default_factory=list)
    serviceRequests: list[ServiceRequestResponse] = Field(default_factory=list)
    totalAmount: Decimal
    hasReadyOrders: bool
    hasServedOrders: bool
    allServed: bool


class FloorStatsResponse(BaseModel):
    activeOrders: int
    readyOrders: int
    tablesAwaitingPayment: int
    pendingRequests: int


class LiveFloorResponse(BaseModel):
    branchId: str | None = None
    tables: list[LiveTableResponse] = Field(default_factory=list)
    readyOrders: list[OrderResponse] = Field(default_factory=list)
    stats: FloorStatsResponse


class KitchenQueueResponse(BaseModel):
    branchId: str | None = None
    orders: list[OrderResponse] = Field(default_factory=list)


class AcknowledgeRequestResponse(BaseModel):
    requestId: str
    status: str | None = None
    changed: bool


class CloseTableResponse(BaseModel):
    tableNumber: str
    completedOrderIds: list[str] = Field(default_factory=list)
    completedRequestIds: list[str] = Field(default_factory=list)
    failedOrderIds: list[str] = Field(default_factory=list)
    failedRequestIds: list[str] = Field(default_factory=list)

    @property
    def fully_closed(self) -> bool:
        return not self.failedOrderIds and not self.failedRequestIds


class NotificationPreferenceResponse(BaseModel):
    display: str
    branchId: str | None = None
    enabled: bool
