from __future__ import annotations

from typing import NewType

BranchId = NewType("BranchId", str)
OrderId = NewType("OrderId", str)
OrderItemId = NewType("OrderItemId", str)
ServiceRequestId = NewType("ServiceRequestId", str)
TableNumber = NewType("TableNumber", str)
