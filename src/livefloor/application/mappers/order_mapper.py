from __future__ import annotations

from livefloor.application.dto.responses import (
    ModifierResponse,
    OrderItemResponse,
    OrderResponse,
    ServiceRequestResponse,
)
from livefloor.domain.order.entities import Order
from livefloor.domain.service_request.entities import ServiceRequest


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        orderNumber=order.order_number,
        branchId=order.branch_id,
        tableNumber=order.table_number,
        customerName=order.customer_name,
        status=order.status.value,
        total=order.total.amount,
        orderType=order.order_type,
        paymentMethod=order.payment_method,
        notes=order.notes,
        createdAt=order.created_at,
        items=[
            OrderItemResponse(
                itemId=str(item.item_id),
                itemName=item.item_name,
                itemNameTr=item.item_name_tr,
                quantity=item.quantity,
                unitPrice=item.unit_price.amount,
                totalPrice=item.total_price.amount,
                specialInstructions=item.special_instructions,
                modifiers=[
                    ModifierResponse(
                        name=modifier.name,
                        nameTr=modifier.name_tr,
                        priceAdjustment=modifier.price_adjustment.amount,
                    )
                    for modifier in item.modifiers
                ],
            )
            for item in order.items
        ],
    )


def to_service_request_response(request: ServiceRequest) -> ServiceRequestResponse:
    return ServiceRequestResponse(
        requestId=str(request.request_id),
        branchId=request.branch_id,
        tableNumber=str(request.table_number),
        requestType=request.request_type.value,
        status=request.status.value,
        createdAt=request.created_at,
    )
