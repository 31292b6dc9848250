"""Order API routes."""

from fastapi import APIRouter, Query, status

from src.api.deps import Orders, Payments
from src.api.middleware.error_handler import NotFoundError
from src.models.order import OrderStatus
from src.schemas.common import ApiResponse
from src.schemas.order import (
    CreateOrderRequest,
    OrderCreatedData,
    OrderData,
    OrderListData,
    OrderSchema,
    OrderSummarySchema,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post(
    "",
    response_model=ApiResponse[OrderCreatedData],
    status_code=status.HTTP_201_CREATED,
    summary="Create an order",
    description="Creates a pending order from a cart snapshot and customer details.",
)
async def create_order(data: CreateOrderRequest, payments: Payments) -> ApiResponse[OrderCreatedData]:
    """Create a pending order.

    Amounts are taken from the cart snapshot and fixed at this point;
    later catalog price changes do not affect the order.

    Args:
        data: Cart snapshot, customer and shipping address.
        payments: Payment service.

    Returns:
        ApiResponse: The order's ID, statuses and total.
    """
    order = await payments.create_order(data.customer, data.shipping_address, data.cart)
    return ApiResponse(data=OrderCreatedData(order=OrderSummarySchema.model_validate(order)))


@router.get(
    "/{order_id}",
    response_model=ApiResponse[OrderData],
    summary="Get order by ID",
)
async def get_order(order_id: str, orders: Orders) -> ApiResponse[OrderData]:
    """Get a single order with its shipping address and line items.

    Raises:
        NotFoundError: 404 if the order does not exist.
    """
    order = await orders.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    return ApiResponse(data=OrderData(order=OrderSchema.model_validate(order)))


@router.get(
    "",
    response_model=ApiResponse[OrderListData],
    summary="List orders",
    description="Lists orders newest first, optionally filtered by customer email and status.",
)
async def list_orders(
    orders: Orders,
    email: str | None = Query(default=None, description="Customer email"),
    order_status: OrderStatus | None = Query(default=None, alias="status", description="Order status"),
    limit: int = Query(default=20, ge=1, le=100, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Rows to skip"),
) -> ApiResponse[OrderListData]:
    """List orders with optional filters."""
    rows, total = await orders.list_orders(email=email, status=order_status, limit=limit, offset=offset)
    return ApiResponse(
        data=OrderListData(
            orders=[OrderSchema.model_validate(row) for row in rows],
            total=total,
        )
    )
