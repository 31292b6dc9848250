"""Admin API routes, protected by the X-Admin-API-Key header."""

from fastapi import APIRouter, File, Query, UploadFile

from src.api.deps import AdminAuth, Media, Orders
from src.models.order import OrderStatus
from src.schemas.common import ApiResponse
from src.schemas.order import OrderData, OrderListData, OrderSchema, OrderStatusUpdate
from src.schemas.payment import UploadData

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/orders",
    response_model=ApiResponse[OrderListData],
    summary="List all orders",
)
async def list_all_orders(
    _admin: AdminAuth,
    orders: Orders,
    order_status: OrderStatus | None = Query(default=None, alias="status", description="Order status"),
    limit: int = Query(default=50, ge=1, le=200, description="Page size"),
    offset: int = Query(default=0, ge=0, description="Rows to skip"),
) -> ApiResponse[OrderListData]:
    """List every order, newest first."""
    rows, total = await orders.list_orders(status=order_status, limit=limit, offset=offset)
    return ApiResponse(
        data=OrderListData(
            orders=[OrderSchema.model_validate(row) for row in rows],
            total=total,
        )
    )


@router.put(
    "/orders/{order_id}/status",
    response_model=ApiResponse[OrderData],
    summary="Update order status",
    description="Sets the fulfilment status of an order. Payment fields are not affected.",
)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    _admin: AdminAuth,
    orders: Orders,
) -> ApiResponse[OrderData]:
    """Set an order's status (shipped, delivered...)."""
    order = await orders.set_order_status(order_id, data.status)
    return ApiResponse(data=OrderData(order=OrderSchema.model_validate(order)))


@router.post(
    "/upload",
    response_model=ApiResponse[UploadData],
    summary="Upload an image",
)
async def upload_image(
    _admin: AdminAuth,
    media: Media,
    file: UploadFile | None = File(default=None, description="Image file"),
) -> ApiResponse[UploadData]:
    """Store an image in the public bucket and return its URL."""
    content = await file.read() if file else b""
    result = await media.upload_image(
        file_content=content,
        file_name=file.filename if file else None,
        content_type=file.content_type if file else None,
    )
    return ApiResponse(data=UploadData(**result))
