"""Payment API routes for PayDunya hosted invoices."""

from fastapi import APIRouter, Request

from src.api.deps import Payments
from src.schemas.common import ApiResponse
from src.schemas.order import OrderSummarySchema
from src.schemas.payment import InitPaymentData, InitPaymentRequest, PaymentStatusData

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/init",
    response_model=ApiResponse[InitPaymentData],
    summary="Start a payment",
    description="Creates a PayDunya invoice for the order and returns the hosted payment URL.",
    responses={
        400: {"description": "Missing fields or order already paid"},
        404: {"description": "Order not found"},
        500: {"description": "PayDunya refused the invoice"},
    },
)
async def init_payment(
    data: InitPaymentRequest,
    request: Request,
    payments: Payments,
) -> ApiResponse[InitPaymentData]:
    """Start a payment for an order.

    The frontend should redirect the customer to redirectUrl.

    Args:
        data: Order ID, payment method and redirect URLs.
        request: Incoming request, used to derive the callback URL.
        payments: Payment service.

    Returns:
        ApiResponse: Hosted invoice URL and token.
    """
    result = await payments.initiate_payment(
        order_id=data.order_id,
        method=data.payment_method,
        return_url=str(data.return_url),
        cancel_url=str(data.cancel_url),
        base_url=str(request.base_url),
    )
    return ApiResponse(data=InitPaymentData(redirect_url=result["redirect_url"], token=result["token"]))


@router.get(
    "/{token}/status",
    response_model=ApiResponse[PaymentStatusData],
    summary="Check payment status",
    description="Asks PayDunya for the invoice status and refreshes the matching order.",
)
async def payment_status(token: str, payments: Payments) -> ApiResponse[PaymentStatusData]:
    """Poll the status of a payment by invoice token."""
    result = await payments.check_payment_status(token)
    order = result["order"]
    return ApiResponse(
        data=PaymentStatusData(
            payment_status=result["payment_status"],
            order=OrderSummarySchema.model_validate(order) if order else None,
        )
    )
