"""Webhook API routes for PayDunya payment notifications."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Request, status
from pydantic import ValidationError as PydanticValidationError

from src.api.deps import Orders, PayDunyaAuth, Payments
from src.api.middleware.error_handler import NotFoundError, ValidationError
from src.schemas.payment import PayDunyaWebhookPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def _parse_payload(body: bytes) -> tuple[PayDunyaWebhookPayload, dict[str, Any]]:
    try:
        raw = json.loads(body)
        return PayDunyaWebhookPayload.model_validate(raw), raw
    except (ValueError, PydanticValidationError) as e:
        raise ValidationError("Missing required data") from e


@router.post(
    "/paydunya",
    status_code=status.HTTP_200_OK,
    summary="Handle PayDunya notifications",
    description="Receives PayDunya instant payment notifications. Requires the PAYDUNYA-MASTER-KEY header.",
    responses={
        400: {"description": "Body lacks invoice token or order ID"},
        401: {"description": "Missing or invalid master key"},
        404: {"description": "No order with this ID and token"},
    },
)
async def paydunya_webhook(
    request: Request,
    _auth: PayDunyaAuth,
    orders: Orders,
    payments: Payments,
) -> dict[str, Any]:
    """Reconcile a PayDunya notification onto its order.

    Once the master key is accepted, processing failures are logged and
    acknowledged with 200 so PayDunya does not keep retrying.

    Args:
        request: Incoming request; the body is read only after authentication.
        _auth: Master key check.
        orders: Order repository.
        payments: Payment service.

    Returns:
        dict: Acknowledgment.
    """
    try:
        payload, raw = _parse_payload(await request.body())
        logger.info("PayDunya webhook received: %s", json.dumps(raw, default=str))

        if not payload.token or not payload.order_id:
            logger.error("Webhook missing token or order_id")
            raise ValidationError("Missing required data")

        order = await orders.get_order_by_token(payload.order_id, payload.token)
        if not order:
            logger.error("Order not found: %s with token %s", payload.order_id, payload.token)
            raise NotFoundError("Order not found")

        await payments.reconcile(
            order,
            provider_status=payload.status,
            provider_amount=payload.total_amount,
            raw_payload=raw,
        )

    except (ValidationError, NotFoundError):
        raise
    except Exception as e:
        logger.exception("PayDunya webhook error: %s", str(e))
        return {"success": False, "error": "Internal error processing webhook"}

    return {"success": True}
