"""Order and payment orchestration against PayDunya."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from src.api.middleware.error_handler import ConflictError, NotFoundError
from src.core.config import Settings, get_settings
from src.models.order import (
    Order,
    OrderStatus,
    OrderSummary,
    PaymentMethod,
    PaymentStatus,
    TransactionStatus,
)
from src.schemas.order import CartSnapshot, CustomerInfo
from src.services.order_repository import OrderRepository, parse_amount, round_units
from src.services.paydunya_service import InvoiceCustomer, InvoiceItem, PayDunyaClient

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/webhooks/paydunya"


@dataclass(frozen=True)
class StatusTransition:
    """Local statuses derived from a provider status."""

    payment_status: PaymentStatus
    order_status: OrderStatus
    transaction_status: TransactionStatus


def map_provider_status(provider_status: str | None) -> StatusTransition:
    """Map a PayDunya invoice status onto order, payment and transaction statuses.

    Unknown or missing statuses are treated as failures.
    """
    normalized = (provider_status or "").strip().lower()
    if normalized in ("completed", "success"):
        return StatusTransition("completed", "confirmed", "completed")
    if normalized == "pending":
        return StatusTransition("processing", "pending", "pending")
    if normalized == "cancelled":
        return StatusTransition("cancelled", "cancelled", "pending")
    return StatusTransition("failed", "pending", "failed")


def summarize_order(order: Order) -> OrderSummary:
    """Subset of order fields exposed by payment endpoints."""
    return {
        "id": order["id"],
        "status": order["status"],
        "payment_status": order["payment_status"],
        "total_amount": order["total_amount"],
        "currency_code": order["currency_code"],
    }


def build_invoice_items(line_items: list[dict[str, Any]]) -> list[InvoiceItem]:
    """Derive invoice lines from the stored cart lines."""
    items = []
    for line in line_items:
        quantity = int(line.get("quantity") or 1)
        line_total = line["cost"]["totalAmount"]["amount"]
        items.append(
            InvoiceItem(
                name=line["merchandise"]["product"]["title"],
                quantity=quantity,
                unit_price=round_units(Decimal(str(line_total)) / quantity),
                total_price=parse_amount(line_total),
            )
        )
    return items


def amounts_match(order_total: int, provider_total: Any) -> bool:
    """Compare the stored total with an amount reported by PayDunya."""
    try:
        return Decimal(str(provider_total)) == Decimal(order_total)
    except InvalidOperation:
        return False


class PaymentService:
    """Creates orders, starts PayDunya payments and reconciles their outcome."""

    def __init__(
        self,
        repository: OrderRepository | None = None,
        gateway: PayDunyaClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize payment service.

        Args:
            repository: Optional order repository for testing.
            gateway: Optional PayDunya client for testing.
            settings: Optional settings for testing.
        """
        self.settings = settings or get_settings()
        self.repository = repository or OrderRepository()
        self.gateway = gateway or PayDunyaClient(self.settings)

    async def create_order(
        self,
        customer: CustomerInfo,
        shipping_address: dict[str, Any],
        cart: CartSnapshot,
    ) -> Order:
        """Create a pending order from the customer's cart."""
        return await self.repository.create_order(customer, shipping_address, cart)

    def build_callback_url(self, base_url: str) -> str:
        """URL PayDunya should notify for this deployment."""
        root = (self.settings.backend_url or base_url).rstrip("/")
        return f"{root}{WEBHOOK_PATH}"

    async def initiate_payment(
        self,
        order_id: str,
        method: PaymentMethod,
        return_url: str,
        cancel_url: str,
        base_url: str,
    ) -> dict[str, str]:
        """Start a hosted-invoice payment for an order.

        Each call creates a new invoice and transaction; earlier attempts
        are left as they are.

        Args:
            order_id: Order to pay.
            method: Payment method chosen by the customer.
            return_url: Redirect after payment.
            cancel_url: Redirect on cancel.
            base_url: Public base URL of this API, used for the callback.

        Returns:
            dict: redirect_url and token.

        Raises:
            NotFoundError: If the order does not exist.
            ConflictError: If the order is already paid.
            GatewayError: If PayDunya refuses the invoice.
        """
        order = await self.repository.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if order["payment_status"] == "completed":
            raise ConflictError("Order is already paid")

        invoice = self.gateway.create_invoice(
            order_id=order["id"],
            total_amount=order["total_amount"],
            description=f"Commande {order['id']} - {self.settings.store_name}",
            customer=InvoiceCustomer(
                name=order["customer_name"],
                email=order["customer_email"],
                phone=order["customer_phone"],
            ),
            return_url=return_url,
            cancel_url=cancel_url,
            callback_url=self.build_callback_url(base_url),
            items=build_invoice_items(order.get("line_items") or []),
        )

        transaction = await self.repository.record_transaction(
            order_id=order["id"],
            token=invoice.token,
            amount=order["total_amount"],
            currency=order["currency_code"],
            method=method,
        )

        try:
            await self.repository.update_order_payment_init(
                order_id=order["id"],
                token=invoice.token,
                invoice_url=invoice.invoice_url,
                method=method,
            )
        except Exception:
            logger.error(
                "Could not attach invoice %s to order %s, marking transaction %s failed",
                invoice.token,
                order["id"],
                transaction["id"],
            )
            await self.repository.mark_transaction_failed(transaction["id"])
            raise

        logger.info("Payment initiated for order %s with %s (token %s)", order["id"], method, invoice.token)
        return {"redirect_url": invoice.invoice_url, "token": invoice.token}

    async def reconcile(
        self,
        order: Order,
        provider_status: str | None,
        provider_amount: Any = None,
        raw_payload: dict[str, Any] | None = None,
    ) -> Order | None:
        """Apply a provider status to an order and, for notifications, its transaction.

        Safe to repeat: the same status twice gives the same final state
        and paid_at keeps its first value.

        Args:
            order: Order the notification refers to.
            provider_status: PayDunya invoice status.
            provider_amount: Amount reported by PayDunya, if any.
            raw_payload: Notification body; when given, the transaction is updated too.

        Returns:
            Order | None: The updated order, or None if the transition was refused.
        """
        order_id = order["id"]

        if provider_amount is not None and not amounts_match(order["total_amount"], provider_amount):
            # Provider status wins over amount checks
            logger.error(
                "Amount mismatch for order %s: expected %s, got %s",
                order_id,
                order["total_amount"],
                provider_amount,
            )

        transition = map_provider_status(provider_status)
        updated = await self.repository.reconcile_payment_status(
            order_id,
            transition.payment_status,
            transition.order_status,
        )

        if raw_payload is not None and order.get("paydunya_token"):
            await self.repository.update_transaction_from_webhook(
                order_id=order_id,
                token=order["paydunya_token"],
                status=transition.transaction_status,
                raw_payload=raw_payload,
            )

        logger.info(
            "Order %s reconciled from provider status %r: payment_status=%s, status=%s",
            order_id,
            provider_status,
            transition.payment_status,
            transition.order_status,
        )
        return updated

    async def check_payment_status(self, token: str) -> dict[str, Any]:
        """Poll PayDunya for an invoice and refresh the matching order.

        Polling never touches transactions.

        Returns:
            dict: payment_status (raw provider status) and order summary or None.

        Raises:
            GatewayError: If PayDunya refuses the query.
        """
        result = self.gateway.check_status(token)
        order = await self.repository.find_order_by_token(token)

        if order and result.order_id and result.order_id != order["id"]:
            logger.warning(
                "Invoice %s reports order %s but is stored on order %s",
                token,
                result.order_id,
                order["id"],
            )
        elif order and result.status:
            order = await self.reconcile(order, result.status, result.total_amount) or order

        return {
            "payment_status": result.status or "unknown",
            "order": summarize_order(order) if order else None,
        }
