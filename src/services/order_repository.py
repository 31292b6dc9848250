"""Order and transaction persistence on Supabase."""

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from supabase import Client

from src.api.middleware.error_handler import ConflictError, InternalError, NotFoundError, ValidationError
from src.core.ids import generate_id
from src.core.supabase import get_supabase_client
from src.models.order import (
    DEFAULT_CURRENCY,
    Order,
    OrderCreate,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Transaction,
    TransactionStatus,
)
from src.schemas.order import CartSnapshot, CustomerInfo

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
TRANSACTIONS_TABLE = "transactions"


def round_units(value: Decimal) -> int:
    """Round to whole currency units, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_amount(amount: str) -> int:
    """Convert a decimal-string amount to whole currency units."""
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount!r}")
    return round_units(value)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class OrderRepository:
    """Persistence and status transitions for orders and transactions.

    Status changes are single UPDATE statements with compare-and-set
    filters, so concurrent webhooks and polls cannot move paid_at or
    regress a completed payment.
    """

    def __init__(self, supabase_client: Client | None = None):
        """Initialize order repository.

        Args:
            supabase_client: Optional Supabase client for testing.
        """
        self._supabase_client = supabase_client

    @property
    def supabase(self) -> Client:
        """Get Supabase client."""
        if self._supabase_client is None:
            self._supabase_client = get_supabase_client()
        return self._supabase_client

    async def create_order(
        self,
        customer: CustomerInfo | None,
        shipping_address: dict[str, Any] | None,
        cart: CartSnapshot | None,
    ) -> Order:
        """Create a pending order from a cart snapshot.

        Args:
            customer: Customer contact details.
            shipping_address: Shipping address, stored as given.
            cart: Cart snapshot; its lines are stored verbatim.

        Returns:
            Order: The created order.

        Raises:
            ValidationError: If a required field is missing or an amount is malformed.
            InternalError: If the insert returns no row.
        """
        if cart is None or customer is None or shipping_address is None:
            raise ValidationError("Missing required fields: cart, customer, shippingAddress")
        if not customer.email or not customer.name or not customer.phone:
            raise ValidationError("Missing customer fields: email, name, phone")

        cost = cart.cost
        order_data: OrderCreate = {
            "id": generate_id("ORD").upper(),
            "cart_id": cart.id,
            "customer_email": customer.email,
            "customer_name": customer.name,
            "customer_phone": customer.phone,
            "shipping_address": shipping_address,
            "subtotal_amount": parse_amount(cost.subtotal_amount.amount),
            "tax_amount": parse_amount(cost.total_tax_amount.amount),
            "total_amount": parse_amount(cost.total_amount.amount),
            "currency_code": cost.total_amount.currency_code or DEFAULT_CURRENCY,
            "line_items": [
                line.model_dump(mode="json", by_alias=True, exclude_unset=True) for line in cart.lines
            ],
            "status": "pending",
            "payment_status": "pending",
        }

        response = self.supabase.table(ORDERS_TABLE).insert(dict(order_data)).execute()
        if not response.data:
            raise InternalError("Failed to create order")

        order = response.data[0]
        logger.info("Created order %s (total=%s %s)", order["id"], order["total_amount"], order["currency_code"])
        return order

    async def get_order(self, order_id: str) -> Order | None:
        """Get an order by ID.

        Args:
            order_id: Order ID.

        Returns:
            Order | None: The order or None if not found.
        """
        response = (
            self.supabase.table(ORDERS_TABLE)
            .select("*")
            .eq("id", order_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def get_order_by_token(self, order_id: str, token: str) -> Order | None:
        """Get an order only if it carries the given invoice token.

        Args:
            order_id: Order ID.
            token: PayDunya invoice token.

        Returns:
            Order | None: The order or None if the pair does not match.
        """
        response = (
            self.supabase.table(ORDERS_TABLE)
            .select("*")
            .eq("id", order_id)
            .eq("paydunya_token", token)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def find_order_by_token(self, token: str) -> Order | None:
        """Get the order whose current invoice token is `token`."""
        response = (
            self.supabase.table(ORDERS_TABLE)
            .select("*")
            .eq("paydunya_token", token)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    async def list_orders(
        self,
        email: str | None = None,
        status: OrderStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        """List orders, newest first.

        Args:
            email: Optional customer email filter.
            status: Optional order status filter.
            limit: Page size.
            offset: Number of rows to skip.

        Returns:
            tuple: (orders on this page, total matching rows).
        """
        query = self.supabase.table(ORDERS_TABLE).select("*", count="exact")
        if email:
            query = query.eq("customer_email", email)
        if status:
            query = query.eq("status", status)

        response = (
            query.order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        orders = response.data or []
        total = response.count if response.count is not None else len(orders)
        return orders, total

    async def update_order_payment_init(
        self,
        order_id: str,
        token: str,
        invoice_url: str,
        method: PaymentMethod,
    ) -> Order:
        """Record a started payment on the order.

        Args:
            order_id: Order ID.
            token: PayDunya invoice token.
            invoice_url: Hosted invoice URL.
            method: Payment method chosen by the customer.

        Returns:
            Order: The updated order.

        Raises:
            NotFoundError: If the order does not exist.
            ConflictError: If the order was paid in the meantime.
        """
        response = (
            self.supabase.table(ORDERS_TABLE)
            .update(
                {
                    "paydunya_token": token,
                    "paydunya_invoice_url": invoice_url,
                    "payment_method": method,
                    "payment_status": "processing",
                    "updated_at": _now(),
                }
            )
            .eq("id", order_id)
            .neq("payment_status", "completed")
            .execute()
        )
        if response.data:
            return response.data[0]

        if await self.get_order(order_id) is None:
            raise NotFoundError("Order not found")
        raise ConflictError("Order is already paid")

    async def reconcile_payment_status(
        self,
        order_id: str,
        payment_status: PaymentStatus,
        order_status: OrderStatus,
    ) -> Order | None:
        """Apply a provider-driven status transition.

        Moving into completed stamps paid_at only if it is still empty;
        a repeated completion writes nothing and returns the current row.
        Moving into any other status never touches paid_at and is refused
        once the payment is completed.

        Args:
            order_id: Order ID.
            payment_status: New payment status.
            order_status: New order status.

        Returns:
            Order | None: The resulting order, or None if the transition was refused.
        """
        now = _now()
        changes: dict[str, Any] = {
            "payment_status": payment_status,
            "status": order_status,
            "updated_at": now,
        }
        table = self.supabase.table(ORDERS_TABLE)

        if payment_status == "completed":
            response = (
                table.update({**changes, "paid_at": now})
                .eq("id", order_id)
                .is_("paid_at", "null")
                .execute()
            )
            if response.data:
                logger.info("Order %s paid at %s", order_id, now)
                return response.data[0]

            # Already paid: leave paid_at and any fulfilment status as they are
            logger.info("Order %s already paid, completion ignored", order_id)
            return await self.get_order(order_id)

        response = (
            table.update(changes)
            .eq("id", order_id)
            .neq("payment_status", "completed")
            .execute()
        )
        if response.data:
            return response.data[0]

        logger.warning(
            "Order %s not moved to payment_status=%s (missing or already completed)",
            order_id,
            payment_status,
        )
        return None

    async def set_order_status(self, order_id: str, status: OrderStatus) -> Order:
        """Set the fulfilment status of an order.

        Raises:
            NotFoundError: If the order does not exist.
        """
        response = (
            self.supabase.table(ORDERS_TABLE)
            .update({"status": status, "updated_at": _now()})
            .eq("id", order_id)
            .execute()
        )
        if not response.data:
            raise NotFoundError("Order not found")
        return response.data[0]

    async def record_transaction(
        self,
        order_id: str,
        token: str,
        amount: int,
        currency: str,
        method: PaymentMethod,
    ) -> Transaction:
        """Create a transaction for a payment attempt in `initiated` state."""
        response = (
            self.supabase.table(TRANSACTIONS_TABLE)
            .insert(
                {
                    "id": generate_id("TXN").upper(),
                    "order_id": order_id,
                    "paydunya_token": token,
                    "amount": amount,
                    "currency_code": currency,
                    "payment_method": method,
                    "status": "initiated",
                }
            )
            .execute()
        )
        if not response.data:
            raise InternalError("Failed to record transaction")
        return response.data[0]

    async def mark_transaction_failed(self, transaction_id: str) -> None:
        """Mark an attempt failed when its order could not be updated."""
        self.supabase.table(TRANSACTIONS_TABLE).update(
            {"status": "failed", "updated_at": _now()}
        ).eq("id", transaction_id).execute()

    async def update_transaction_from_webhook(
        self,
        order_id: str,
        token: str,
        status: TransactionStatus,
        raw_payload: dict[str, Any],
    ) -> Transaction | None:
        """Store the latest notification on the matching transaction.

        A missing transaction is tolerated (it may not be visible yet);
        the call is then a logged no-op.

        Returns:
            Transaction | None: The updated transaction, if any.
        """
        query = (
            self.supabase.table(TRANSACTIONS_TABLE)
            .update({"status": status, "paydunya_response": raw_payload, "updated_at": _now()})
            .eq("order_id", order_id)
            .eq("paydunya_token", token)
        )
        if status != "completed":
            query = query.neq("status", "completed")

        response = query.execute()
        if not response.data:
            logger.warning("No transaction updated for order %s token %s", order_id, token)
            return None
        return response.data[0]
