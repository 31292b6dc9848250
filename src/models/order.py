"""Order and transaction model type definitions for database operations."""

from datetime import datetime
from typing import Any, Literal, TypedDict


# Status vocabularies matching the check constraints in supabase/schema.sql
OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "refunded"]
PaymentStatus = Literal["pending", "processing", "completed", "failed", "cancelled"]
PaymentMethod = Literal["wave", "orange_money", "free_money", "card"]
TransactionStatus = Literal["initiated", "pending", "completed", "failed"]

DEFAULT_CURRENCY = "XOF"


class Order(TypedDict):
    """Order table row representation.

    shipping_address and line_items are JSON columns holding the
    storefront payloads exactly as they were at order creation.
    Monetary amounts are whole units of currency_code.
    """

    id: str
    cart_id: str | None
    customer_email: str
    customer_name: str
    customer_phone: str
    shipping_address: dict[str, Any]
    subtotal_amount: int
    tax_amount: int
    total_amount: int
    currency_code: str
    line_items: list[dict[str, Any]]
    status: OrderStatus
    payment_status: PaymentStatus
    paydunya_token: str | None
    paydunya_invoice_url: str | None
    payment_method: PaymentMethod | None
    created_at: datetime
    updated_at: datetime
    paid_at: datetime | None


class OrderCreate(TypedDict):
    """Data required to insert a new order."""

    id: str
    cart_id: str | None
    customer_email: str
    customer_name: str
    customer_phone: str
    shipping_address: dict[str, Any]
    subtotal_amount: int
    tax_amount: int
    total_amount: int
    currency_code: str
    line_items: list[dict[str, Any]]
    status: OrderStatus
    payment_status: PaymentStatus


class OrderSummary(TypedDict):
    """Subset of order columns returned by payment endpoints."""

    id: str
    status: OrderStatus
    payment_status: PaymentStatus
    total_amount: int
    currency_code: str


class Transaction(TypedDict):
    """Transaction table row representation.

    One row per payment initiation attempt.
    """

    id: str
    order_id: str
    paydunya_token: str
    amount: int
    currency_code: str
    payment_method: PaymentMethod
    status: TransactionStatus
    paydunya_response: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime
