"""Order Pydantic schemas for API request/response models.

Cart payloads follow the storefront's camelCase shape and are stored
verbatim, so unknown keys are preserved rather than dropped.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.models.order import OrderStatus, PaymentMethod, PaymentStatus


class StorefrontModel(BaseModel):
    """Base for storefront payloads (camelCase on the wire, extra keys kept)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Money(StorefrontModel):
    """Decimal-string amount with its currency."""

    amount: str = Field(description="Decimal amount, e.g. '150.00'")
    currency_code: str | None = Field(default=None, description="ISO currency code")


class CartProduct(StorefrontModel):
    """Product reference inside a cart line."""

    id: str | None = None
    handle: str | None = None
    title: str = Field(description="Product title shown on the invoice")


class CartMerchandise(StorefrontModel):
    """Variant reference inside a cart line."""

    id: str | None = None
    title: str | None = None
    product: CartProduct


class CartLineCost(StorefrontModel):
    """Cost of a cart line."""

    total_amount: Money


class CartLine(StorefrontModel):
    """A single cart line snapshot."""

    id: str | None = None
    quantity: int = Field(ge=1, description="Quantity ordered")
    cost: CartLineCost
    merchandise: CartMerchandise


class CartCost(StorefrontModel):
    """Cart totals."""

    subtotal_amount: Money
    total_amount: Money
    total_tax_amount: Money


class CartSnapshot(StorefrontModel):
    """Cart as seen by the customer at checkout time."""

    id: str | None = Field(default=None, description="Storefront cart ID")
    lines: list[CartLine] = Field(default_factory=list, description="Cart lines")
    cost: CartCost


class CustomerInfo(BaseModel):
    """Customer contact details. All fields are required and non-empty."""

    email: str = Field(min_length=1, description="Customer email")
    name: str = Field(min_length=1, description="Customer full name")
    phone: str = Field(min_length=1, description="Customer phone number")


class CreateOrderRequest(BaseModel):
    """Schema for POST /api/orders."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cart: CartSnapshot = Field(description="Cart snapshot")
    customer: CustomerInfo = Field(description="Customer contact details")
    shipping_address: dict[str, Any] = Field(description="Shipping address, stored as given")


class OrderSummarySchema(BaseModel):
    """Short order representation returned on creation and by payment endpoints."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order ID")
    status: OrderStatus = Field(description="Order status")
    payment_status: PaymentStatus = Field(description="Payment status")
    total_amount: int = Field(description="Total in whole currency units")
    currency_code: str = Field(description="Currency code")


class OrderSchema(BaseModel):
    """Full order representation."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Order ID")
    cart_id: str | None = Field(default=None, description="Storefront cart ID")
    customer_email: str = Field(description="Customer email")
    customer_name: str = Field(description="Customer name")
    customer_phone: str = Field(description="Customer phone")
    shipping_address: dict[str, Any] = Field(description="Shipping address")
    subtotal_amount: int = Field(description="Subtotal in whole currency units")
    tax_amount: int = Field(description="Tax in whole currency units")
    total_amount: int = Field(description="Total in whole currency units")
    currency_code: str = Field(description="Currency code")
    line_items: list[dict[str, Any]] = Field(description="Cart lines at order time")
    status: OrderStatus = Field(description="Order status")
    payment_status: PaymentStatus = Field(description="Payment status")
    paydunya_token: str | None = Field(default=None, description="Gateway invoice token")
    paydunya_invoice_url: str | None = Field(default=None, description="Gateway hosted invoice URL")
    payment_method: PaymentMethod | None = Field(default=None, description="Selected payment method")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    paid_at: datetime | None = Field(default=None, description="Payment completion timestamp")

    @field_validator("shipping_address", "line_items", mode="before")
    @classmethod
    def expand_json_text(cls, value: Any) -> Any:
        """Accept JSON columns that were stored as text."""
        if isinstance(value, str):
            return json.loads(value)
        return value


class OrderCreatedData(BaseModel):
    """Payload of POST /api/orders."""

    order: OrderSummarySchema


class OrderData(BaseModel):
    """Payload of GET /api/orders/{id}."""

    order: OrderSchema


class OrderListData(BaseModel):
    """Payload of order list endpoints."""

    orders: list[OrderSchema]
    total: int = Field(description="Number of orders matching the filters")


class OrderStatusUpdate(BaseModel):
    """Schema for PUT /api/admin/orders/{id}/status."""

    status: OrderStatus = Field(description="New order status")
