"""Payment and PayDunya notification Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from src.models.order import PaymentMethod
from src.schemas.order import OrderSummarySchema


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InitPaymentRequest(CamelModel):
    """Schema for POST /api/payments/init."""

    order_id: str = Field(min_length=1, description="Order to pay")
    payment_method: PaymentMethod = Field(description="Payment rail chosen by the customer")
    return_url: HttpUrl = Field(description="URL to redirect after payment")
    cancel_url: HttpUrl = Field(description="URL to redirect if payment is cancelled")


class InitPaymentData(CamelModel):
    """Payload of POST /api/payments/init."""

    redirect_url: str = Field(description="Hosted invoice URL to redirect the customer to")
    token: str = Field(description="PayDunya invoice token")


class PaymentStatusData(CamelModel):
    """Payload of GET /api/payments/{token}/status."""

    payment_status: str = Field(description="Status reported by PayDunya")
    order: OrderSummarySchema | None = Field(default=None, description="Order carrying this token")


class WebhookInvoice(BaseModel):
    """Invoice section of a PayDunya notification."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    token: str | None = None
    status: str | None = None
    # Kept as sent; a malformed amount is logged as a mismatch, not rejected
    total_amount: Any = None


class WebhookCustomData(BaseModel):
    """Correlation data echoed back by PayDunya."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    order_id: str | None = None


class PayDunyaWebhookPayload(BaseModel):
    """PayDunya instant payment notification body.

    Every field is optional here; the receiver decides which ones are
    required so it can answer 400 instead of a validation error.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    response_code: str | None = None
    response_text: str | None = None
    hash: str | None = None
    invoice: WebhookInvoice | None = None
    custom_data: WebhookCustomData | None = None
    receipt_url: str | None = None

    @property
    def token(self) -> str | None:
        return self.invoice.token if self.invoice else None

    @property
    def status(self) -> str | None:
        return self.invoice.status if self.invoice else None

    @property
    def total_amount(self) -> Any:
        return self.invoice.total_amount if self.invoice else None

    @property
    def order_id(self) -> str | None:
        return self.custom_data.order_id if self.custom_data else None


class UploadData(BaseModel):
    """Payload of POST /api/admin/upload."""

    url: str = Field(description="Public URL of the stored image")
    key: str = Field(description="Object key in the storage bucket")
