"""PayDunya checkout-invoice API client."""

import hmac
import logging
from dataclasses import dataclass
from typing import Any

import requests

from src.api.middleware.error_handler import GatewayError
from src.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

SUCCESS_RESPONSE_CODE = "00"
WEBHOOK_AUTH_HEADER = "PAYDUNYA-MASTER-KEY"


@dataclass
class InvoiceCustomer:
    """Customer block of a PayDunya invoice."""

    name: str
    email: str
    phone: str


@dataclass
class InvoiceItem:
    """Line shown on the hosted invoice."""

    name: str
    quantity: int
    unit_price: int
    total_price: int


@dataclass
class InvoiceResult:
    """Outcome of a successful invoice creation."""

    token: str
    invoice_url: str


@dataclass
class InvoiceStatus:
    """Invoice state as reported by PayDunya."""

    status: str | None
    order_id: str | None
    total_amount: Any


class PayDunyaClient:
    """Client for PayDunya hosted invoices.

    Every call is a single attempt; callers decide whether to retry.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize PayDunya client.

        Args:
            settings: Optional settings for testing.
            session: Optional HTTP session for testing.
        """
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.base_url = self.settings.paydunya_base_url
        self.headers = {
            "Content-Type": "application/json",
            "PAYDUNYA-MASTER-KEY": self.settings.paydunya_master_key,
            "PAYDUNYA-PRIVATE-KEY": self.settings.paydunya_private_key,
            "PAYDUNYA-TOKEN": self.settings.paydunya_token,
        }

    def build_invoice_payload(
        self,
        order_id: str,
        total_amount: int,
        description: str,
        customer: InvoiceCustomer,
        return_url: str,
        cancel_url: str,
        callback_url: str,
        items: list[InvoiceItem] | None = None,
    ) -> dict[str, Any]:
        """Build the checkout-invoice/create request body."""
        invoice: dict[str, Any] = {
            "total_amount": total_amount,
            "description": description,
        }
        if items:
            invoice["items"] = {
                f"item_{index}": {
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                }
                for index, item in enumerate(items)
            }

        return {
            "invoice": invoice,
            "store": {
                "name": self.settings.store_name,
                "tagline": self.settings.store_tagline,
                "phone": self.settings.store_phone,
                "postal_address": self.settings.store_postal_address,
                "website_url": self.settings.frontend_url,
            },
            "custom_data": {"order_id": order_id},
            "actions": {
                "return_url": return_url,
                "cancel_url": cancel_url,
                "callback_url": callback_url,
            },
            "customer": {
                "name": customer.name,
                "email": customer.email,
                "phone": customer.phone,
            },
        }

    def create_invoice(
        self,
        order_id: str,
        total_amount: int,
        description: str,
        customer: InvoiceCustomer,
        return_url: str,
        cancel_url: str,
        callback_url: str,
        items: list[InvoiceItem] | None = None,
    ) -> InvoiceResult:
        """Create a hosted invoice for an order.

        Args:
            order_id: Order ID, echoed back in notifications as custom_data.order_id.
            total_amount: Amount to collect in whole currency units.
            description: Invoice description.
            customer: Customer contact details.
            return_url: Where PayDunya sends the customer after paying.
            cancel_url: Where PayDunya sends the customer on cancel.
            callback_url: Notification (IPN) endpoint.
            items: Optional invoice lines.

        Returns:
            InvoiceResult: Token and hosted invoice URL.

        Raises:
            GatewayError: If PayDunya rejects the invoice or cannot be reached.
        """
        payload = self.build_invoice_payload(
            order_id=order_id,
            total_amount=total_amount,
            description=description,
            customer=customer,
            return_url=return_url,
            cancel_url=cancel_url,
            callback_url=callback_url,
            items=items,
        )
        data = self._request("POST", "/checkout-invoice/create", json=payload)

        token = data.get("token")
        invoice_url = data.get("invoice_url")
        if data.get("response_code") == SUCCESS_RESPONSE_CODE and token and invoice_url:
            logger.info("Created PayDunya invoice %s for order %s", token, order_id)
            return InvoiceResult(token=token, invoice_url=invoice_url)

        message = data.get("response_text") or "Failed to create invoice"
        logger.error("PayDunya rejected invoice for order %s: %s", order_id, message)
        raise GatewayError(message)

    def check_status(self, token: str) -> InvoiceStatus:
        """Query the state of an invoice.

        Args:
            token: Invoice token.

        Returns:
            InvoiceStatus: Provider status, correlated order ID and amount.

        Raises:
            GatewayError: If PayDunya rejects the query or cannot be reached.
        """
        data = self._request("GET", f"/checkout-invoice/confirm/{token}")

        if data.get("response_code") == SUCCESS_RESPONSE_CODE:
            invoice = data.get("invoice") or {}
            custom_data = data.get("custom_data") or {}
            return InvoiceStatus(
                status=invoice.get("status"),
                order_id=custom_data.get("order_id"),
                total_amount=invoice.get("total_amount"),
            )

        message = data.get("response_text") or "Failed to check status"
        logger.error("PayDunya status check failed for %s: %s", token, message)
        raise GatewayError(message)

    def verify_webhook_signature(self, presented_key: str | None) -> bool:
        """Check the master key presented on an inbound notification.

        PayDunya authenticates callbacks with the shared master key only;
        there is no body signature or replay protection.

        Args:
            presented_key: Value of the PAYDUNYA-MASTER-KEY header.

        Returns:
            bool: True if it matches the configured master key.
        """
        expected = self.settings.paydunya_master_key
        if not presented_key or not expected:
            return False
        return hmac.compare_digest(presented_key.encode(), expected.encode())

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                headers=self.headers,
                timeout=self.settings.paydunya_timeout_seconds,
            )
            data = response.json()
        except requests.RequestException as e:
            logger.error("PayDunya %s %s failed: %s", method, path, str(e))
            raise GatewayError(str(e)) from e
        except ValueError as e:
            logger.error("PayDunya %s %s returned invalid JSON: %s", method, path, str(e))
            raise GatewayError("Invalid response from payment provider") from e

        if not isinstance(data, dict):
            raise GatewayError("Invalid response from payment provider")
        return data
