"""FastAPI dependency injection functions."""

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header

from src.api.middleware.error_handler import AuthenticationError
from src.core.config import Settings, get_settings
from src.services.media_service import MediaService
from src.services.order_repository import OrderRepository
from src.services.paydunya_service import WEBHOOK_AUTH_HEADER, PayDunyaClient
from src.services.payment_service import PaymentService

logger = logging.getLogger(__name__)


def get_order_repository() -> OrderRepository:
    """Provide the order repository."""
    return OrderRepository()


def get_paydunya_client(settings: Annotated[Settings, Depends(get_settings)]) -> PayDunyaClient:
    """Provide a PayDunya client bound to the current settings."""
    return PayDunyaClient(settings)


def get_payment_service(
    repository: Annotated[OrderRepository, Depends(get_order_repository)],
    gateway: Annotated[PayDunyaClient, Depends(get_paydunya_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PaymentService:
    """Provide the order/payment orchestrator."""
    return PaymentService(repository=repository, gateway=gateway, settings=settings)


def get_media_service(settings: Annotated[Settings, Depends(get_settings)]) -> MediaService:
    """Provide the image upload service."""
    return MediaService(settings=settings)


async def require_admin_key(
    settings: Annotated[Settings, Depends(get_settings)],
    x_admin_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Check the X-Admin-API-Key header against the configured secret.

    Admin routes are closed when no key is configured.

    Raises:
        AuthenticationError: 401 if the key is missing or wrong.
    """
    expected = settings.admin_api_key
    if not expected or not x_admin_api_key or not hmac.compare_digest(x_admin_api_key.encode(), expected.encode()):
        logger.warning("Rejected admin request with missing or invalid API key")
        raise AuthenticationError("Unauthorized")


async def require_paydunya_key(
    gateway: Annotated[PayDunyaClient, Depends(get_paydunya_client)],
    paydunya_master_key: Annotated[str | None, Header(alias=WEBHOOK_AUTH_HEADER)] = None,
) -> None:
    """Authenticate a PayDunya notification before its body is read.

    Raises:
        AuthenticationError: 401 if the header is missing or does not match.
    """
    if not paydunya_master_key:
        logger.error("Webhook missing PAYDUNYA-MASTER-KEY header")
        raise AuthenticationError("Missing authentication header")

    if not gateway.verify_webhook_signature(paydunya_master_key):
        logger.error("Webhook master key verification failed")
        raise AuthenticationError("Invalid signature")


# Type aliases for cleaner dependency injection
Payments = Annotated[PaymentService, Depends(get_payment_service)]
Orders = Annotated[OrderRepository, Depends(get_order_repository)]
Media = Annotated[MediaService, Depends(get_media_service)]
AdminAuth = Annotated[None, Depends(require_admin_key)]
PayDunyaAuth = Annotated[None, Depends(require_paydunya_key)]
