"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAYDUNYA_MODE", "test")
os.environ.setdefault("PAYDUNYA_MASTER_KEY", "test-master-key")
os.environ.setdefault("PAYDUNYA_PRIVATE_KEY", "test-private-key")
os.environ.setdefault("PAYDUNYA_TOKEN", "test-token")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("STORAGE_PUBLIC_URL", "https://images.example.com")
os.environ.setdefault("FRONTEND_URL", "https://shop.example.com")

ORDER_ID = "ORD-LZ3K9Q1A-4F7X2B"


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Provide a mocked Supabase client."""
    return MagicMock()


@pytest.fixture
def mock_http_session() -> MagicMock:
    """Provide a mocked requests session for PayDunya calls."""
    return MagicMock()


@pytest.fixture
def sample_cart() -> dict:
    """Create a storefront cart snapshot totalling 150 XOF."""
    return {
        "id": "cart-123",
        "totalQuantity": 2,
        "checkoutUrl": "/checkout",
        "lines": [
            {
                "id": "line-1",
                "quantity": 2,
                "cost": {"totalAmount": {"amount": "150.00", "currencyCode": "XOF"}},
                "merchandise": {
                    "id": "var-1",
                    "title": "Taille M",
                    "selectedOptions": [{"name": "Taille", "value": "M"}],
                    "product": {
                        "id": "prod-1",
                        "handle": "boubou-brode",
                        "title": "Boubou brodé",
                        "featuredImage": None,
                    },
                },
            }
        ],
        "cost": {
            "subtotalAmount": {"amount": "150.00", "currencyCode": "XOF"},
            "totalAmount": {"amount": "150.00", "currencyCode": "XOF"},
            "totalTaxAmount": {"amount": "0.00", "currencyCode": "XOF"},
        },
    }


@pytest.fixture
def sample_order(sample_cart: dict) -> dict:
    """Create a pending order row as returned by Supabase."""
    return {
        "id": ORDER_ID,
        "cart_id": "cart-123",
        "customer_email": "awa@example.com",
        "customer_name": "Awa Ndiaye",
        "customer_phone": "+221770000000",
        "shipping_address": {"address1": "12 Rue Carnot", "city": "Dakar", "country": "SN"},
        "subtotal_amount": 150,
        "tax_amount": 0,
        "total_amount": 150,
        "currency_code": "XOF",
        "line_items": sample_cart["lines"],
        "status": "pending",
        "payment_status": "pending",
        "paydunya_token": None,
        "paydunya_invoice_url": None,
        "payment_method": None,
        "created_at": "2026-10-18T09:00:00+00:00",
        "updated_at": "2026-10-18T09:00:00+00:00",
        "paid_at": None,
    }


@pytest.fixture
def client(
    test_settings: Any,
    mock_supabase: MagicMock,
    mock_http_session: MagicMock,
) -> Generator[TestClient, None, None]:
    """Provide a test client with Supabase and PayDunya I/O mocked.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.api.deps import get_media_service, get_order_repository, get_paydunya_client
    from src.main import app
    from src.services.media_service import MediaService
    from src.services.order_repository import OrderRepository
    from src.services.paydunya_service import PayDunyaClient

    app.dependency_overrides[get_order_repository] = lambda: OrderRepository(supabase_client=mock_supabase)
    app.dependency_overrides[get_paydunya_client] = lambda: PayDunyaClient(
        test_settings, session=mock_http_session
    )
    app.dependency_overrides[get_media_service] = lambda: MediaService(
        supabase_client=mock_supabase, settings=test_settings
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
