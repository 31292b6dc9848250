"""Database model type definitions."""

from src.models.order import (
    Order,
    OrderCreate,
    OrderStatus,
    OrderSummary,
    PaymentMethod,
    PaymentStatus,
    Transaction,
    TransactionStatus,
)

__all__ = [
    "Order",
    "OrderCreate",
    "OrderStatus",
    "OrderSummary",
    "PaymentMethod",
    "PaymentStatus",
    "Transaction",
    "TransactionStatus",
]
