"""Readable unique identifiers for orders, transactions and uploads."""

import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_id(prefix: str) -> str:
    """Generate an ID such as ORD-lz3k9q1a-4f7x2b.

    Args:
        prefix: ID prefix (ORD, TXN, img...).

    Returns:
        str: Prefix, base36 millisecond timestamp and 6 random base36 chars.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}-{timestamp}-{random_part}"
