"""
Ivay Shop - Shared Helpers
===========================
Pure utility functions with NO database dependencies.
"""

from datetime import datetime, timezone

from common.exceptions import InvalidInputError


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def require_positive_quantity(quantity) -> int:
    """Return quantity as int, or raise InvalidInputError unless it is an integer >= 1."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidInputError(f"Quantity must be a positive integer (got {quantity!r})")
    return quantity
