"""
Pricing Module - Calculator
=============================
Line and order total calculation shared by the cart preview and order creation.
Pure functions, no database access. Money is rounded HALF_UP to 2 places.

Discount fractions are expected in [0, 1); request schemas reject anything else,
so these functions do not re-validate.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

MONEY_QUANT = Decimal("0.01")
DISCOUNT_QUANT = Decimal("0.0001")   # Numeric(5, 4) discount columns
ZERO = Decimal("0")
ONE = Decimal("1")


def _d(x) -> Decimal:
    if x is None:
        return ZERO
    return x if isinstance(x, Decimal) else Decimal(str(x))


def to_money(value) -> Decimal:
    """Round a value to 2 decimal places, HALF_UP. None counts as 0."""
    return _d(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def to_fraction(value) -> Decimal:
    """Discount fraction at the stored scale (4 places, HALF_UP). None counts as 0."""
    return _d(value).quantize(DISCOUNT_QUANT, rounding=ROUND_HALF_UP)


def line_total(unit_price, quantity: int, line_discount=None) -> Decimal:
    """
    unit_price * quantity * (1 - line_discount), rounded to cents.

    >>> line_total(Decimal("19.99"), 3, Decimal("0.10"))
    Decimal('53.97')
    """
    raw = _d(unit_price) * Decimal(quantity) * (ONE - to_fraction(line_discount))
    return to_money(raw)


def order_total(line_totals: Iterable) -> Decimal:
    """Sum of (already rounded) line totals."""
    total = ZERO
    for value in line_totals:
        total += _d(value)
    return to_money(total)


def order_total_discounted(total_amount, global_discount=None) -> Decimal:
    """total_amount * (1 - global_discount), rounded to cents."""
    return to_money(_d(total_amount) * (ONE - to_fraction(global_discount)))
