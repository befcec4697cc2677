"""
Pricing & Discount Calculator.

    total = unit_price * quantity * (1 - discount / 100)

The discount is clamped to [0, 100] before use, whatever the referral service
returned, so a corrupt upstream value can never produce a negative total or
one larger than the undiscounted subtotal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from concertdesk.core.errors import PricingError
from concertdesk.core.schemas import ReferralVerdict

MAX_TICKETS_PER_PURCHASE = 10

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class PriceQuote:
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    total: Decimal


def clamp_discount(value: object) -> Decimal:
    """Bound a discount percentage to [0, 100]. Missing or non-numeric values count as 0."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        discount = Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
    if not discount.is_finite():
        return Decimal("0")
    return min(max(discount, Decimal("0")), HUNDRED)


def _check_quantity(quantity: object, max_quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise PricingError(f"Quantity must be a whole number, got {quantity!r}")
    if quantity < 1 or quantity > max_quantity:
        raise PricingError(f"Quantity must be between 1 and {max_quantity} tickets")
    return quantity


def _check_price(unit_price: object) -> Decimal:
    try:
        price = Decimal(str(unit_price))
    except InvalidOperation:
        raise PricingError(f"Unit price must be a number, got {unit_price!r}") from None
    if not price.is_finite() or price < 0:
        raise PricingError(f"Unit price must be a non-negative number, got {unit_price!r}")
    return price


def compute_total(
    unit_price: Decimal | float | int | str,
    quantity: int,
    discount_percent: object = 0,
    max_quantity: int = MAX_TICKETS_PER_PURCHASE,
) -> Decimal:
    """
    Total to pay, rounded half-up to cents.

    Raises:
        PricingError: quantity is not an int in 1..max_quantity, or the price
            is negative or not a number.
    """
    return quote(unit_price, quantity, discount_percent, max_quantity=max_quantity).total


def quote(
    unit_price: Decimal | float | int | str,
    quantity: int,
    discount: ReferralVerdict | object = None,
    max_quantity: int = MAX_TICKETS_PER_PURCHASE,
) -> PriceQuote:
    """
    Full price breakdown. ``discount`` is either a raw percentage or a
    ReferralVerdict; an invalid verdict contributes no discount.
    """
    price = _check_price(unit_price)
    qty = _check_quantity(quantity, max_quantity)

    if isinstance(discount, ReferralVerdict):
        percent = clamp_discount(discount.discount_percent if discount.valid else 0)
    else:
        percent = clamp_discount(discount)

    subtotal = price * qty
    total = (subtotal * (HUNDRED - percent) / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    subtotal = subtotal.quantize(CENT, rounding=ROUND_HALF_UP)

    return PriceQuote(
        unit_price=price,
        quantity=qty,
        subtotal=subtotal,
        discount_percent=percent,
        discount_amount=subtotal - total,
        total=total,
    )
