from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Sequence

from storefront.domain import LineItem
from storefront.errors import ValidationError

RECONCILIATION_TOLERANCE = Decimal("0.01")
# Largest single charge, in major units (99,999,999 minor units)
MAX_AMOUNT = Decimal("999999.99")

NON_POSITIVE_AMOUNT = "NON_POSITIVE_AMOUNT"
AMOUNT_TOO_LARGE = "AMOUNT_TOO_LARGE"
EMPTY_CART = "EMPTY_CART"
AMOUNT_MISMATCH = "AMOUNT_MISMATCH"

_CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    # str() first so floats like 29.99 stay 29.99 instead of their binary expansion
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}", code=NON_POSITIVE_AMOUNT)
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}", code=NON_POSITIVE_AMOUNT)
    return amount


def check_amount(value) -> Decimal:
    """Parse a claimed charge and bound it to (0, MAX_AMOUNT]."""
    amount = to_decimal(value)
    if amount <= 0:
        raise ValidationError("Invalid amount. Amount must be greater than 0.", code=NON_POSITIVE_AMOUNT)
    if amount > MAX_AMOUNT:
        raise ValidationError(f"Invalid amount. Amount must be at most {MAX_AMOUNT}.", code=AMOUNT_TOO_LARGE)
    return amount


def to_minor_units(amount) -> int:
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(_CENT)


def items_total(items: Sequence[LineItem]) -> Decimal:
    return sum((item.line_total for item in items), Decimal("0"))


def reconcile(items: Sequence[LineItem], claimed_total) -> Decimal:
    """Return the computed total of ``items``; raise if the claim doesn't match it."""
    claimed = check_amount(claimed_total)
    if not items:
        raise ValidationError("Items are required.", code=EMPTY_CART)

    computed = items_total(items)
    if abs(computed - claimed) > RECONCILIATION_TOLERANCE:
        raise ValidationError(
            "Amount mismatch. Calculated total does not match provided amount.",
            code=AMOUNT_MISMATCH,
        )
    return computed
