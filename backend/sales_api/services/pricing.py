from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP


CENT = Decimal("0.01")


def discount_percentage(quantity: int) -> int:
    """
    Quantity-tiered discount.

    10..20 identical items: 20%, 4..9: 10%, anything else: 0%.
    Out-of-range quantities are a validation concern; here they simply earn no discount.
    """
    if 10 <= quantity <= 20:
        return 20
    if 4 <= quantity <= 9:
        return 10
    return 0


def calculate_amounts(*, quantity: int, unit_price: Decimal) -> tuple[Decimal, Decimal]:
    """Return `(discount, total_amount)` for a line, both rounded half-up to cents."""
    gross = Decimal(unit_price) * quantity
    discount = (gross * discount_percentage(quantity) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    total = (gross - discount).quantize(CENT, rounding=ROUND_HALF_UP)
    return discount, total
