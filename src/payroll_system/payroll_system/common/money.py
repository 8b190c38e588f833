from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

from ..core.exceptions import ValidationError

CENTAVO = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, field_name: str = "amount") -> Decimal:
    """Coerce ints, strings, floats and Decimals to a 2-place Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return amount.quantize(CENTAVO, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    """Truncate to centavos, never rounding up past a ceiling."""
    return value.quantize(CENTAVO, rounding=ROUND_DOWN)


def round_half_up(value, places: str = "1") -> Decimal:
    return Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)
