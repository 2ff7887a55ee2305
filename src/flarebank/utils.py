from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

from .core.errors import ValidationError

DEFAULT_DECIMALS = 18

AmountLike = Union[str, int, Decimal, None]


def to_decimal(value: AmountLike) -> Decimal:
    """Coerce a user-supplied amount into a finite Decimal.

    Raises:
        ValidationError: If the value is empty or not a finite number.
    """
    if value is None:
        raise ValidationError("Amount is required")
    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip()
        if not text:
            raise ValidationError("Amount is required")
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return amount


def scale(amount: Decimal, places: int) -> Decimal:
    """Shift the decimal point of ``amount`` by ``places`` without rounding."""
    with localcontext() as ctx:
        # scaleb keeps the coefficient, so its digit count is enough precision
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + 1)
        return amount.scaleb(places)


def parse_units(value: AmountLike, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a display amount (e.g. "1.5") into integer base units.

    Args:
        value: Human-readable amount
        decimals: Number of fractional digits of the base unit

    Returns:
        Amount in base units (wei for an 18-decimal native token)

    Raises:
        ValidationError: If the amount is negative, malformed or more
            precise than the base unit allows
    """
    amount = to_decimal(value)
    if amount < 0:
        raise ValidationError(f"Amount must not be negative: {value!r}")
    scaled = scale(amount, decimals)
    if scaled != scaled.to_integral_value():
        raise ValidationError(
            f"Amount {value!r} has more than {decimals} decimal places"
        )
    return int(scaled)


def format_units(raw: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render integer base units as a plain decimal string without trailing zeros."""
    quantity = scale(Decimal(int(raw)), -decimals)
    text = format(quantity, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
