from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Union

from pos_sync.core.config import settings

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a monetary amount: {value!r}")


def format_amount(value: Any) -> str:
    """Render an amount the way CloudPOS expects it: ``"4.50"``"""
    return str(to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def format_tax(value: Any) -> Union[int, float]:
    """Tax rate as a number; unset falls back to the default rate"""
    if value is None or value == "":
        return settings.CLOUDPOS_DEFAULT_TAX_RATE
    rate = float(value)
    return int(rate) if rate.is_integer() else rate
