"""
Money Helpers Module

Fixed-point helpers for monetary values. NEVER uses float for money: every
amount flowing through the engine is a Decimal.
"""

from decimal import Decimal, DecimalException, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Any, Optional

from .errors import InvalidNumericError

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')
CENT = Decimal('0.01')


def to_decimal(value: Any) -> Decimal:
    """
    Lenient conversion used when reading stored amounts.

    Missing values (None, empty string) count as zero so that a record with
    an absent monetary field never poisons a sum.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """
    Strict conversion used for request input

    Raises:
        InvalidNumericError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidNumericError(field_name)
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        try:
            result = Decimal(text)
        except (InvalidOperation, ValueError):
            raise InvalidNumericError(field_name)
    if not result.is_finite():
        raise InvalidNumericError(field_name)
    return result


def parse_integer(value: Any, field_name: str) -> int:
    """Strict conversion for whole-number input such as installment counts"""
    result = parse_decimal(value, field_name)
    if result != result.to_integral_value():
        raise InvalidNumericError(field_name, f"Field {field_name} must be a whole number")
    return int(result)


def round_money(value: Decimal, precision: int = 2) -> Decimal:
    """Round to currency precision"""
    return value.quantize(Decimal('0.1') ** precision, rounding=ROUND_HALF_UP)


def fits_money(value: Decimal, precision: int = 2) -> bool:
    """Whether the amount can be held at currency precision in the decimal context"""
    try:
        round_money(value, precision)
    except DecimalException:
        return False
    return True


def format_amount(value: Optional[Decimal], precision: int = 2) -> Optional[str]:
    """Format for the wire: fixed-point string, never a float"""
    if value is None:
        return None
    return str(round_money(to_decimal(value), precision))
