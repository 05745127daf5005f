"""
Amount and Rate Arithmetic Module

Money is always an integer count of minor currency units, bounded to the signed
64-bit range. Rates are Decimal with a fixed number of places. NEVER uses float
for either.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Union

from .errors import InvalidRate, LedgerOverflowError

# High precision context; rate quantization happens explicitly
getcontext().prec = 28

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

RateLike = Union[Decimal, int, float, str]


def validate_minor_units(value: int, name: str = "amount") -> int:
    """
    Check that a value is an integer amount inside the signed 64-bit range

    Args:
        value: Candidate amount in minor units
        name: Field name used in error messages

    Returns:
        The value unchanged

    Raises:
        TypeError: If value is not an int (bool is rejected too)
        LedgerOverflowError: If value is outside the signed 64-bit range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer number of minor units, got {type(value).__name__}")
    if value < INT64_MIN or value > INT64_MAX:
        raise LedgerOverflowError(f"{name} {value} is outside the signed 64-bit range")
    return value


def checked_add(left: int, right: int, name: str = "amount") -> int:
    """Add two amounts, raising LedgerOverflowError if the result overflows"""
    result = left + right
    if result < INT64_MIN or result > INT64_MAX:
        raise LedgerOverflowError(f"{name} overflow: {left} + {right}")
    return result


def checked_sub(left: int, right: int, name: str = "amount") -> int:
    """Subtract two amounts, raising LedgerOverflowError if the result overflows"""
    result = left - right
    if result < INT64_MIN or result > INT64_MAX:
        raise LedgerOverflowError(f"{name} overflow: {left} - {right}")
    return result


def checked_sum(values, name: str = "amount") -> int:
    total = 0
    for value in values:
        total = checked_add(total, value, name)
    return total


def to_decimal(value: RateLike) -> Decimal:
    """
    Convert to Decimal going through str() so floats carry no binary noise

    Raises:
        InvalidRate: If the value does not parse or is NaN or infinite
    """
    if isinstance(value, bool):
        raise TypeError("Rate must be numeric, got bool")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise InvalidRate(f"Invalid rate: {value!r}")
    if not value.is_finite():
        raise InvalidRate(f"Rate must be finite, got {value}")
    return value


def quantize_rate(value: RateLike, precision: int = 4) -> Decimal:
    """
    Round a rate to a fixed number of decimal places (ROUND_HALF_UP)

    Raises:
        InvalidRate: If the rate is not finite or has too many digits to
            carry at this precision
    """
    rate = to_decimal(value)
    try:
        return rate.quantize(Decimal('0.1') ** precision, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidRate(f"Rate {rate} does not fit {precision} decimal places")
