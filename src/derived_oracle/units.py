from __future__ import annotations

from .constants import INT256_MAX
from .errors import InvalidMagnitudeError


def to_signed(value: int) -> int:
    """Reinterpret an unsigned 256-bit integer as a signed one.

    Args:
        value: Non-negative integer as returned by a ``uint256`` contract call.

    Returns:
        The same value, now safe to use in signed arithmetic.

    Raises:
        InvalidMagnitudeError: If ``value`` exceeds ``INT256_MAX`` and would
            otherwise wrap into a negative number.
    """
    if value > INT256_MAX:
        raise InvalidMagnitudeError(
            f"Value {value} exceeds the maximum int256 ({INT256_MAX})"
        )
    return value


def truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero.

    Python's ``//`` floors, which differs from on-chain division for negative
    operands: ``-7 // 2 == -4`` while ``truncating_div(-7, 2) == -3``.

    Raises:
        ZeroDivisionError: If ``denominator`` is zero.
    """
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def scale_down(value: int, from_decimals: int, to_decimals: int) -> int:
    """Reduce the decimal precision of a fixed-point integer.

    Args:
        value: Integer amount expressed with ``from_decimals`` decimal places.
        from_decimals: Current precision of ``value``.
        to_decimals: Target precision, never larger than ``from_decimals``.

    Returns:
        ``value`` divided by ``10 ** (from_decimals - to_decimals)``, truncated
        toward zero.

    Raises:
        ValueError: If ``to_decimals`` exceeds ``from_decimals``.
    """
    if to_decimals > from_decimals:
        raise ValueError(
            f"Cannot scale from {from_decimals} up to {to_decimals} decimals"
        )
    if to_decimals == from_decimals:
        return value
    return truncating_div(value, 10 ** (from_decimals - to_decimals))


def is_power_of_ten(value: int) -> bool:
    if value < 1:
        return False
    while value % 10 == 0:
        value //= 10
    return value == 1


def decimals_from_scale(scale: int) -> int:
    """Return ``d`` such that ``10**d == scale``.

    Raises:
        ValueError: If ``scale`` is not a positive power of ten.
    """
    if not is_power_of_ten(scale):
        raise ValueError(f"Scale {scale} is not a power of ten")
    return len(str(scale)) - 1
