"""
Amounts - Exact conversions between human units and base units.

Amounts travel as decimal strings ("1.5") and become integers of the
smallest denomination (wei for ether, 10^-decimals for tokens). All
arithmetic is Decimal/int; floats are never involved.
"""

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_UP,
    Decimal,
    DecimalException,
    InvalidOperation,
    localcontext,
)

from wallet.errors import ConversionFailure

ETHER_DECIMALS = 18
GWEI_DECIMALS = 9
BALANCE_DISPLAY_DECIMALS = 8

# Enough digits for uint256 values at any decimals
_PRECISION = 100


def parse_amount(amount: str) -> Decimal:
    """
    Parse a human-readable amount.

    Raises:
        ConversionFailure: If the value is not a finite, non-negative number
    """
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount).strip())
        except (InvalidOperation, ValueError) as e:
            raise ConversionFailure(f"Not a number: {amount!r}") from e

    if not value.is_finite():
        raise ConversionFailure(f"Not a finite number: {amount!r}")
    if value < 0:
        raise ConversionFailure(f"Negative amount: {amount!r}")
    return value


def to_base_units(amount: str, decimals: int = ETHER_DECIMALS) -> int:
    """
    Convert a human amount to base units: round(amount * 10^decimals).

    >>> to_base_units("1.5", 6)
    1500000
    """
    if decimals < 0:
        raise ConversionFailure(f"Invalid decimals: {decimals}")
    value = parse_amount(amount)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            scaled = value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        except DecimalException as e:
            raise ConversionFailure(f"Amount out of range: {amount!r}") from e
    return int(scaled)


def from_base_units(raw: int, decimals: int = ETHER_DECIMALS) -> Decimal:
    """Convert base units back to an exact Decimal in human units."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(int(raw)).scaleb(-decimals)


def format_units(raw: int, decimals: int = ETHER_DECIMALS,
                 precision: int = BALANCE_DISPLAY_DECIMALS) -> str:
    """
    Format base units as a fixed-precision decimal string.

    Rounds down so a displayed balance never exceeds the real one.

    >>> format_units(1_234_567_890_123_456_789)
    '1.23456789'
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = from_base_units(raw, decimals)
        try:
            return f"{value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_DOWN):f}"
        except DecimalException as e:
            raise ConversionFailure(f"Balance out of range: {raw}") from e


def format_amount(value: Decimal, max_fraction_digits: int = 4) -> str:
    """Format for display with thousands separators, trailing zeros dropped."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        try:
            quantized = value.quantize(Decimal(1).scaleb(-max_fraction_digits), rounding=ROUND_HALF_UP)
        except DecimalException as e:
            raise ConversionFailure(f"Amount out of range: {value}") from e
    text = f"{quantized:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
