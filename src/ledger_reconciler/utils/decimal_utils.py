"""Decimal utilities for ledger amounts.

All monetary calculations must use Decimal to avoid floating-point precision issues.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

# Ledger amounts are compared and stored at cent precision
CENT = Decimal("0.01")


def to_currency(value: object) -> Decimal:
    """Convert a value to a Decimal rounded to cents.

    Floats are converted through their string form so 130.48 stays 130.48.

    Args:
        value: Decimal, int, str, or float amount.

    Returns:
        Decimal quantized to two decimal places (ROUND_HALF_UP).

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean to amount: {value!r}")

    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float, str)):
            amount = Decimal(str(value).strip())
        else:
            raise ValueError(f"Unsupported amount type: {type(value).__name__}")
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{value}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite, got '{value}'")

    quantized = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = Decimal("0.00")  # Normalize -0 to 0
    return quantized


def format_currency(
    amount: Decimal,
    decimal_places: int = 2,
    include_sign: bool = True,
) -> str:
    """Format a Decimal amount for display.

    Args:
        amount: The amount to format.
        decimal_places: Number of decimal places (default 2).
        include_sign: Whether to include sign for negative amounts.

    Returns:
        Formatted string like "-1234.56" or "1234.56".
    """
    quantize_str = "0." + "0" * decimal_places
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)

    if include_sign and rounded < 0:
        return str(rounded)
    return str(abs(rounded))


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimal amounts and round the total to cents.

    Args:
        amounts: Decimal amounts.

    Returns:
        Sum as Decimal with two decimal places.
    """
    total = Decimal("0")
    for amount in amounts:
        total += amount
    return to_currency(total)
