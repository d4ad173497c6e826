"""Amount parsing and rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_DOWN, ROUND_HALF_UP
import re

CENT = Decimal("0.01")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_amount_or_zero(amount_str: str | None) -> Decimal:
    """Parse an amount, treating empty or malformed values as zero."""
    try:
        return parse_amount(amount_str)
    except ValueError:
        return Decimal("0")


def round2(value: Decimal | float | int) -> Decimal:
    """Round to two decimal places, halves toward positive infinity.

    -0.125 rounds to -0.12 and 0.125 to 0.13.
    """
    if not isinstance(value, Decimal):
        # str() keeps the shortest repr so 1.005 rounds like the literal
        value = Decimal(str(value))
    rounding = ROUND_HALF_UP if value >= 0 else ROUND_HALF_DOWN
    return value.quantize(CENT, rounding=rounding)


def format_thousands(value: float) -> str:
    """Format a currency value as $12K above a thousand, else $950."""
    if abs(value) >= 1000:
        return f"${value / 1000:.0f}K"
    return f"${value:.0f}"
