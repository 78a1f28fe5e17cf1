"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Optional

_THOUSANDS_COMMA = re.compile(r"^\d{1,3}(,\d{3})+$")
_THOUSANDS_DOT = re.compile(r"^\d{1,3}(\.\d{3}){2,}$")


def parse_amount(amount_str: str, decimal_comma: Optional[bool] = None) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles English and European formats:
    - "123.45", "1,234.56"
    - "123,45", "1 234,56", "1.234,56"
    - "-89,90", "89,90-", "+12"
    - "€123.45", "123,45 EUR"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string
        decimal_comma: Force the comma to be read as the decimal separator
            (True) or as a thousands separator (False). Detected when None.

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    original = str(amount_str)
    amount_str = original.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and codes
    amount_str = re.sub(r"[$€£¥A-Za-z]", "", amount_str)

    # Remove whitespace, including non-breaking spaces used as thousands separators
    amount_str = re.sub(r"[\s']", "", amount_str)

    # Trailing sign ("89,90-")
    if amount_str.endswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[:-1]
    if amount_str.startswith("-"):
        is_negative = not is_negative
        amount_str = amount_str[1:]
    elif amount_str.startswith("+"):
        amount_str = amount_str[1:]

    if "," in amount_str and "." in amount_str:
        # Whichever separator comes last is the decimal one
        if amount_str.rfind(",") > amount_str.rfind("."):
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        if decimal_comma is None:
            decimal_comma = not _THOUSANDS_COMMA.match(amount_str)
        if decimal_comma:
            amount_str = amount_str.replace(",", ".")
        else:
            amount_str = amount_str.replace(",", "")
    elif _THOUSANDS_DOT.match(amount_str):
        amount_str = amount_str.replace(".", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{original.strip()}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{original.strip()}'")
    return -amount if is_negative else amount


def format_amount(amount: Decimal, decimal_separator: str = ".") -> str:
    """Format an amount with 2 decimals and an explicit leading '-' when negative."""
    text = f"{amount:.2f}"
    if decimal_separator != ".":
        text = text.replace(".", decimal_separator)
    return text
