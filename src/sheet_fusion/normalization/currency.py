"""Currency text normalization for SheetFusion.

Spreadsheets exported from accounting systems often store amounts such as
``" $(1,234)"`` as text while formatting the cell with a currency number
format. These helpers decide whether such a cell should be written back as
a real number and parse the amount.
"""

import re
from typing import Any, Optional, Tuple

from openpyxl.cell.cell import TYPE_INLINE, TYPE_STRING


CURRENCY_SYMBOL = "$"
ESCAPED_CURRENCY_SYMBOL = "\\$"

# Only text cells are candidates; numbers, dates, booleans, formulas and
# errors keep their value untouched.
TEXT_CELL_TYPES = frozenset({TYPE_STRING, TYPE_INLINE})

_DECIMAL_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def is_currency_format(number_format: Optional[str]) -> bool:
    """Check whether a number format string is a currency format.

    Args:
        number_format: Excel number format code

    Returns:
        True if the format contains a plain or escaped currency symbol
    """
    if not number_format:
        return False
    return CURRENCY_SYMBOL in number_format or ESCAPED_CURRENCY_SYMBOL in number_format


def parse_currency_text(text: Any) -> Tuple[float, bool]:
    """Parse a currency text value into a number.

    Examples:
        >>> parse_currency_text(" $50,000 ")
        (50000.0, True)
        >>> parse_currency_text(" $(1,234)")
        (-1234.0, True)
        >>> parse_currency_text("$-")
        (0.0, True)

    Args:
        text: Cell text

    Returns:
        Tuple of (value, ok); value is 0.0 whenever ok is False
    """
    if not isinstance(text, str):
        return 0.0, False

    text = text.strip()
    if not text:
        return 0.0, False

    if CURRENCY_SYMBOL not in text:
        return 0.0, False

    text = text.replace(CURRENCY_SYMBOL, "").strip()

    # Accounting convention: (1,234) is a negative amount
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text.strip("()").strip()

    text = text.replace(",", "")

    # A lone dash is how accounting formats render zero
    if text in ("-", ""):
        return 0.0, True

    if not _DECIMAL_PATTERN.match(text):
        return 0.0, False

    value = float(text)
    if is_negative:
        value = -value

    return value, True


def should_convert_to_number(cell_type: Optional[str], number_format: Optional[str], value: Any) -> bool:
    """Decide whether a cell's text should be rewritten as a number.

    All three conditions must hold: the cell is a text cell, its number
    format is a currency format, and the text parses as an amount.

    Args:
        cell_type: openpyxl cell data type
        number_format: Number format code of the cell's style
        value: Cell value

    Returns:
        True if the value should be written as a number
    """
    if cell_type not in TEXT_CELL_TYPES:
        return False

    if not is_currency_format(number_format):
        return False

    _, ok = parse_currency_text(value)
    return ok
