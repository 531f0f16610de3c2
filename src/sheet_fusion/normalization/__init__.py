"""Cell value normalization for SheetFusion.

Converts currency amounts stored as text into numeric values when the cell
is formatted as currency.
"""

from .currency import is_currency_format, parse_currency_text, should_convert_to_number

__all__ = ["is_currency_format", "parse_currency_text", "should_convert_to_number"]
