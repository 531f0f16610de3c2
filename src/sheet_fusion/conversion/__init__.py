"""Legacy workbook conversion for SheetFusion.

Upgrades .xls workbooks to temporary .xlsx copies before merging.
"""

from .legacy_converter import LegacyConversionError, LegacyConverter, cleanup_temp_files

__all__ = ["LegacyConverter", "LegacyConversionError", "cleanup_temp_files"]
