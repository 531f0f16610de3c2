"""SheetFusion - Excel File Merger.

Merges the rows of many Excel workbooks into a single worksheet, upgrading
legacy .xls inputs on the fly, keeping cell styles and turning currency
text into numbers.
"""

__version__ = "1.0.0"

from sheet_fusion.models.data_models import (
    Config,
    FileMergeResult,
    MergeOptions,
    MergeResult,
    StyleDescriptor,
)
from sheet_fusion.collection.file_collector import FileCollectionError, FileCollector
from sheet_fusion.conversion.legacy_converter import LegacyConversionError, LegacyConverter
from sheet_fusion.merging.merge_engine import MergeEngine, MergeError
from sheet_fusion.normalization.currency import (
    is_currency_format,
    parse_currency_text,
    should_convert_to_number,
)

__all__ = [
    "Config",
    "FileMergeResult",
    "MergeOptions",
    "MergeResult",
    "StyleDescriptor",
    "FileCollector",
    "FileCollectionError",
    "LegacyConverter",
    "LegacyConversionError",
    "MergeEngine",
    "MergeError",
    "is_currency_format",
    "parse_currency_text",
    "should_convert_to_number",
]
