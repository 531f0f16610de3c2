"""Input file collection for SheetFusion.

Turns a directory or a comma-separated list into the ordered spreadsheet
paths a merge run reads.
"""

from .file_collector import FileCollectionError, FileCollector, is_legacy_format, is_supported_file

__all__ = ["FileCollector", "FileCollectionError", "is_legacy_format", "is_supported_file"]
