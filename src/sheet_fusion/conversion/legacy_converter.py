"""Legacy workbook conversion for SheetFusion.

Legacy ``.xls`` workbooks are read with xlrd and re-emitted as temporary
``.xlsx`` copies so the merge engine only ever reads one format. Sheet
names, sheet order and cell values are kept; legacy styles are not.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional, Set, Union

import openpyxl
import xlrd
from xlrd.xldate import XLDateError, xldate_as_datetime

from sheet_fusion.utils.logger import get_processing_logger
from sheet_fusion.utils.logging_decorators import log_operation, operation_context


class LegacyConversionError(Exception):
    """Raised when a legacy workbook cannot be converted."""

    def __init__(self, message: str, file_path: Optional[Path] = None):
        super().__init__(message)
        self.file_path = file_path


_SKIPPED_CELL_TYPES = frozenset({xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK})


def _cell_value(cell: Any, datemode: int) -> Any:
    """Translate an xlrd cell into the value openpyxl should store."""
    if cell.ctype == xlrd.XL_CELL_NUMBER:
        value = float(cell.value)
        return int(value) if value.is_integer() else value

    if cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xldate_as_datetime(cell.value, datemode)
        except (XLDateError, ValueError, OverflowError):
            return cell.value

    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)

    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#N/A")

    return cell.value


class LegacyConverter:
    """Converts legacy .xls workbooks into temporary .xlsx copies.

    Converted copies are named ``<stem><suffix>_<pid>.xlsx`` inside the
    temporary directory. The caller owns the returned paths and removes
    them with ``cleanup_temp_files`` once it is done reading them.

    Example:
        >>> converter = LegacyConverter()
        >>> xlsx_path = converter.convert("report.xls")
    """

    def __init__(self, temp_dir: Optional[Union[str, Path]] = None, suffix: str = "_converted"):
        """Initialize legacy converter.

        Args:
            temp_dir: Directory for converted copies (None for the system temp dir)
            suffix: Marker appended to the base name of converted copies
        """
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.suffix = suffix
        self.logger = get_processing_logger(__name__)
        self._issued_paths: Set[Path] = set()

    @log_operation("convert_legacy_workbook")
    def convert(self, xls_path: Union[str, Path]) -> Path:
        """Convert a legacy workbook to a temporary modern workbook.

        Args:
            xls_path: Path to the .xls file

        Returns:
            Path to the converted .xlsx copy

        Raises:
            LegacyConversionError: If the workbook cannot be read, rebuilt or saved
        """
        xls_path = Path(xls_path)

        with operation_context("legacy_conversion", self.logger, file_path=str(xls_path)) as metrics:
            try:
                book = xlrd.open_workbook(str(xls_path))
            except Exception as e:
                raise LegacyConversionError(f"Failed to open .xls file {xls_path}: {e}", xls_path) from e

            try:
                workbook = self._rebuild_workbook(book, xls_path)
            finally:
                book.release_resources()

            target = self._temp_path_for(xls_path)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                workbook.save(target)
            except Exception as e:
                cleanup_temp_files([target])
                raise LegacyConversionError(
                    f"Failed to save converted copy of {xls_path} to {target}: {e}", xls_path
                ) from e
            finally:
                workbook.close()

            if metrics:
                metrics.add_metadata("sheet_count", book.nsheets)
                metrics.add_metadata("converted_path", str(target))

        self.logger.log_conversion(xls_path, target, book.nsheets)
        return target

    def _rebuild_workbook(self, book: Any, xls_path: Path) -> openpyxl.Workbook:
        workbook = openpyxl.Workbook()

        for sheet_index in range(book.nsheets):
            sheet = book.sheet_by_index(sheet_index)

            try:
                if sheet_index == 0:
                    # Reuse the default sheet so no empty placeholder is left behind
                    worksheet = workbook.active
                    worksheet.title = sheet.name
                else:
                    worksheet = workbook.create_sheet(title=sheet.name)
            except ValueError as e:
                raise LegacyConversionError(
                    f"Failed to create sheet '{sheet.name}' for {xls_path}: {e}", xls_path
                ) from e

            self._copy_sheet(sheet, worksheet, book.datemode, xls_path)

        return workbook

    def _copy_sheet(self, sheet: Any, worksheet: Any, datemode: int, xls_path: Path) -> None:
        for row_index in range(sheet.nrows):
            row_length = sheet.row_len(row_index)
            if row_length == 0:
                continue

            for col_index in range(row_length):
                cell = sheet.cell(row_index, col_index)
                if cell.ctype in _SKIPPED_CELL_TYPES:
                    continue

                try:
                    worksheet.cell(row=row_index + 1, column=col_index + 1, value=_cell_value(cell, datemode))
                except Exception as e:
                    raise LegacyConversionError(
                        f"Failed to copy cell ({row_index + 1}, {col_index + 1}) of sheet "
                        f"'{sheet.name}' in {xls_path}: {e}",
                        xls_path
                    ) from e

    def _temp_path_for(self, xls_path: Path) -> Path:
        """Pick the temporary path for a converted copy.

        Two legacy files sharing a base name within one run get distinct
        paths.
        """
        base = f"{xls_path.stem}{self.suffix}_{os.getpid()}"
        target = self.temp_dir / f"{base}.xlsx"

        counter = 2
        while target in self._issued_paths:
            target = self.temp_dir / f"{base}_{counter}.xlsx"
            counter += 1

        self._issued_paths.add(target)
        return target


def cleanup_temp_files(paths: Iterable[Union[str, Path]]) -> None:
    """Remove temporary files, ignoring any failure.

    Args:
        paths: Files to remove
    """
    logger = get_processing_logger(__name__)
    for path in paths:
        try:
            Path(path).unlink()
        except OSError as e:
            logger.debug(f"Could not remove temporary file {path}: {e}")
