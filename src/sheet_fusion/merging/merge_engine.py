"""Merge engine for SheetFusion.

This module merges the rows of many workbooks into a single output sheet:
- Per-file sheet resolution (named sheet or first sheet)
- Header skipping in auto mode, or a uniform start row
- Per-cell style transfer between workbooks
- Currency text normalization
- All-or-nothing persistence of the output workbook
"""

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, FrozenSet, List, Optional, Sequence, Tuple, TypeVar

import openpyxl
from openpyxl.cell.cell import TYPE_FORMULA
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from sheet_fusion.collection.file_collector import is_legacy_format
from sheet_fusion.conversion.legacy_converter import (
    LegacyConversionError,
    LegacyConverter,
    cleanup_temp_files,
)
from sheet_fusion.models.data_models import FileMergeResult, MergeOptions, MergeResult, StyleDescriptor
from sheet_fusion.normalization.currency import parse_currency_text, should_convert_to_number
from sheet_fusion.utils.correlation import CorrelationContext
from sheet_fusion.utils.logger import get_processing_logger
from sheet_fusion.utils.logging_decorators import log_operation, operation_context
from sheet_fusion.utils.metrics import get_metrics_collector


T = TypeVar("T")

ProgressCallback = Callable[[FileMergeResult], None]
StartCallback = Callable[[int, int, Path], None]


class MergeError(Exception):
    """Raised when a merge run fails.

    Attributes:
        file_path: Input or output file involved, if known
        sheet_name: Sheet involved, if known
    """

    def __init__(self, message: str, file_path: Optional[Path] = None, sheet_name: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path
        self.sheet_name = sheet_name


def select_rows(rows: Sequence[T], start_row: Optional[int], is_first_file: bool) -> Sequence[T]:
    """Pick the source rows a file contributes.

    Args:
        rows: All rows of the resolved sheet
        start_row: 1-indexed start row applied to every file, or None for auto mode
        is_first_file: Whether this is the first file of the run

    Returns:
        The rows to copy; empty when start_row is past the last row
    """
    if start_row is not None:
        return rows[start_row - 1:]

    if is_first_file:
        return rows

    # Auto mode: the first row of every later file repeats the header
    return rows[1:]


@dataclass
class MergeSession:
    """State owned by a single merge run.

    Attributes:
        options: Options of the run
        output: Output workbook
        output_sheet: The single sheet rows are written to
        current_row: Next output row to write (1-indexed)
        temp_files: Converted copies to remove when the run ends
        file_results: Results of the files merged so far
    """
    options: MergeOptions
    output: Workbook
    output_sheet: Worksheet
    current_row: int = 1
    temp_files: List[Path] = field(default_factory=list)
    file_results: List[FileMergeResult] = field(default_factory=list)

    @property
    def rows_written(self) -> int:
        return self.current_row - 1


class MergeEngine:
    """Merges spreadsheet files into one single-sheet workbook.

    Example:
        >>> engine = MergeEngine()
        >>> options = MergeOptions(input_files=["jan.xlsx", "feb.xls"], output_path="q1.xlsx")
        >>> result = engine.merge(options)
        >>> print(result.total_rows)
    """

    DEFAULT_OUTPUT_SHEET_NAME = "MergedData"

    def __init__(
        self,
        output_sheet_name: str = DEFAULT_OUTPUT_SHEET_NAME,
        converter: Optional[LegacyConverter] = None,
        progress_callback: Optional[ProgressCallback] = None,
        start_callback: Optional[StartCallback] = None
    ):
        """Initialize merge engine.

        Args:
            output_sheet_name: Name of the merged sheet
            converter: Converter for legacy inputs (default: system temp dir)
            progress_callback: Called with each file's result as it completes
            start_callback: Called with (file number, file count, path) before
                a file is converted or opened
        """
        self.output_sheet_name = output_sheet_name
        self.converter = converter or LegacyConverter()
        self.progress_callback = progress_callback
        self.start_callback = start_callback
        self.logger = get_processing_logger(__name__)

    @log_operation("merge_workbooks", log_args=False)
    def merge(self, options: MergeOptions) -> MergeResult:
        """Merge every input file into the output workbook and save it.

        The output is written once, after every input was merged. Converted
        temporary copies are removed whether the run succeeds or fails.

        Args:
            options: Merge options

        Returns:
            MergeResult describing the run

        Raises:
            MergeError: If any input cannot be merged or the output cannot be saved
        """
        started = time.time()

        with CorrelationContext(), operation_context(
            "merge_run",
            self.logger,
            file_count=len(options.input_files),
            output_path=str(options.output_path),
            sheet_name=options.sheet_name,
            start_row=options.start_row,
        ) as metrics:
            session = self._create_session(options)

            try:
                for file_index, source_path in enumerate(options.input_files):
                    self._merge_file(session, file_index, source_path)

                self._finalize_output(session)
                self._save_output(session.output, options.output_path)
            except MergeError as e:
                self.logger.log_error(
                    type(e).__name__, str(e), file_path=e.file_path, sheet_name=e.sheet_name, exc_info=False
                )
                raise
            finally:
                session.output.close()
                cleanup_temp_files(session.temp_files)

            if metrics:
                metrics.add_metadata("total_rows", session.rows_written)

        result = MergeResult(
            output_path=options.output_path,
            files=list(session.file_results),
            total_rows=session.rows_written,
            duration_seconds=time.time() - started,
        )
        self.logger.log_merge_complete(result)
        self.logger.debug(
            "Merge operation metrics",
            extra={"structured": get_metrics_collector().get_metrics_summary()}
        )
        return result

    def _create_session(self, options: MergeOptions) -> MergeSession:
        output = openpyxl.Workbook()

        if output.active.title == self.output_sheet_name:
            output_sheet = output.active
        else:
            output_sheet = output.create_sheet(title=self.output_sheet_name)

        return MergeSession(options=options, output=output, output_sheet=output_sheet)

    def _merge_file(self, session: MergeSession, file_index: int, source_path: Path) -> FileMergeResult:
        """Copy the selected rows of one input file into the output sheet."""
        options = session.options
        converted = is_legacy_format(source_path)
        read_path = source_path

        self.logger.info(f"Processing file {file_index + 1}/{len(options.input_files)}: {source_path}")
        if self.start_callback:
            self.start_callback(file_index + 1, len(options.input_files), source_path)

        if converted:
            try:
                read_path = self.converter.convert(source_path)
            except LegacyConversionError as e:
                raise MergeError(f"Failed to convert {source_path}: {e}", file_path=source_path) from e
            session.temp_files.append(read_path)

        workbook = self._open_workbook(read_path, source_path)
        try:
            worksheet = self._resolve_sheet(workbook, options.sheet_name, source_path)
            formula_cells = self._formula_cells(read_path, worksheet.title, source_path)
            rows = self._read_rows(worksheet)
            selected = select_rows(rows, options.start_row, is_first_file=file_index == 0)

            if not options.auto_mode and options.start_row > len(rows):
                self.logger.info(
                    f"Start row {options.start_row} is past the last row ({len(rows)}) "
                    f"of '{worksheet.title}' in {source_path}; no rows added"
                )

            first_row = session.current_row
            currency_cells = 0
            for row in selected:
                currency_cells += self._copy_row(session, row, formula_cells, source_path, worksheet.title)
                session.current_row += 1
        finally:
            workbook.close()

        result = FileMergeResult(
            source_path=source_path,
            read_path=read_path,
            sheet_name=worksheet.title,
            rows_added=session.current_row - first_row,
            total_rows=session.rows_written,
            converted=converted,
            currency_cells_converted=currency_cells,
        )
        session.file_results.append(result)
        self.logger.log_file_merged(result)

        if self.progress_callback:
            self.progress_callback(result)

        return result

    def _open_workbook(self, read_path: Path, source_path: Path) -> Workbook:
        try:
            # Cached results are read in place of formulas
            return openpyxl.load_workbook(read_path, data_only=True)
        except Exception as e:
            raise MergeError(f"Failed to open file {source_path}: {e}", file_path=source_path) from e

    def _formula_cells(self, read_path: Path, sheet_title: str, source_path: Path) -> FrozenSet[Tuple[int, int]]:
        """Find the (row, column) of every formula cell in a sheet.

        Cached results are read in place of formulas, which makes a formula
        returning text look like a text cell.
        """
        try:
            workbook = openpyxl.load_workbook(read_path, read_only=True)
        except Exception as e:
            raise MergeError(f"Failed to open file {source_path}: {e}", file_path=source_path) from e

        try:
            return frozenset(
                (cell.row, cell.column)
                for row in workbook[sheet_title].iter_rows()
                for cell in row
                if cell.data_type == TYPE_FORMULA
            )
        finally:
            workbook.close()

    def _resolve_sheet(self, workbook: Workbook, sheet_name: Optional[str], source_path: Path) -> Worksheet:
        worksheets = {ws.title: ws for ws in workbook.worksheets}

        if sheet_name:
            if sheet_name not in worksheets:
                raise MergeError(
                    f"Sheet '{sheet_name}' not found in file {source_path}",
                    file_path=source_path,
                    sheet_name=sheet_name
                )
            return worksheets[sheet_name]

        if not workbook.worksheets:
            raise MergeError(f"No sheets found in file {source_path}", file_path=source_path)

        return workbook.worksheets[0]

    def _read_rows(self, worksheet: Worksheet) -> List[tuple]:
        """Read every row of a sheet, without trailing rows that hold no values."""
        rows = list(worksheet.iter_rows())
        while rows and all(cell.value is None for cell in rows[-1]):
            rows.pop()
        return rows

    def _copy_row(
        self,
        session: MergeSession,
        row: Sequence[Any],
        formula_cells: FrozenSet[Tuple[int, int]],
        source_path: Path,
        sheet_name: str
    ) -> int:
        """Copy one source row to the current output row.

        Formula cells keep their cached value as is.

        Returns:
            Number of currency text cells written as numbers
        """
        currency_cells = 0

        for column, cell in enumerate(row, start=1):
            try:
                target = session.output_sheet.cell(row=session.current_row, column=column)

                style = None
                if cell.has_style:
                    style = StyleDescriptor.from_cell(cell)
                    style.apply_to(target)

                value = cell.value
                if value is None:
                    continue

                cell_type = TYPE_FORMULA if (cell.row, cell.column) in formula_cells else cell.data_type
                if (
                    style is not None
                    and style.has_custom_number_format
                    and should_convert_to_number(cell_type, style.number_format, value)
                ):
                    amount, _ = parse_currency_text(value)
                    target.value = amount
                    currency_cells += 1
                else:
                    target.value = value
            except (ValueError, TypeError, IllegalCharacterError) as e:
                raise MergeError(
                    f"Failed to copy cell (column {column}) of sheet '{sheet_name}' in {source_path} "
                    f"to output row {session.current_row}: {e}",
                    file_path=source_path,
                    sheet_name=sheet_name
                ) from e

        return currency_cells

    def _finalize_output(self, session: MergeSession) -> None:
        """Leave the merged sheet as the only and active sheet."""
        output = session.output
        for worksheet in list(output.worksheets):
            if worksheet is not session.output_sheet:
                output.remove(worksheet)
        output.active = session.output_sheet

    def _save_output(self, output: Workbook, output_path: Path) -> None:
        """Save the output, replacing any existing file only on success."""
        partial_path = output_path.with_name(f".{output_path.stem}.{os.getpid()}.partial.xlsx")

        with operation_context("save_output", self.logger, output_path=str(output_path)):
            try:
                output.save(partial_path)
                partial_path.replace(output_path)
            except Exception as e:
                cleanup_temp_files([partial_path])
                raise MergeError(f"Failed to save output file {output_path}: {e}", file_path=output_path) from e
