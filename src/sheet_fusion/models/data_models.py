"""Core data models for SheetFusion.

This module contains the dataclasses used throughout the application for
merge options, per-run results, cell style transfer and configuration.
"""

import logging
from copy import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from openpyxl.styles.numbers import FORMAT_GENERAL


@dataclass(frozen=True)
class MergeOptions:
    """Options for a single merge run.

    Attributes:
        input_files: Ordered spreadsheet paths to merge
        output_path: Path of the merged workbook
        sheet_name: Sheet to read from every file (None for the first sheet)
        start_row: 1-indexed row to start copying from in every file
            (None for auto mode: all rows of the first file, header skipped
            for the rest)
    """
    input_files: Sequence[Path]
    output_path: Path
    sheet_name: Optional[str] = None
    start_row: Optional[int] = None

    def __post_init__(self) -> None:
        """Normalize and validate merge options after initialization."""
        files = tuple(Path(f) for f in self.input_files)
        if not files:
            raise ValueError("input_files cannot be empty")
        object.__setattr__(self, "input_files", files)

        if not str(self.output_path).strip():
            raise ValueError("output_path cannot be empty")
        object.__setattr__(self, "output_path", Path(self.output_path))

        if self.sheet_name is not None and not self.sheet_name.strip():
            object.__setattr__(self, "sheet_name", None)

        if self.start_row is not None and self.start_row < 1:
            raise ValueError("start_row must be at least 1")

    @property
    def auto_mode(self) -> bool:
        """Whether the header-skipping auto policy applies."""
        return self.start_row is None


@dataclass(frozen=True)
class StyleDescriptor:
    """Workbook-independent description of a cell style.

    openpyxl registers styles per workbook, so a style id read from one
    workbook means nothing in another. The descriptor keeps the style
    objects themselves and re-registers fresh copies on the target cell.
    """
    font: Any
    fill: Any
    border: Any
    alignment: Any
    protection: Any
    number_format: str = FORMAT_GENERAL

    @classmethod
    def from_cell(cls, cell: Any) -> "StyleDescriptor":
        """Build a descriptor from a source cell."""
        return cls(
            font=copy(cell.font),
            fill=copy(cell.fill),
            border=copy(cell.border),
            alignment=copy(cell.alignment),
            protection=copy(cell.protection),
            number_format=cell.number_format or FORMAT_GENERAL,
        )

    @property
    def has_custom_number_format(self) -> bool:
        """Whether the style carries a number format other than General."""
        return self.number_format != FORMAT_GENERAL

    def apply_to(self, cell: Any) -> None:
        """Register this style in the cell's workbook and assign it."""
        cell.font = copy(self.font)
        cell.fill = copy(self.fill)
        cell.border = copy(self.border)
        cell.alignment = copy(self.alignment)
        cell.protection = copy(self.protection)
        cell.number_format = self.number_format


@dataclass
class FileMergeResult:
    """Outcome of merging one input file.

    Attributes:
        source_path: Path as given by the caller
        read_path: Path actually read (the converted copy for legacy files)
        sheet_name: Sheet the rows were read from
        rows_added: Rows copied from this file
        total_rows: Rows in the output after this file
        converted: Whether the file went through legacy conversion
        currency_cells_converted: Text cells rewritten as numbers
    """
    source_path: Path
    read_path: Path
    sheet_name: str
    rows_added: int
    total_rows: int
    converted: bool = False
    currency_cells_converted: int = 0

    def __post_init__(self) -> None:
        """Validate file result after initialization."""
        if not isinstance(self.source_path, Path):
            self.source_path = Path(self.source_path)
        if not isinstance(self.read_path, Path):
            self.read_path = Path(self.read_path)
        if self.rows_added < 0:
            raise ValueError("rows_added cannot be negative")


@dataclass
class MergeResult:
    """Outcome of a completed merge run."""
    output_path: Path
    files: List[FileMergeResult] = field(default_factory=list)
    total_rows: int = 0
    duration_seconds: float = 0.0

    @property
    def files_merged(self) -> int:
        return len(self.files)

    @property
    def currency_cells_converted(self) -> int:
        return sum(f.currency_cells_converted for f in self.files)


@dataclass
class ConversionConfig:
    """Configuration for legacy workbook conversion.

    Attributes:
        temp_dir: Directory for converted copies (None for the system default)
        suffix: Marker appended to the base name of converted copies
    """
    temp_dir: Optional[Path] = None
    suffix: str = "_converted"

    def __post_init__(self) -> None:
        """Validate conversion configuration after initialization."""
        if self.temp_dir is not None and not isinstance(self.temp_dir, Path):
            self.temp_dir = Path(self.temp_dir)

        if not self.suffix.strip():
            raise ValueError("suffix cannot be empty")


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level
        format: Log message format string
        file_enabled: Whether to log to file
        file_path: Path for log file
        console_enabled: Whether to log to the console
        structured_enabled: Whether to also write structured JSON logs
    """
    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_enabled: bool = False
    file_path: Path = Path("./logs/sheet_fusion.log")
    console_enabled: bool = True
    structured_enabled: bool = False

    def __post_init__(self) -> None:
        """Validate logging configuration after initialization."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")

        self.level = self.level.upper()

        if not isinstance(self.file_path, Path):
            self.file_path = Path(self.file_path)

    @property
    def log_level(self) -> int:
        """Get numeric logging level."""
        return getattr(logging, self.level)


@dataclass
class Config:
    """Main configuration for SheetFusion.

    Attributes:
        output_file: Default output path when the caller gives none
        output_sheet_name: Name of the single sheet in the merged workbook
        conversion: Legacy conversion configuration
        logging: Logging configuration
    """
    output_file: Path = Path("merged.xlsx")
    output_sheet_name: str = "MergedData"
    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.output_file, Path):
            self.output_file = Path(self.output_file)

        if not self.output_sheet_name.strip():
            raise ValueError("output_sheet_name cannot be empty")

        # Excel limits sheet titles to 31 characters
        if len(self.output_sheet_name) > 31:
            raise ValueError("output_sheet_name cannot exceed 31 characters")

    def build_merge_options(
        self,
        input_files: Sequence[Union[str, Path]],
        output_path: Optional[Union[str, Path]] = None,
        sheet_name: Optional[str] = None,
        start_row: Optional[int] = None,
    ) -> MergeOptions:
        """Build merge options, falling back to configured defaults.

        Args:
            input_files: Ordered input paths
            output_path: Output path (None for the configured default)
            sheet_name: Sheet to read (None or empty for the first sheet)
            start_row: Start row (None or 0 for auto mode)

        Returns:
            Validated MergeOptions
        """
        return MergeOptions(
            input_files=[Path(f) for f in input_files],
            output_path=Path(output_path) if output_path else self.output_file,
            sheet_name=sheet_name or None,
            start_row=start_row or None,
        )
