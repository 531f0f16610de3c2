"""Input file collection for SheetFusion.

Resolves the user's input specification, either a directory or a
comma-separated list of files, into the ordered list of spreadsheets to
merge.
"""

from pathlib import Path
from typing import List, Union

from sheet_fusion.utils.logger import get_processing_logger
from sheet_fusion.utils.logging_decorators import log_operation


class FileCollectionError(Exception):
    """Raised when the input specification cannot be resolved to files."""
    pass


MODERN_EXTENSIONS = frozenset({".xlsx"})
LEGACY_EXTENSIONS = frozenset({".xls"})
SUPPORTED_EXTENSIONS = MODERN_EXTENSIONS | LEGACY_EXTENSIONS


def is_supported_file(path: Union[str, Path]) -> bool:
    """Check whether a path has a supported spreadsheet extension."""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def is_legacy_format(path: Union[str, Path]) -> bool:
    """Check whether a path is a legacy (.xls) workbook."""
    return Path(path).suffix.lower() in LEGACY_EXTENSIONS


class FileCollector:
    """Collects spreadsheet files from a directory or an explicit list.

    Example:
        >>> collector = FileCollector()
        >>> collector.collect("jan.xlsx, feb.xls")
        [PosixPath('jan.xlsx'), PosixPath('feb.xls')]
    """

    def __init__(self):
        self.logger = get_processing_logger(__name__)

    @log_operation("collect_input_files")
    def collect(self, input_spec: str) -> List[Path]:
        """Resolve an input specification into ordered spreadsheet paths.

        A directory yields every supported file directly inside it, ordered
        by name. Anything else is read as a comma-separated list whose order
        and duplicates are kept.

        Args:
            input_spec: Directory path or comma-separated file paths

        Returns:
            Ordered list of spreadsheet paths

        Raises:
            FileCollectionError: If no files are found or an entry is invalid
        """
        if not input_spec or not input_spec.strip():
            raise FileCollectionError("No input specified")

        candidate = Path(input_spec.strip())
        if candidate.is_dir():
            files = self._collect_from_directory(candidate)
        else:
            files = self._collect_from_list(input_spec)

        self.logger.info(
            f"Collected {len(files)} spreadsheet file(s) from '{input_spec}'",
            extra={"structured": {"operation": "files_collected", "file_count": len(files)}}
        )
        return files

    def _collect_from_directory(self, directory: Path) -> List[Path]:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise FileCollectionError(f"Failed to read directory {directory}: {e}") from e

        files = [entry for entry in entries if entry.is_file() and is_supported_file(entry)]

        if not files:
            raise FileCollectionError(f"No Excel files found in directory: {directory}")

        return files

    def _collect_from_list(self, input_spec: str) -> List[Path]:
        files: List[Path] = []

        for part in input_spec.split(","):
            name = part.strip()
            if not name:
                continue

            path = Path(name)
            if not path.exists():
                raise FileCollectionError(f"File not found: {name}")

            if not path.is_file():
                raise FileCollectionError(f"Not a file: {name}")

            if not is_supported_file(path):
                supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
                raise FileCollectionError(
                    f"Not a supported Excel file: {name} (supported: {supported})"
                )

            files.append(path)

        if not files:
            raise FileCollectionError("No valid Excel files specified")

        return files
