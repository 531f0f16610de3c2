"""Pytest configuration and shared fixtures for SheetFusion tests."""

import logging
import os
import tempfile
import pytest
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence

import openpyxl
import pandas as pd
import yaml
from openpyxl.styles import Font


CURRENCY_FORMAT = '"$"#,##0.00'


def write_workbook(
    path: Path,
    sheets: Dict[str, Sequence[Sequence[Any]]],
    bold_header: bool = True,
    number_formats: Optional[Dict[str, str]] = None
) -> Path:
    """Write a workbook with one entry per sheet.

    Args:
        path: Destination .xlsx path
        sheets: Sheet name -> rows of cell values
        bold_header: Whether to make the first row bold
        number_formats: Cell coordinate -> number format, applied on every sheet
    """
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)

    for name, rows in sheets.items():
        worksheet = workbook.create_sheet(title=name)
        for row in rows:
            worksheet.append(list(row))

        if bold_header and rows:
            for cell in worksheet[1]:
                cell.font = Font(bold=True)

        for coordinate, number_format in (number_formats or {}).items():
            worksheet[coordinate].number_format = number_format

    workbook.save(path)
    workbook.close()
    return path


def read_rows(path: Path, sheet_name: Optional[str] = None) -> List[tuple]:
    """Read every row of a workbook sheet as value tuples."""
    workbook = openpyxl.load_workbook(path)
    try:
        worksheet = workbook[sheet_name] if sheet_name else workbook.active
        return [tuple(row) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def restore_logging():
    """Remove root logger handlers installed by setup_logging during a test."""
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        # pytest manages its own capture handlers per test phase
        if not type(handler).__module__.startswith("_pytest"):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


@pytest.fixture
def sample_config_dict() -> dict:
    """Sample configuration dictionary for testing."""
    return {
        "merge": {
            "output_file": "combined.xlsx",
            "output_sheet_name": "Combined",
        },
        "conversion": {
            "temp_dir": None,
            "suffix": "_upgraded",
        },
        "logging": {
            "level": "INFO",
            "file": {
                "enabled": False,
                "path": "./logs/test.log",
            },
            "console": {
                "enabled": False,
            },
        },
    }


@pytest.fixture
def sample_config_file(temp_dir: Path, sample_config_dict: dict) -> Path:
    """Create a sample configuration file for testing."""
    config_file = temp_dir / "test_config.yaml"
    with open(config_file, 'w') as f:
        yaml.dump(sample_config_dict, f)
    return config_file


@pytest.fixture
def sample_excel_data() -> pd.DataFrame:
    """Create sample sales data for testing."""
    return pd.DataFrame({
        'Region': ['North', 'South', 'East', 'West'],
        'Rep': ['Alice', 'Bob', 'Charlie', 'Diana'],
        'Units': [12, 7, 30, 18],
    })


@pytest.fixture
def sample_excel_file(temp_dir: Path, sample_excel_data: pd.DataFrame) -> Path:
    """Create a sample Excel file with pandas for testing."""
    excel_file = temp_dir / "sales.xlsx"
    sample_excel_data.to_excel(excel_file, index=False, sheet_name="Sales")
    return excel_file


@pytest.fixture
def january_file(temp_dir: Path) -> Path:
    """Workbook with a header row and two data rows."""
    return write_workbook(temp_dir / "january.xlsx", {
        "Sales": [
            ["Region", "Rep", "Amount"],
            ["North", "Alice", 100],
            ["South", "Bob", 200],
        ],
    })


@pytest.fixture
def february_file(temp_dir: Path) -> Path:
    """Second workbook with the same header and two data rows."""
    return write_workbook(temp_dir / "february.xlsx", {
        "Sales": [
            ["Region", "Rep", "Amount"],
            ["East", "Charlie", 300],
            ["West", "Diana", 400],
        ],
    })


@pytest.fixture
def currency_file(temp_dir: Path) -> Path:
    """Workbook with currency text cells under a currency number format."""
    return write_workbook(
        temp_dir / "ledger.xlsx",
        {
            "Ledger": [
                ["Account", "Balance"],
                ["Cash", " $50,000 "],
                ["Loan", " $(1,234)"],
                ["Note", "$abc"],
            ],
        },
        number_formats={"B2": CURRENCY_FORMAT, "B3": CURRENCY_FORMAT, "B4": CURRENCY_FORMAT},
    )


@pytest.fixture
def invalid_excel_file(temp_dir: Path) -> Path:
    """Create an invalid Excel file for testing."""
    invalid_file = temp_dir / "invalid.xlsx"
    invalid_file.write_text("This is not an Excel file")
    return invalid_file


@pytest.fixture
def env_override():
    """Context manager for environment variable testing."""
    class EnvOverride:
        def __init__(self):
            self.original_env = {}

        def set(self, key: str, value: str):
            if key not in self.original_env:
                self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

        def restore(self):
            for key, value in self.original_env.items():
                if value is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = value
            self.original_env.clear()

    override = EnvOverride()
    yield override
    override.restore()
