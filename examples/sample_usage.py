#!/usr/bin/env python3
"""Sample usage examples for SheetFusion.

This script demonstrates merging workbooks both programmatically and
through the command-line interface.

Run this script to see example outputs:
    python examples/sample_usage.py
"""

import subprocess
import sys
import tempfile
from pathlib import Path

import openpyxl
import pandas as pd

from sheet_fusion import FileCollector, MergeEngine, MergeOptions
from sheet_fusion.config.config_manager import config_manager


def create_monthly_files(directory: Path) -> list:
    """Create three monthly sales workbooks sharing one header."""
    paths = []
    for month_index, month in enumerate(["01_january", "02_february", "03_march"], start=1):
        df = pd.DataFrame({
            'Region': ['North', 'South', 'East'],
            'Rep': [f'Rep_{month_index}{i}' for i in range(3)],
            'Units': [10 * month_index + i for i in range(3)],
        })
        path = directory / f"{month}.xlsx"
        df.to_excel(path, sheet_name='Sales', index=False)
        paths.append(path)
    return paths


def create_ledger_file(directory: Path) -> Path:
    """Create a workbook whose amounts are stored as currency text."""
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = 'Sales'
    worksheet.append(['Region', 'Rep', 'Units'])
    for row in (['West', 'Ledger', ' $1,250 '], ['West', 'Refund', ' $(300)']):
        worksheet.append(row)
    for cell in worksheet['C'][1:]:
        cell.number_format = '"$"#,##0.00'
    path = directory / "04_ledger.xlsx"
    workbook.save(path)
    return path


def example_1_merge_directory(directory: Path) -> None:
    """Example 1: Merge every workbook in a directory."""
    print("\n" + "=" * 80)
    print("EXAMPLE 1: Merge a Directory")
    print("=" * 80)

    files = FileCollector().collect(str(directory))
    options = MergeOptions(input_files=files, output_path=directory / "merged.xlsx")

    result = MergeEngine().merge(options)

    print(f"Merged {result.files_merged} files into {result.output_path}")
    print(f"Total rows: {result.total_rows}")
    print(f"Currency cells converted: {result.currency_cells_converted}")
    for file_result in result.files:
        print(f"  {file_result.source_path.name}: +{file_result.rows_added} rows")


def example_2_uniform_start_row(directory: Path, files: list) -> None:
    """Example 2: Skip the header of every file, including the first."""
    print("\n" + "=" * 80)
    print("EXAMPLE 2: Uniform Start Row")
    print("=" * 80)

    config = config_manager.load_config()
    options = config.build_merge_options(files, directory / "data_only.xlsx", sheet_name="Sales", start_row=2)

    result = MergeEngine(output_sheet_name=config.output_sheet_name).merge(options)

    print(f"Rows without any header: {result.total_rows}")


def example_3_cli_usage(directory: Path) -> None:
    """Example 3: The same merge through the CLI."""
    print("\n" + "=" * 80)
    print("EXAMPLE 3: Command-Line Usage")
    print("=" * 80)

    command = [
        sys.executable, "-m", "sheet_fusion.main",
        "merge", "-i", str(directory), "-o", str(directory / "cli_merged.xlsx"),
    ]
    print("$ " + " ".join(command[2:]))
    completed = subprocess.run(command, capture_output=True, text=True)
    print(completed.stdout)
    if completed.returncode != 0:
        print(completed.stderr)


def main() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        directory = Path(tmpdir)
        files = create_monthly_files(directory)
        create_ledger_file(directory)

        example_1_merge_directory(directory)
        example_2_uniform_start_row(directory, files)

        (directory / "merged.xlsx").unlink()
        (directory / "data_only.xlsx").unlink()
        example_3_cli_usage(directory)


if __name__ == "__main__":
    main()
