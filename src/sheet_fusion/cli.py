"""Command-line interface for SheetFusion.

This module provides the CLI with support for:
- Merging a directory or a list of spreadsheet files
- Previewing a workbook's first rows
- Configuration validation
"""

import dataclasses
import sys
from pathlib import Path
from typing import Optional

import click
import pandas as pd

from sheet_fusion import __version__
from sheet_fusion.collection.file_collector import FileCollector, is_legacy_format
from sheet_fusion.config.config_manager import config_manager
from sheet_fusion.conversion.legacy_converter import LegacyConverter
from sheet_fusion.merging.merge_engine import MergeEngine
from sheet_fusion.models.data_models import Config, FileMergeResult
from sheet_fusion.utils.logger import setup_logging


def _load_config(ctx: click.Context) -> Config:
    """Load configuration and set up logging for a subcommand."""
    config = config_manager.load_config(ctx.obj.get('config_path'))

    logging_config = config.logging
    if ctx.obj.get('verbose'):
        logging_config = dataclasses.replace(logging_config, level="INFO")
    setup_logging(logging_config)

    return config


@click.group(invoke_without_command=True)
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Log progress details')
@click.option('--version', is_flag=True, help='Show version information')
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool, version: bool) -> None:
    """SheetFusion - Excel File Merger.

    Merges the rows of many Excel workbooks (.xlsx and .xls) into a single
    worksheet, keeping cell styles and turning currency text into numbers.
    """
    if version:
        click.echo(f"SheetFusion v{__version__}")
        click.echo("Excel file merger tool")
        ctx.exit()

    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.option('--input', '-i', 'input_spec', required=True,
              help='Comma-separated list of Excel files OR directory path')
@click.option('--output', '-o', type=click.Path(path_type=Path),
              help='Output filename (default: merged.xlsx)')
@click.option('--sheet', '-s', default='', help='Specific sheet name to merge (default: first sheet)')
@click.option('--start-row', '-r', type=click.IntRange(min=0), default=0,
              help='Row number to start merging from (1-indexed, default: auto)')
@click.pass_context
def merge(ctx: click.Context, input_spec: str, output: Optional[Path], sheet: str, start_row: int) -> None:
    """Merge Excel files into a single worksheet.

    In auto mode every row of the first file is kept and the first (header)
    row of every later file is skipped. With --start-row every file is read
    from that row on.

    \b
    Examples:
      sheet-fusion merge -i "file1.xlsx,file2.xlsx" -o result.xlsx
      sheet-fusion merge -i /path/to/directory -o combined.xlsx
      sheet-fusion merge -i "data1.xlsx,data2.xls" -s Sales -o sales.xlsx
      sheet-fusion merge -i "file1.xlsx,file2.xlsx" -r 3 -o merged.xlsx
    """
    try:
        config = _load_config(ctx)

        click.echo("SheetFusion - Excel File Merger")
        click.echo("================================")
        click.echo()

        files = FileCollector().collect(input_spec)
        options = config.build_merge_options(files, output, sheet, start_row)

        click.echo(f"Found {len(files)} Excel file(s) to merge:")
        for i, file_path in enumerate(files, 1):
            click.echo(f"  {i}. {file_path}")
        click.echo()

        if options.sheet_name:
            click.echo(f"Target sheet: {options.sheet_name}")
        else:
            click.echo("Target sheet: First sheet in each file")
        if options.auto_mode:
            click.echo("Start row: Auto-detect (skip headers for subsequent files)")
        else:
            click.echo(f"Start row: {options.start_row}")
        click.echo(f"Output file: {options.output_path}")
        click.echo()

        progress = _ProgressPrinter()
        engine = MergeEngine(
            output_sheet_name=config.output_sheet_name,
            converter=LegacyConverter(
                temp_dir=config.conversion.temp_dir,
                suffix=config.conversion.suffix
            ),
            progress_callback=progress,
            start_callback=progress.file_started,
        )
        result = engine.merge(options)

        click.echo()
        click.echo(f"✓ Successfully merged {result.files_merged} files into {result.output_path}")
        click.echo(f"  Total rows: {result.total_rows}")
        if result.currency_cells_converted:
            click.echo(f"  Currency cells converted to numbers: {result.currency_cells_converted}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


class _ProgressPrinter:
    """Echoes per-file progress as the merge engine reports it."""

    def file_started(self, file_number: int, file_count: int, source_path: Path) -> None:
        click.echo(f"Processing file {file_number}/{file_count}: {source_path}")

    def __call__(self, result: FileMergeResult) -> None:
        if result.converted:
            click.echo("  ✓ Converted .xls to .xlsx")
        click.echo(f"  Added {result.rows_added} rows (total rows now: {result.total_rows})")


@main.command()
@click.argument('file_path', type=click.Path(exists=True, path_type=Path))
@click.option('--sheet', '-s', default=None, help='Sheet to preview (default: first sheet)')
@click.option('--max-rows', default=10, type=click.IntRange(min=1), help='Maximum rows to show')
@click.pass_context
def preview(ctx: click.Context, file_path: Path, sheet: Optional[str], max_rows: int) -> None:
    """Preview the first rows of a workbook.

    Useful to check a merged output, or to pick a --start-row for inputs.

    FILE_PATH: Path to the Excel file to preview
    """
    try:
        _load_config(ctx)

        engine = 'xlrd' if is_legacy_format(file_path) else 'openpyxl'
        df = pd.read_excel(
            file_path,
            sheet_name=sheet if sheet else 0,
            header=None,
            nrows=max_rows,
            dtype=str,
            engine=engine
        )

        click.echo(f"Preview of {file_path} ({len(df)} rows x {len(df.columns)} columns):")
        click.echo()
        if df.empty:
            click.echo("  (no data)")
        else:
            df.index = range(1, len(df) + 1)
            click.echo(df.fillna('').to_string(header=False))

    except Exception as e:
        click.echo(f"Preview error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.option('--save', type=click.Path(path_type=Path), help='Write the effective configuration to this YAML file')
@click.pass_context
def config_check(ctx: click.Context, save: Optional[Path]) -> None:
    """Validate and display current configuration."""
    try:
        click.echo("Loading and validating configuration...")

        config = config_manager.load_config(ctx.obj.get('config_path'))

        click.echo("✓ Configuration loaded successfully")
        click.echo()
        click.echo("Configuration Summary:")
        click.echo(f"  Default output file: {config.output_file}")
        click.echo(f"  Output sheet name: {config.output_sheet_name}")
        click.echo(f"  Temporary directory: {config.conversion.temp_dir or 'System default'}")
        click.echo(f"  Converted file suffix: {config.conversion.suffix}")
        click.echo(f"  Logging level: {config.logging.level}")
        click.echo(f"  Log file: {config.logging.file_path if config.logging.file_enabled else 'Disabled'}")

        if save:
            config_manager.save_config(config, save)
            click.echo()
            click.echo(f"✓ Configuration written to {save}")

    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
