"""Tests for core data models."""

import logging
import pytest
from pathlib import Path

import openpyxl
from openpyxl.styles import Border, Font, PatternFill, Side

from sheet_fusion.models.data_models import (
    Config,
    ConversionConfig,
    FileMergeResult,
    LoggingConfig,
    MergeOptions,
    MergeResult,
    StyleDescriptor,
)


class TestMergeOptions:
    """Test cases for MergeOptions."""

    def test_normalizes_paths(self):
        """Test inputs become a tuple of Paths."""
        options = MergeOptions(input_files=["a.xlsx", Path("b.xls")], output_path="out.xlsx")

        assert options.input_files == (Path("a.xlsx"), Path("b.xls"))
        assert options.output_path == Path("out.xlsx")
        assert options.sheet_name is None
        assert options.start_row is None
        assert options.auto_mode is True

    def test_explicit_start_row(self):
        options = MergeOptions(input_files=["a.xlsx"], output_path="out.xlsx", start_row=3)
        assert options.start_row == 3
        assert options.auto_mode is False

    def test_blank_sheet_name_means_first_sheet(self):
        options = MergeOptions(input_files=["a.xlsx"], output_path="out.xlsx", sheet_name="  ")
        assert options.sheet_name is None

    def test_empty_inputs_rejected(self):
        with pytest.raises(ValueError, match="input_files cannot be empty"):
            MergeOptions(input_files=[], output_path="out.xlsx")

    def test_empty_output_rejected(self):
        with pytest.raises(ValueError, match="output_path cannot be empty"):
            MergeOptions(input_files=["a.xlsx"], output_path="")

    @pytest.mark.parametrize("start_row", [0, -1])
    def test_start_row_below_one_rejected(self, start_row):
        with pytest.raises(ValueError, match="start_row must be at least 1"):
            MergeOptions(input_files=["a.xlsx"], output_path="out.xlsx", start_row=start_row)

    def test_frozen(self):
        options = MergeOptions(input_files=["a.xlsx"], output_path="out.xlsx")
        with pytest.raises(AttributeError):
            options.start_row = 2


class TestStyleDescriptor:
    """Test cases for StyleDescriptor."""

    @pytest.fixture
    def styled_cell(self):
        workbook = openpyxl.Workbook()
        cell = workbook.active["A1"]
        cell.value = "Total"
        cell.font = Font(bold=True, color="FF0000")
        cell.fill = PatternFill(fill_type="solid", start_color="DDDDDD", end_color="DDDDDD")
        cell.border = Border(bottom=Side(style="thin"))
        cell.number_format = "#,##0.00"
        return cell

    def test_from_cell(self, styled_cell):
        """Test the descriptor captures every style component."""
        style = StyleDescriptor.from_cell(styled_cell)

        assert style.font.bold is True
        assert style.fill.fill_type == "solid"
        assert style.border.bottom.style == "thin"
        assert style.number_format == "#,##0.00"
        assert style.has_custom_number_format is True

    def test_apply_to_other_workbook(self, styled_cell):
        """Test a style is re-created in a different workbook."""
        style = StyleDescriptor.from_cell(styled_cell)
        target = openpyxl.Workbook().active["C5"]

        style.apply_to(target)

        assert target.has_style is True
        assert target.font.bold is True
        assert target.font.color.rgb == styled_cell.font.color.rgb
        assert target.fill.fill_type == "solid"
        assert target.border.bottom.style == "thin"
        assert target.number_format == "#,##0.00"

    def test_general_format_is_not_custom(self):
        cell = openpyxl.Workbook().active["A1"]
        cell.font = Font(italic=True)

        assert StyleDescriptor.from_cell(cell).has_custom_number_format is False


class TestResults:
    """Test cases for merge results."""

    def test_file_result_paths(self):
        result = FileMergeResult(
            source_path="a.xls", read_path="/tmp/a_converted_1.xlsx", sheet_name="Data",
            rows_added=2, total_rows=2, converted=True
        )
        assert result.source_path == Path("a.xls")
        assert result.read_path == Path("/tmp/a_converted_1.xlsx")

    def test_file_result_negative_rows_rejected(self):
        with pytest.raises(ValueError):
            FileMergeResult(source_path="a", read_path="a", sheet_name="S", rows_added=-1, total_rows=0)

    def test_merge_result_totals(self):
        files = [
            FileMergeResult("a.xlsx", "a.xlsx", "S", 3, 3, currency_cells_converted=1),
            FileMergeResult("b.xlsx", "b.xlsx", "S", 2, 5, currency_cells_converted=4),
        ]
        result = MergeResult(output_path=Path("out.xlsx"), files=files, total_rows=5)

        assert result.files_merged == 2
        assert result.currency_cells_converted == 5


class TestConfigModels:
    """Test cases for configuration dataclasses."""

    def test_logging_config_defaults(self):
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.log_level == logging.WARNING
        assert config.file_path == Path("./logs/sheet_fusion.log")

    def test_logging_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_logging_invalid_level(self):
        with pytest.raises(ValueError, match="level must be one of"):
            LoggingConfig(level="VERBOSE")

    def test_conversion_config(self):
        config = ConversionConfig(temp_dir="/tmp/work")
        assert config.temp_dir == Path("/tmp/work")
        with pytest.raises(ValueError, match="suffix cannot be empty"):
            ConversionConfig(suffix=" ")

    def test_config_sheet_name_validation(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            Config(output_sheet_name="")
        with pytest.raises(ValueError, match="31 characters"):
            Config(output_sheet_name="X" * 32)

    def test_build_merge_options_defaults(self):
        """Test defaults fill in output path, and 0 or empty mean auto."""
        config = Config(output_file="default_out.xlsx")

        options = config.build_merge_options(["a.xlsx"], output_path=None, sheet_name="", start_row=0)

        assert options.output_path == Path("default_out.xlsx")
        assert options.sheet_name is None
        assert options.start_row is None

    def test_build_merge_options_explicit(self):
        options = Config().build_merge_options(["a.xlsx"], "out.xlsx", "Sales", 2)

        assert options.output_path == Path("out.xlsx")
        assert options.sheet_name == "Sales"
        assert options.start_row == 2
