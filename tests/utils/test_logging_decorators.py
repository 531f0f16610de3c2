"""Tests for logging decorators and utilities."""

import logging
import pytest

from sheet_fusion.utils.correlation import CorrelationContext
from sheet_fusion.utils.logging_decorators import (
    _sanitize_args,
    log_operation,
    operation_context,
)
from sheet_fusion.utils.metrics import get_metrics_collector


@pytest.fixture(autouse=True)
def clear_metrics():
    get_metrics_collector().clear_metrics()
    yield
    get_metrics_collector().clear_metrics()


def structured_records(caplog, status):
    return [
        r.structured for r in caplog.records
        if isinstance(getattr(r, "structured", None), dict) and r.structured.get("status") == status
    ]


class TestSanitizeArgs:
    """Test cases for argument sanitization."""

    def test_basic(self):
        """Test positional and keyword arguments are rendered."""
        result = _sanitize_args(("a.xlsx", 3), {"sheet_name": "Sales"})

        assert result["args_count"] == 2
        assert result["arg_0"] == "a.xlsx"
        assert result["arg_1"] == "3"
        assert result["kwargs_count"] == 1
        assert result["sheet_name"] == "Sales"

    def test_long_values_truncated(self):
        """Test long values are cut to 200 characters."""
        result = _sanitize_args(("x" * 300,), {})

        assert result["arg_0"].endswith("...")
        assert len(result["arg_0"]) == 203

    def test_only_first_positional_arguments(self):
        result = _sanitize_args(tuple(range(10)), {})

        assert result["args_count"] == 10
        assert "arg_3" not in result


class TestLogOperation:
    """Test cases for the log_operation decorator."""

    def test_success(self, caplog):
        """Test start and success records plus metrics."""
        caplog.set_level(logging.DEBUG)

        @log_operation("sample_operation")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

        start = structured_records(caplog, "START")
        success = structured_records(caplog, "SUCCESS")
        assert start[0]["operation"] == "sample_operation"
        assert start[0]["args"]["arg_0"] == "2"
        assert "duration_ms" in success[0]

        summary = get_metrics_collector().get_metrics_summary("sample_operation")
        assert summary["successful_operations"] == 1

    def test_failure_reraises(self, caplog):
        """Test failures are logged, recorded and re-raised."""
        caplog.set_level(logging.DEBUG)

        @log_operation("failing_operation")
        def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            fail()

        errors = structured_records(caplog, "ERROR")
        assert errors[0]["error_type"] == "ValueError"
        assert errors[0]["error_message"] == "boom"
        assert get_metrics_collector().get_metrics_summary("failing_operation")["error_breakdown"] == {
            "ValueError": 1
        }

    def test_without_args_or_metrics(self, caplog):
        caplog.set_level(logging.DEBUG)

        @log_operation("quiet_operation", log_args=False, collect_metrics=False)
        def noop(secret):
            return None

        noop("do-not-log")

        assert "args" not in structured_records(caplog, "START")[0]
        assert get_metrics_collector().get_metrics_summary("quiet_operation") == {"total_operations": 0}

    def test_preserves_function_metadata(self):
        @log_operation("documented")
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."


class TestOperationContext:
    """Test cases for the operation_context context manager."""

    def test_success_with_metadata(self, caplog):
        """Test metadata is attached to metrics and the start record."""
        caplog.set_level(logging.DEBUG)

        with CorrelationContext("ctx-id"):
            with operation_context("save_output", output_path="out.xlsx") as metrics:
                metrics.add_metadata("rows", 5)

        assert metrics.success is True
        assert metrics.correlation_id == "ctx-id"
        assert metrics.metadata == {"output_path": "out.xlsx", "rows": 5}
        assert structured_records(caplog, "START")[0]["output_path"] == "out.xlsx"

    def test_failure(self, caplog):
        """Test exceptions propagate and are recorded."""
        caplog.set_level(logging.DEBUG)

        with pytest.raises(RuntimeError):
            with operation_context("merge_run") as metrics:
                raise RuntimeError("bad")

        assert metrics.success is False
        assert metrics.error_type == "RuntimeError"
        assert structured_records(caplog, "ERROR")[0]["operation"] == "merge_run"

    def test_without_metrics(self):
        with operation_context("merge_run", collect_metrics=False) as metrics:
            assert metrics is None

    def test_custom_logger(self, caplog):
        caplog.set_level(logging.DEBUG)
        logger = logging.getLogger("sheet_fusion.custom")

        with operation_context("custom", logger):
            pass

        assert any(r.name == "sheet_fusion.custom" for r in caplog.records)
