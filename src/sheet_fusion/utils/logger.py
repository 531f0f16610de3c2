"""Logging utilities for SheetFusion.

This module provides logging setup with support for:
- Console and rotating file handlers
- Structured JSON logging
- Domain-specific logging methods for merge events
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sheet_fusion.models.data_models import FileMergeResult, LoggingConfig, MergeResult
from sheet_fusion.utils.correlation import CorrelationContext


class JSONFormatter(logging.Formatter):
    """Formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line.

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "correlation_id": CorrelationContext.get_correlation_id(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        structured = getattr(record, "structured", None)
        if isinstance(structured, dict):
            log_entry.update(structured)

        for name in ("event_type", "file_path", "sheet_name", "output_path", "error_type"):
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ProcessingLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter for merge-specific logging.

    Adds context to log records and offers one method per merge event.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs.setdefault("extra", {})
        kwargs["extra"].update(self.extra)
        return msg, kwargs

    def log_file_merged(self, result: FileMergeResult) -> None:
        """Log the outcome of merging one input file.

        Args:
            result: Per-file merge result
        """
        extra = {
            "event_type": "file_merged",
            "file_path": str(result.source_path),
            "sheet_name": result.sheet_name,
            "structured": {
                "rows_added": result.rows_added,
                "total_rows": result.total_rows,
                "converted": result.converted,
                "currency_cells_converted": result.currency_cells_converted,
            },
        }
        self.info(
            f"Merged {result.source_path} [{result.sheet_name}]: "
            f"{result.rows_added} rows added, {result.total_rows} total",
            extra=extra
        )

    def log_conversion(self, source_path: Union[str, Path], converted_path: Union[str, Path], sheet_count: int) -> None:
        """Log a legacy workbook conversion.

        Args:
            source_path: Legacy workbook path
            converted_path: Temporary modern workbook path
            sheet_count: Number of sheets converted
        """
        extra = {
            "event_type": "legacy_conversion",
            "file_path": str(source_path),
            "output_path": str(converted_path),
            "structured": {"sheet_count": sheet_count},
        }
        self.info(f"Converted {source_path} -> {converted_path} ({sheet_count} sheets)", extra=extra)

    def log_merge_complete(self, result: MergeResult) -> None:
        """Log completion of a merge run.

        Args:
            result: Merge result
        """
        extra = {
            "event_type": "merge_complete",
            "output_path": str(result.output_path),
            "structured": {
                "files_merged": result.files_merged,
                "total_rows": result.total_rows,
                "duration_seconds": result.duration_seconds,
                "currency_cells_converted": result.currency_cells_converted,
            },
        }
        self.info(
            f"Merged {result.files_merged} files into {result.output_path}: "
            f"{result.total_rows} rows in {result.duration_seconds:.2f}s",
            extra=extra
        )

    def log_error(
        self,
        error_type: str,
        message: str,
        file_path: Optional[Union[str, Path]] = None,
        sheet_name: Optional[str] = None,
        exc_info: bool = True
    ) -> None:
        """Log a merge error with context.

        Args:
            error_type: Type of error
            message: Error message
            file_path: File being processed when the error occurred
            sheet_name: Sheet being processed when the error occurred
            exc_info: Whether to include exception information
        """
        extra: Dict[str, Any] = {
            "event_type": "merge_error",
            "error_type": error_type,
        }
        if file_path:
            extra["file_path"] = str(file_path)
        if sheet_name:
            extra["sheet_name"] = sheet_name

        self.error(message, extra=extra, exc_info=exc_info)


class LoggerManager:
    """Manages logger setup and configuration."""

    THIRD_PARTY_LOGGERS = ("openpyxl", "xlrd", "pandas")

    def __init__(self):
        self._configured = False
        self._adapters: Dict[str, ProcessingLoggerAdapter] = {}

    @property
    def configured(self) -> bool:
        return self._configured

    def setup_logging(self, config: LoggingConfig) -> None:
        """Set up logging configuration.

        Args:
            config: Logging configuration
        """
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

        root_logger.setLevel(config.log_level)

        if config.console_enabled:
            self._add_handler(logging.StreamHandler(sys.stderr), config)

        if config.file_enabled:
            config.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._add_handler(
                logging.handlers.RotatingFileHandler(
                    filename=config.file_path,
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5,
                    encoding="utf-8"
                ),
                config
            )

        if config.structured_enabled:
            structured_path = config.file_path.with_suffix(".json")
            structured_path.parent.mkdir(parents=True, exist_ok=True)
            self._add_handler(
                logging.handlers.RotatingFileHandler(
                    filename=structured_path,
                    maxBytes=10 * 1024 * 1024,
                    backupCount=5,
                    encoding="utf-8"
                ),
                config,
                formatter=JSONFormatter()
            )

        for name in self.THIRD_PARTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        self._configured = True
        logging.getLogger(__name__).debug(
            f"Logging configured: level={config.level}, console={config.console_enabled}, "
            f"file={config.file_enabled}, structured={config.structured_enabled}"
        )

    def _add_handler(
        self,
        handler: logging.Handler,
        config: LoggingConfig,
        formatter: Optional[logging.Formatter] = None
    ) -> None:
        handler.setLevel(config.log_level)
        handler.setFormatter(formatter or logging.Formatter(fmt=config.format, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger().addHandler(handler)

    def get_processing_logger(self, name: str, context: Optional[Dict[str, Any]] = None) -> ProcessingLoggerAdapter:
        """Get processing logger adapter with context.

        Args:
            name: Logger name
            context: Additional context for all log records

        Returns:
            Processing logger adapter
        """
        cache_key = f"{name}:{sorted((context or {}).items())}"
        if cache_key not in self._adapters:
            self._adapters[cache_key] = ProcessingLoggerAdapter(logging.getLogger(name), context)
        return self._adapters[cache_key]

    def shutdown(self) -> None:
        logging.shutdown()
        self._configured = False
        self._adapters.clear()


logger_manager = LoggerManager()


def setup_logging(config: LoggingConfig) -> None:
    """Set up application logging."""
    logger_manager.setup_logging(config)


def get_processing_logger(name: str, context: Optional[Dict[str, Any]] = None) -> ProcessingLoggerAdapter:
    """Get processing logger with context.

    Args:
        name: Logger name (typically __name__)
        context: Additional context for log records

    Returns:
        Processing logger adapter
    """
    return logger_manager.get_processing_logger(name, context)


def shutdown_logging() -> None:
    """Shutdown logging system."""
    logger_manager.shutdown()
