"""Logging decorators and context managers for operation tracking.

``log_operation`` wraps a function and ``operation_context`` wraps a block;
both emit START/SUCCESS/ERROR records carrying a structured payload, tag
them with the run's correlation ID and record timing metrics.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Optional, Union

from .correlation import CorrelationContext
from .metrics import OperationMetrics, create_operation_metrics, get_metrics_collector


_MAX_VALUE_LENGTH = 200


def _truncate(value: Any) -> str:
    text = str(value)
    if len(text) > _MAX_VALUE_LENGTH:
        text = text[:_MAX_VALUE_LENGTH] + "..."
    return text


def _sanitize_args(args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Render call arguments for logging.

    Only the first few positional and keyword arguments are kept and long
    values are truncated.
    """
    sanitized: Dict[str, Any] = {}

    if args:
        sanitized["args_count"] = len(args)
        for i, arg in enumerate(args[:3]):
            sanitized[f"arg_{i}"] = _truncate(arg)

    if kwargs:
        sanitized["kwargs_count"] = len(kwargs)
        for key, value in list(kwargs.items())[:5]:
            sanitized[key] = _truncate(value)

    return sanitized


def log_operation(
    operation_name: str,
    log_args: bool = True,
    collect_metrics: bool = True
) -> Callable:
    """Decorator for automatic operation logging with metrics collection.

    Args:
        operation_name: Name of the operation being logged
        log_args: Whether to log function arguments
        collect_metrics: Whether to collect performance metrics

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = logging.getLogger(func.__module__)
            correlation_id = CorrelationContext.ensure_correlation_id()

            metrics = create_operation_metrics(operation_name, correlation_id) if collect_metrics else None

            start_data: Dict[str, Any] = {"operation": operation_name, "status": "START"}
            if log_args:
                start_data["args"] = _sanitize_args(args, kwargs)
            logger.debug("Operation started", extra={"structured": start_data})

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                if metrics:
                    metrics.complete(success=False, error_type=type(e).__name__)
                    get_metrics_collector().record_operation(metrics)

                error_data = {
                    "operation": operation_name,
                    "status": "ERROR",
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                }
                if metrics:
                    error_data["duration_ms"] = metrics.duration_ms
                logger.error("Operation failed", extra={"structured": error_data})
                raise

            if metrics:
                metrics.complete(success=True)
                get_metrics_collector().record_operation(metrics)

            success_data: Dict[str, Any] = {"operation": operation_name, "status": "SUCCESS"}
            if metrics:
                success_data["duration_ms"] = metrics.duration_ms
            logger.debug("Operation completed successfully", extra={"structured": success_data})
            return result

        return wrapper
    return decorator


@contextmanager
def operation_context(
    operation_name: str,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    collect_metrics: bool = True,
    **metadata: Any
) -> Generator[Optional[OperationMetrics], None, None]:
    """Context manager for operation tracking with logging and metrics.

    Args:
        operation_name: Name of the operation
        logger: Logger to use (defaults to this module's logger)
        collect_metrics: Whether to collect metrics
        **metadata: Additional metadata to include

    Yields:
        OperationMetrics for the operation, or None if metrics are disabled
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    correlation_id = CorrelationContext.ensure_correlation_id()

    metrics = None
    if collect_metrics:
        metrics = create_operation_metrics(operation_name, correlation_id)
        for key, value in metadata.items():
            metrics.add_metadata(key, value)

    logger.debug(
        "Operation context started",
        extra={"structured": {"operation": operation_name, "status": "START", **metadata}}
    )

    try:
        yield metrics
    except Exception as e:
        if metrics:
            metrics.complete(success=False, error_type=type(e).__name__)
            get_metrics_collector().record_operation(metrics)

        error_data = {
            "operation": operation_name,
            "status": "ERROR",
            "error_type": type(e).__name__,
            "error_message": str(e),
        }
        if metrics:
            error_data["duration_ms"] = metrics.duration_ms
        logger.error("Operation context failed", extra={"structured": error_data})
        raise

    if metrics:
        metrics.complete(success=True)
        get_metrics_collector().record_operation(metrics)

    success_data: Dict[str, Any] = {"operation": operation_name, "status": "SUCCESS"}
    if metrics:
        success_data["duration_ms"] = metrics.duration_ms
    logger.debug("Operation context completed successfully", extra={"structured": success_data})
