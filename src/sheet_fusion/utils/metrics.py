"""Operation metrics for SheetFusion.

Records duration and outcome of the operations wrapped by
``log_operation`` and ``operation_context`` so a run can report where its
time went.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class OperationMetrics:
    """Timing and outcome of a single operation."""

    operation_name: str
    correlation_id: str
    start_time: float
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    success: Optional[bool] = None
    error_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self, success: bool, error_type: Optional[str] = None) -> None:
        """Mark the operation finished.

        Args:
            success: Whether the operation succeeded
            error_type: Exception class name if it failed
        """
        self.end_time = time.time()
        self.duration_ms = (self.end_time - self.start_time) * 1000
        self.success = success
        self.error_type = error_type

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation_name": self.operation_name,
            "correlation_id": self.correlation_id,
            "duration_ms": self.duration_ms,
            "success": self.success,
            "error_type": self.error_type,
            "metadata": dict(self.metadata),
        }


class MetricsCollector:
    """Collects completed operation metrics for the current process."""

    def __init__(self, max_entries: int = 1000):
        """Initialize metrics collector.

        Args:
            max_entries: Oldest entries are dropped beyond this many
        """
        self.max_entries = max_entries
        self.metrics: List[OperationMetrics] = []

    def record_operation(self, metrics: OperationMetrics) -> None:
        self.metrics.append(metrics)
        if len(self.metrics) > self.max_entries:
            del self.metrics[: len(self.metrics) - self.max_entries]

    def get_metrics_summary(self, operation_name: Optional[str] = None) -> Dict[str, Any]:
        """Summarize recorded operations.

        Args:
            operation_name: Only summarize operations with this name

        Returns:
            Counts, success rate, durations and error breakdown
        """
        selected = [
            m for m in self.metrics
            if operation_name is None or m.operation_name == operation_name
        ]
        if not selected:
            return {"total_operations": 0}

        succeeded = [m for m in selected if m.success]
        failed = [m for m in selected if m.success is False]
        durations = [m.duration_ms for m in selected if m.duration_ms is not None]

        summary: Dict[str, Any] = {
            "total_operations": len(selected),
            "successful_operations": len(succeeded),
            "failed_operations": len(failed),
            "success_rate": len(succeeded) / len(selected),
        }

        if durations:
            summary["avg_duration_ms"] = sum(durations) / len(durations)
            summary["max_duration_ms"] = max(durations)
            summary["total_duration_ms"] = sum(durations)

        if failed:
            breakdown: Dict[str, int] = {}
            for m in failed:
                key = m.error_type or "Unknown"
                breakdown[key] = breakdown.get(key, 0) + 1
            summary["error_breakdown"] = breakdown

        return summary

    def clear_metrics(self) -> None:
        self.metrics.clear()


_global_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide metrics collector."""
    return _global_metrics_collector


def create_operation_metrics(operation_name: str, correlation_id: str) -> OperationMetrics:
    """Start timing a new operation."""
    return OperationMetrics(
        operation_name=operation_name,
        correlation_id=correlation_id,
        start_time=time.time(),
    )
