"""Correlation ID management for SheetFusion.

Every merge run gets one correlation ID so that the log records of the
file collection, conversion and merge steps of that run can be grouped.
"""

import contextvars
import uuid
from typing import Optional


class CorrelationContext:
    """Context manager binding a correlation ID to the current run."""

    _context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
        "sheet_fusion_correlation_id", default=None
    )

    @classmethod
    def get_correlation_id(cls) -> Optional[str]:
        """Get the correlation ID of the current context, if any."""
        return cls._context.get()

    @classmethod
    def generate_correlation_id(cls) -> str:
        """Generate a new correlation ID."""
        return uuid.uuid4().hex

    @classmethod
    def ensure_correlation_id(cls) -> str:
        """Return the current correlation ID, binding a new one if unset."""
        correlation_id = cls.get_correlation_id()
        if correlation_id is None:
            correlation_id = cls.generate_correlation_id()
            cls._context.set(correlation_id)
        return correlation_id

    def __init__(self, correlation_id: Optional[str] = None):
        """Initialize context manager.

        Args:
            correlation_id: ID to bind. If None, a new one is generated.
        """
        self.correlation_id = correlation_id or self.generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = self._context.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            self._context.reset(self._token)
            self._token = None
