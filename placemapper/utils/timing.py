"""Timing utilities for performance monitoring."""
import time
from placemapper.utils.logging import log_structured


class Timer:
    """Context manager timing a block and logging it with extra fields."""

    def __init__(self, operation: str, **fields):
        """
        Initialize timer.

        Args:
            operation: Name of the operation being timed
            **fields: Extra structured fields for the log line (query, provider, ...)
        """
        self.operation = operation
        self.fields = fields
        self.start = None
        self.elapsed = None

    @property
    def elapsed_ms(self) -> float:
        return (self.elapsed or 0.0) * 1000.0

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = time.perf_counter() - self.start
        log_structured(
            "info" if exc_type is None else "warning",
            f"Operation {self.operation} {'completed' if exc_type is None else 'failed'}",
            operation=self.operation,
            elapsed_ms=round(self.elapsed_ms, 1),
            error_type=exc_type.__name__ if exc_type else None,
            **self.fields
        )
        return False
