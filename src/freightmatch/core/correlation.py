"""Correlation context for tracing a trip across log lines."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

current_correlation_id: ContextVar[str | None] = ContextVar(
    "correlation_id", default=None
)


class CorrelationFilter(logging.Filter):
    """Logging filter that adds the active correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = current_correlation_id.get()
        if correlation_id is not None:
            record.correlation_id = correlation_id
        return True


@contextmanager
def with_correlation(correlation_id: str) -> Iterator[None]:
    """Context manager to set correlation ID for a block of code.

    Usage:
        with with_correlation(trip.trip_id):
            logger.info("Dispatching trip")  # Will include correlation_id in log
    """
    token = current_correlation_id.set(correlation_id)
    try:
        yield
    finally:
        current_correlation_id.reset(token)


def get_current_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return current_correlation_id.get()
