"""Logging configuration: formatters, filters and per-trip context."""

from .context import log_context, log_trip_context
from .setup import setup_logging

__all__ = ["log_context", "log_trip_context", "setup_logging"]
