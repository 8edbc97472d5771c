"""Observability module for valuetrace.

Provides structured logging for the tracker, the serializer and the CLI.
"""

from valuetrace.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
]
