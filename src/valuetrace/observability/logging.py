"""Structured logging for valuetrace.

valuetrace is imported into host programs, so loggers never configure
anything on their own: every event is a structlog event dict handed to
the stdlib logger of the emitting module, and the host's logging setup
decides what is shown. With no setup at all, only warnings and errors
reach stderr through the stdlib's last-resort handler.

The ``vt`` CLI opts in to output with ``configure_logging``:
- Console: ``-v`` for INFO, ``-vv`` for DEBUG, rendered by rich on stderr.
- File: ``--log`` appends every event to ``{log_dir}/logs/debug.jsonl``.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

_PROCESSORS: list[Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]

_file_handler: logging.FileHandler | None = None


class JSONLFileHandler(logging.FileHandler):
    """Writes one JSON object per record, flattening structlog event dicts."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry: dict[str, Any] = {
                "timestamp": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
            }
            if isinstance(record.msg, dict):
                fields = dict(record.msg)
                fields.pop("level", None)
                fields.pop("timestamp", None)
                entry["message"] = fields.pop("event", "")
                entry.update(fields)
            else:
                entry["message"] = record.getMessage()

            if self.stream:
                self.stream.write(json.dumps(entry, default=str) + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Install console (and optionally file) handlers on the root logger.

    Meant for the ``vt`` entry point. Library code never calls this.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_to_file: Also write every event to ``{log_dir}/logs/debug.jsonl``.
        log_dir: Base directory for the log file. Required with *log_to_file*.

    Raises:
        ValueError: If log_to_file=True but log_dir is not provided.
    """
    global _file_handler

    if log_to_file and log_dir is None:
        raise ValueError("log_dir is required when log_to_file=True")

    close_file_logging()

    console_level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbosity >= 2,
            show_time=verbosity >= 1,
            show_path=verbosity >= 2,
            markup=False,
            level=console_level,
        )
    ]

    if log_to_file and log_dir:
        logs_dir = log_dir / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
        _file_handler = JSONLFileHandler(str(logs_dir / "debug.jsonl"), mode="a")
        _file_handler.setLevel(logging.DEBUG)
        handlers.append(_file_handler)

    # Root stays open when a file wants everything; handlers filter the console
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Structured logger routed through ``logging.getLogger(name)``.

    Has no side effects on global logging or structlog configuration.
    """
    logger: structlog.stdlib.BoundLogger = structlog.wrap_logger(
        logging.getLogger(name),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    return logger


def close_file_logging() -> None:
    """Close the JSONL file handler, if one is open."""
    global _file_handler
    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
