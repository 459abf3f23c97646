"""Logging configuration built around structlog JSON logging.

Two stdlib loggers carry the output of a run:

* ``record_pipeline`` for execution events (console plus ``details.log``),
* ``record_pipeline.records`` for one disposition line per record
  (``statistics.log`` only, never the console).
"""

from __future__ import annotations

import logging
import logging.config
from collections import deque
from pathlib import Path
from typing import Any

import structlog
from pythonjsonlogger.json import JsonFormatter

APP_LOGGER = "record_pipeline"
RECORDS_LOGGER = "record_pipeline.records"
DETAILS_LOG = "details.log"
STATISTICS_LOG = "statistics.log"

JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_LOGGING_INITIALISED = False


def _stdlib_config(console_level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter, "fmt": JSON_FORMAT},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "level": console_level, "formatter": "json"},
        },
        "loggers": {
            APP_LOGGER: {"handlers": ["console"], "level": "DEBUG", "propagate": False},
            # File handlers are attached per run.
            RECORDS_LOGGER: {"handlers": [], "level": "INFO", "propagate": False},
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED
    if not _LOGGING_INITIALISED:
        # The console stays at WARNING so the progress bar remains readable.
        logging.config.dictConfig(_stdlib_config("DEBUG" if verbose else "WARNING"))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(APP_LOGGER)


def _json_formatter() -> logging.Formatter:
    console = logging.getLogger(APP_LOGGER).handlers
    if console and console[0].formatter is not None:
        return console[0].formatter
    return JsonFormatter(JSON_FORMAT)


def _add_file_handler(logger_name: str, path: Path, level: int) -> None:
    target = logging.getLogger(logger_name)
    for handler in target.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == str(path):
            return
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(_json_formatter())
    handler.setLevel(level)
    target.addHandler(handler)


def attach_run_logs(
    run_dir: Path, verbose: bool = False
) -> tuple[structlog.BoundLogger, structlog.BoundLogger]:
    """Route the execution log and the record log into ``run_dir``.

    Returns the application logger and the record-disposition logger, both
    bound to the run name.
    """
    configure_logging(verbose)
    run_dir.mkdir(parents=True, exist_ok=True)
    _add_file_handler(APP_LOGGER, (run_dir / DETAILS_LOG).resolve(), logging.DEBUG if verbose else logging.INFO)
    _add_file_handler(RECORDS_LOGGER, (run_dir / STATISTICS_LOG).resolve(), logging.INFO)
    return (
        structlog.get_logger(APP_LOGGER).bind(run=run_dir.name),
        structlog.get_logger(RECORDS_LOGGER).bind(run=run_dir.name),
    )


def detach_run_logs() -> None:
    """Close file handlers attached by :func:`attach_run_logs`."""

    for name in (APP_LOGGER, RECORDS_LOGGER):
        target = logging.getLogger(name)
        for handler in [h for h in target.handlers if isinstance(h, logging.FileHandler)]:
            target.removeHandler(handler)
            handler.close()


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return list(deque(stream, maxlen=line_count))


__all__ = [
    "APP_LOGGER",
    "DETAILS_LOG",
    "RECORDS_LOGGER",
    "STATISTICS_LOG",
    "attach_run_logs",
    "configure_logging",
    "detach_run_logs",
    "tail_log",
]
