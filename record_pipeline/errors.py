"""Exceptions raised by the pipeline for faults that abort a run."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for fatal pipeline faults."""


class ConfigError(PipelineError):
    """Submission target is not configured."""


class DownloadError(PipelineError):
    """The source table could not be fetched or saved."""


class TableError(PipelineError):
    """The source table could not be read or parsed."""


class MalformedRowError(PipelineError, IndexError):
    """A data row does not carry the twelve expected fields."""

    def __init__(self, row_number: int, width: int) -> None:
        super().__init__(f"row {row_number} has {width} fields, expected 12")
        self.row_number = row_number
        self.width = width


__all__ = [
    "ConfigError",
    "DownloadError",
    "MalformedRowError",
    "PipelineError",
    "TableError",
]
