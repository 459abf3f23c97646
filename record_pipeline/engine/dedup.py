"""Deduplication layer collapsing rows into a set of unique records."""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

import structlog

from ..errors import MalformedRowError
from .record import Record


class UniqueRecordSet:
    """Hash set of records keyed by their field values."""

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: set[Record] = set()
        for record in records:
            self.add(record)

    def add(self, record: Record) -> bool:
        """Insert ``record``; returns False when an equal one is already held."""
        if record in self._records:
            return False
        self._records.add(record)
        return True

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, record: object) -> bool:
        return record in self._records

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


def remove_duplicate_records(
    rows: Iterable[Sequence[str]],
    unique: UniqueRecordSet,
    logger: structlog.BoundLogger | None = None,
) -> int:
    """Build a record per data row into ``unique`` and return its size.

    Every row must carry the twelve normalized fields; a shorter row aborts
    with ``MalformedRowError``.
    """
    log = logger or structlog.get_logger("record_pipeline.dedup")
    ingested = 0
    for number, row in enumerate(rows, start=1):
        try:
            record = Record.from_row(row)
        except IndexError as exc:
            log.error("malformed_row", row=number, width=len(row))
            raise MalformedRowError(number, len(row)) from exc
        unique.add(record)
        ingested += 1
    log.info("duplicates_removed", ingested=ingested, unique=len(unique), removed=ingested - len(unique))
    return len(unique)


__all__ = ["UniqueRecordSet", "remove_duplicate_records"]
