"""Row-level cleanup applied before records are built."""

from __future__ import annotations

from typing import MutableSequence

import structlog

Row = list[str]


class FieldNormalizer:
    """Drop the memo column, stamp the import date and fill blank fields."""

    def __init__(
        self,
        memo_column: str = "Memo",
        missing_value: str = "missing",
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.memo_column = memo_column
        self.missing_value = missing_value
        self.logger = logger or structlog.get_logger("record_pipeline.normalizer")

    def remove_memo_field(self, rows: MutableSequence[Row], as_of: str) -> int | None:
        """Remove the memo column from every row and append ``as_of``.

        ``rows[0]`` is the header. The header goes through the same
        transformation, so its trailing label becomes ``as_of`` too.
        Nothing changes when the header has no memo column. Returns the
        removed column index, or ``None``.
        """
        if not rows:
            return None
        try:
            memo_index = rows[0].index(self.memo_column)
        except ValueError:
            self.logger.info("memo_column_absent", column=self.memo_column)
            return None
        for i, row in enumerate(rows):
            rows[i] = row[:memo_index] + row[memo_index + 1 :] + [as_of]
        self.logger.info("memo_column_removed", column=self.memo_column, index=memo_index, rows=len(rows))
        return memo_index

    def replace_empty_values(self, rows: MutableSequence[Row]) -> int:
        """Replace blank fields of data rows in place; returns the count."""

        replaced = 0
        for row in rows:
            for i, value in enumerate(row):
                if not value.strip():
                    row[i] = self.missing_value
                    replaced += 1
        self.logger.info("empty_values_replaced", replaced=replaced, value=self.missing_value)
        return replaced


__all__ = ["FieldNormalizer", "Row"]
