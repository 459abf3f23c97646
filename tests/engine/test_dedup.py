from __future__ import annotations

import pytest

from record_pipeline.engine import FieldNormalizer, Record, UniqueRecordSet, remove_duplicate_records
from record_pipeline.errors import MalformedRowError


def test_unique_record_set_ignores_equal_records(normalized_row) -> None:
    unique = UniqueRecordSet()
    assert unique.add(Record.from_row(normalized_row))
    assert not unique.add(Record.from_row(list(normalized_row)))
    assert len(unique) == 1
    assert Record.from_row(normalized_row) in unique


def test_ten_rows_collapse_to_five(raw_rows) -> None:
    rows = raw_rows()
    normalizer = FieldNormalizer()
    normalizer.remove_memo_field(rows, "08/04/2021")
    data = rows[1:]
    normalizer.replace_empty_values(data)
    unique = UniqueRecordSet()
    assert remove_duplicate_records(data, unique) == 5
    assert len(unique) == 5
    assert len(set(unique)) == 5


def test_cardinality_matches_distinct_tuples(normalized_row) -> None:
    rows = []
    for i in range(20):
        row = list(normalized_row)
        row[9] = f"${i % 7}"
        rows.append(row)
    unique = UniqueRecordSet()
    assert remove_duplicate_records(rows, unique) == len({tuple(row) for row in rows}) == 7


def test_existing_set_keeps_growing(normalized_row) -> None:
    unique = UniqueRecordSet([Record.from_row(normalized_row)])
    other = list(normalized_row)
    other[1] = "Abou AMON"
    assert remove_duplicate_records([normalized_row, other], unique) == 2


def test_short_row_aborts(normalized_row) -> None:
    unique = UniqueRecordSet()
    with pytest.raises(MalformedRowError) as excinfo:
        remove_duplicate_records([normalized_row, normalized_row[:10]], unique)
    assert excinfo.value.row_number == 2
    assert excinfo.value.width == 10
    assert isinstance(excinfo.value, IndexError)
