from __future__ import annotations

import copy

from structlog.testing import capture_logs

from record_pipeline.engine import FieldNormalizer

AS_OF = "08/04/2021"


def test_memo_removed_and_date_appended(raw_rows) -> None:
    rows = raw_rows()
    width = len(rows[0])
    index = FieldNormalizer().remove_memo_field(rows, AS_OF)
    assert index == 11
    assert len(rows) == 11
    assert rows[0][-1] == AS_OF
    assert "Memo" not in rows[0]
    assert all(len(row) == width for row in rows)
    assert all(row[-1] == AS_OF for row in rows[1:])


def test_memo_removal_shrinks_header_by_one_before_append() -> None:
    rows = [["Date", "Memo", "Amount"], ["01/01/2020", "note", "$1"]]
    FieldNormalizer().remove_memo_field(rows, AS_OF)
    assert rows == [["Date", "Amount", AS_OF], ["01/01/2020", "$1", AS_OF]]


def test_first_memo_column_wins() -> None:
    rows = [["Memo", "Memo"], ["a", "b"]]
    assert FieldNormalizer().remove_memo_field(rows, AS_OF) == 0
    assert rows == [["Memo", AS_OF], ["b", AS_OF]]


def test_rows_untouched_without_memo() -> None:
    rows = [["Date", "Amount"], ["01/01/2020", "$1"]]
    original = copy.deepcopy(rows)
    with capture_logs() as logs:
        assert FieldNormalizer().remove_memo_field(rows, AS_OF) is None
    assert rows == original
    assert logs[0]["event"] == "memo_column_absent"


def test_memo_lookup_is_exact() -> None:
    rows = [["memo", "Memo "], ["a", "b"]]
    assert FieldNormalizer().remove_memo_field(rows, AS_OF) is None
    assert rows == [["memo", "Memo "], ["a", "b"]]


def test_empty_values_replaced() -> None:
    rows = [["a", "", "  ", "\t"], ["", "b", "c", "d"]]
    replaced = FieldNormalizer().replace_empty_values(rows)
    assert replaced == 4
    assert rows == [["a", "missing", "missing", "missing"], ["missing", "b", "c", "d"]]


def test_empty_value_replacement_is_idempotent(raw_rows) -> None:
    normalizer = FieldNormalizer()
    rows = raw_rows()[1:]
    normalizer.replace_empty_values(rows)
    once = copy.deepcopy(rows)
    assert normalizer.replace_empty_values(rows) == 0
    assert rows == once


def test_custom_sentinel() -> None:
    rows = [["", "x"]]
    FieldNormalizer(missing_value="N/A").replace_empty_values(rows)
    assert rows == [["N/A", "x"]]
