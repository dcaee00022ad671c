"""
Tests for filtering, sorting and pagination.
"""
import pytest

from data_explorer.dataset import Cell, Dataset
from data_explorer.views import (
    filter_rows,
    paginate,
    project_rows,
    render_cell,
    sort_rows,
    to_records,
    total_pages,
)


def _rows(records):
    return Dataset.from_records(records).rows


def _values(rows, column):
    return [None if row[column].is_null else row[column].value for row in rows]


class TestRenderCell:
    """Tests for the textual form of cells."""

    def test_render(self):
        assert render_cell(Cell.number(15.0)) == "15"
        assert render_cell(Cell.number(1.5)) == "1.5"
        assert render_cell(Cell.number(7)) == "7"
        assert render_cell(Cell.boolean(True)) == "true"
        assert render_cell(Cell.null()) == ""
        assert render_cell(None) == ""
        assert render_cell(Cell.text("Abc")) == "Abc"


class TestFilter:
    """Tests for filter_rows."""

    def test_empty_term_keeps_all(self):
        rows = _rows([{"a": "x"}, {"a": "y"}])
        assert filter_rows(rows, "") == list(rows)

    def test_case_insensitive_substring(self):
        rows = _rows([{"s": "AAA", "p": 10}, {"s": "BBB", "p": 20}])
        assert _values(filter_rows(rows, "aa"), "s") == ["AAA"]

    def test_matches_any_cell(self):
        rows = _rows([{"s": "AAA", "p": 10}, {"s": "BBB", "p": 20}])
        assert _values(filter_rows(rows, "20"), "s") == ["BBB"]

    def test_null_cells_do_not_render_as_null(self):
        rows = _rows([{"s": None}, {"s": "null and void"}])
        assert len(filter_rows(rows, "null")) == 1

    def test_never_grows(self, stocks):
        for term in ("a", "tech", "zzz", "1"):
            assert len(filter_rows(stocks.rows, term)) <= stocks.row_count

    def test_preserves_order(self, stocks):
        filtered = filter_rows(stocks.rows, "a")
        positions = [stocks.rows.index(row) for row in filtered]
        assert positions == sorted(positions)


class TestSort:
    """Tests for sort_rows."""

    def test_nulls_last_both_directions(self):
        rows = _rows([{"v": 5}, {"v": None}, {"v": 1}])
        assert _values(sort_rows(rows, "v", "asc"), "v") == [1, 5, None]
        assert _values(sort_rows(rows, "v", "desc"), "v") == [5, 1, None]

    def test_stable_for_equal_keys(self):
        rows = _rows([{"k": 1, "id": "a"}, {"k": 0, "id": "b"}, {"k": 1, "id": "c"}])
        assert _values(sort_rows(rows, "k", "asc"), "id") == ["b", "a", "c"]
        assert _values(sort_rows(rows, "k", "desc"), "id") == ["a", "c", "b"]

    def test_text_is_case_insensitive(self):
        rows = _rows([{"n": "banana"}, {"n": "Apple"}, {"n": "cherry"}])
        assert _values(sort_rows(rows, "n"), "n") == ["Apple", "banana", "cherry"]

    def test_numeric_comparison(self):
        rows = _rows([{"v": 10}, {"v": 9}, {"v": 100}])
        assert _values(sort_rows(rows, "v"), "v") == [9, 10, 100]

    def test_mixed_column_compares_as_text(self):
        rows = _rows([{"v": 10}, {"v": "9"}, {"v": 2}])
        assert _values(sort_rows(rows, "v"), "v") == [10, 2, "9"]

    def test_idempotent(self, stocks):
        once = sort_rows(stocks.rows, "Price", "desc")
        assert sort_rows(once, "Price", "desc") == once
        assert sort_rows(stocks.rows, "Price", "desc") == once

    def test_direction_reverses_distinct_values(self, stocks):
        ascending = _values(sort_rows(stocks.rows, "Volume", "asc"), "Volume")
        descending = _values(sort_rows(stocks.rows, "Volume", "desc"), "Volume")
        assert ascending == sorted(ascending)
        assert descending == sorted(descending, reverse=True)

    def test_unknown_column_keeps_order(self):
        rows = _rows([{"v": 2}, {"v": 1}])
        assert sort_rows(rows, "missing") == list(rows)

    def test_bad_direction(self):
        with pytest.raises(ValueError):
            sort_rows(_rows([{"v": 1}]), "v", "up")

    def test_input_untouched(self):
        rows = _rows([{"v": 3}, {"v": 1}])
        sort_rows(rows, "v")
        assert _values(rows, "v") == [3, 1]


class TestPaginate:
    """Tests for paginate."""

    def test_pages_cover_rows_exactly(self, stocks):
        rows = sort_rows(filter_rows(stocks.rows, "a"), "Price")
        size = 7
        pages = total_pages(len(rows), size)
        collected = []
        for number in range(1, pages + 1):
            collected.extend(paginate(rows, number, size).rows)
        assert collected == rows

    def test_metadata(self):
        rows = _rows([{"i": i} for i in range(23)])
        page = paginate(rows, 5, 5)
        assert page.total_pages == 5
        assert len(page.rows) == 3
        assert (page.start, page.end) == (21, 23)
        assert page.has_previous and not page.has_next

    def test_empty_rows(self):
        page = paginate([], 1, 10)
        assert page.rows == ()
        assert page.total_pages == 1
        assert (page.start, page.end) == (0, 0)

    def test_page_past_end_is_empty(self):
        rows = _rows([{"i": i} for i in range(3)])
        assert paginate(rows, 4, 2).rows == ()

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            paginate([], 0, 10)
        with pytest.raises(ValueError):
            paginate([], 1, 0)


class TestProjection:
    """Tests for project_rows and to_records."""

    def test_project_and_unwrap(self):
        rows = _rows([{"a": 1, "b": None, "c": "x"}])
        projected = project_rows(rows, ["c", "b"])
        assert list(projected[0]) == ["c", "b"]
        assert to_records(projected) == [{"c": "x", "b": None}]
