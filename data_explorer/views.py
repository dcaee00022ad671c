"""Filtering, sorting and pagination over rows.

These are pure functions over sequences of rows.  Callers compose them
in a fixed order -- filter, then sort, then paginate -- and the input
rows are never modified; each call returns a new list.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .dataset import NULL, Cell, CellKind, Row

ASC = "asc"
DESC = "desc"


def render_cell(cell: Optional[Cell]) -> str:
    """Textual form of a cell, used for searching, text sorting and display."""
    if cell is None or cell.is_null:
        return ""
    if cell.kind is CellKind.BOOLEAN:
        return "true" if cell.value else "false"
    if cell.kind is CellKind.NUMBER:
        value = cell.value
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return str(cell.value)


def numeric_value(cell: Optional[Cell], default: float = 0.0) -> float:
    """Number carried by ``cell``, or ``default`` for anything non-numeric."""
    if cell is not None and cell.kind is CellKind.NUMBER:
        return float(cell.value)
    return default


def _is_missing(cell: Optional[Cell]) -> bool:
    return cell is None or cell.is_null


def filter_rows(rows: Sequence[Row], term: str) -> List[Row]:
    """Keep rows where any cell's text contains ``term``, ignoring case.

    An empty term keeps every row.  Row order is preserved.
    """
    if not term:
        return list(rows)
    needle = term.lower()
    return [row for row in rows if any(needle in render_cell(cell).lower() for cell in row.values())]


def sort_rows(rows: Sequence[Row], column: str, direction: str = ASC) -> List[Row]:
    """Stable sort of ``rows`` by ``column``.

    When every present value in the column is a number the comparison
    is numeric; otherwise all values compare by their lower-cased text.
    Rows whose value is null or missing always come last, in their
    original order, whichever the direction.
    """
    if direction not in (ASC, DESC):
        raise ValueError(f"Unknown sort direction: {direction}")
    present = [row for row in rows if not _is_missing(row.get(column))]
    missing = [row for row in rows if _is_missing(row.get(column))]

    if all(row[column].kind is CellKind.NUMBER for row in present):
        key = lambda row: float(row[column].value)  # noqa: E731
    else:
        key = lambda row: render_cell(row[column]).casefold()  # noqa: E731
    # sorted() keeps equal keys in input order even with reverse=True.
    return sorted(present, key=key, reverse=direction == DESC) + missing


@dataclass(frozen=True)
class Page:
    """One page of rows plus the metadata needed to render pager controls."""

    rows: Tuple[Row, ...]
    page: int
    page_size: int
    total_rows: int
    total_pages: int

    @property
    def start(self) -> int:
        """1-based index of the first row shown, 0 when the page is empty."""
        return (self.page - 1) * self.page_size + 1 if self.rows else 0

    @property
    def end(self) -> int:
        """1-based index of the last row shown."""
        return (self.page - 1) * self.page_size + len(self.rows) if self.rows else 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def total_pages(row_count: int, page_size: int) -> int:
    """Number of pages needed for ``row_count`` rows; never less than 1."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive; got {page_size}")
    return max(1, math.ceil(row_count / page_size))


def paginate(rows: Sequence[Row], page: int, page_size: int) -> Page:
    """Return rows ``[(page - 1) * page_size, page * page_size)`` clipped to the input."""
    if page < 1:
        raise ValueError(f"page must be 1 or greater; got {page}")
    pages = total_pages(len(rows), page_size)
    start = (page - 1) * page_size
    return Page(
        rows=tuple(rows[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_rows=len(rows),
        total_pages=pages,
    )


def project_rows(rows: Iterable[Row], columns: Sequence[str]) -> List[dict]:
    """Restrict each row to ``columns``, in that order."""
    return [{column: row.get(column, NULL) for column in columns} for row in rows]


def to_records(rows: Iterable[Row]) -> List[dict]:
    """Unwrap cells into plain Python values, nulls as ``None``."""
    return [{key: _plain(cell) for key, cell in row.items()} for row in rows]


def _plain(cell: Cell) -> Any:
    return None if cell.is_null else cell.value
