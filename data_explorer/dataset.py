"""Core value types: typed cells, rows and the immutable ``Dataset``.

Every value read from an uploaded file is wrapped in a ``Cell`` tagged
with its kind (null, boolean, number or text).  Downstream code (stats,
views, the query interpreter) dispatches on ``Cell.kind`` instead of
guessing at raw Python types.  Nested structures never survive as
containers; they are flattened to text with a canonical JSON encoding.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

Number = Union[int, float]


class CellKind(str, Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    TEXT = "text"


@dataclass(frozen=True)
class Cell:
    """A single scalar value tagged with its kind.

    Equality and hashing include the kind, so ``Cell.boolean(True)`` and
    ``Cell.number(1)`` are distinct values even though ``True == 1`` in
    Python.
    """

    kind: CellKind
    value: Any = None

    @classmethod
    def null(cls) -> "Cell":
        return NULL

    @classmethod
    def boolean(cls, value: bool) -> "Cell":
        return cls(CellKind.BOOLEAN, bool(value))

    @classmethod
    def number(cls, value: Number) -> "Cell":
        return cls(CellKind.NUMBER, value)

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @classmethod
    def from_value(cls, value: Any) -> "Cell":
        """Wrap an already-parsed Python value.

        ``None`` and NaN become null, infinities become text, ``bool`` is
        checked before numbers and lists or dicts collapse to their
        canonical JSON text.
        """
        if isinstance(value, Cell):
            return value
        if value is None:
            return NULL
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                return NULL
            if isinstance(value, float) and math.isinf(value):
                return cls.text(str(value))
            return cls.number(value)
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, (list, tuple, dict)):
            return cls.text(canonical_json(value))
        return cls.text(str(value))

    @property
    def is_null(self) -> bool:
        return self.kind is CellKind.NULL

    def __repr__(self) -> str:
        if self.is_null:
            return "Cell.null()"
        return f"Cell.{self.kind.value}({self.value!r})"


NULL = Cell(CellKind.NULL)

Row = Mapping[str, Cell]


def canonical_json(value: Any) -> str:
    """Encode a nested structure as compact JSON with sorted keys."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def make_row(values: Mapping[str, Any], headers: Sequence[str]) -> Row:
    """Build a read-only row holding one cell per header, missing keys as null."""
    return MappingProxyType({header: Cell.from_value(values.get(header)) for header in headers})


@dataclass(frozen=True)
class Dataset:
    """Immutable table produced by ingestion.

    Parameters
    ----------
    headers : tuple of str
        Column names in file order; duplicates are rejected.
    rows : tuple of Row
        One read-only mapping per record, each holding a cell for every
        header.
    """

    headers: Tuple[str, ...]
    rows: Tuple[Row, ...]

    def __post_init__(self) -> None:
        headers = tuple(self.headers)
        if len(set(headers)) != len(headers):
            duplicates = sorted({h for h in headers if headers.count(h) > 1})
            raise ValueError(f"Duplicate column names: {', '.join(duplicates)}")
        header_set = set(headers)
        rows = []
        for index, row in enumerate(self.rows):
            if set(row.keys()) != header_set:
                raise ValueError(f"Row {index} does not match the header set.")
            rows.append(row if isinstance(row, MappingProxyType) else MappingProxyType(dict(row)))
        object.__setattr__(self, "headers", headers)
        object.__setattr__(self, "rows", tuple(rows))

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], headers: Optional[Sequence[str]] = None) -> "Dataset":
        """Build a dataset from plain dicts, wrapping values with ``Cell.from_value``.

        When ``headers`` is omitted the keys of the first record are used.
        """
        records = list(records)
        if headers is None:
            headers = list(records[0].keys()) if records else []
        return cls(tuple(headers), tuple(make_row(record, headers) for record in records))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def column(self, header: str) -> Tuple[Cell, ...]:
        """Return every cell of ``header`` in row order."""
        if header not in self.headers:
            raise ValueError(f"Column '{header}' not found in dataset.")
        return tuple(row[header] for row in self.rows)
