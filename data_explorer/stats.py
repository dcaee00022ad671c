"""Column type inference and descriptive statistics."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np

from .dataset import CellKind, Dataset

STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
MIXED = "mixed"

_KIND_TO_TYPE = {
    CellKind.TEXT: STRING,
    CellKind.NUMBER: NUMBER,
    CellKind.BOOLEAN: BOOLEAN,
}


@dataclass(frozen=True)
class ColumnStats:
    """Summary of one column, rebuilt whenever the dataset changes.

    ``min``, ``max`` and ``mean`` are only set for number columns.
    """

    name: str
    type: str
    null_count: int
    unique_count: int
    row_count: int
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None

    @property
    def non_null_count(self) -> int:
        return self.row_count - self.null_count

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.type != NUMBER:
            for key in ("min", "max", "mean"):
                data.pop(key)
        return data


def compute_column_stats(dataset: Dataset, header: str) -> ColumnStats:
    """Infer the type of ``header`` and compute its statistics.

    Null cells and empty strings count as missing.  A column whose
    non-null values share a single kind takes that kind as its type;
    several kinds give ``mixed`` and no values at all default to
    ``string``.  Unique values are counted per kind, so ``1`` and
    ``true`` stay distinct.

    Parameters
    ----------
    dataset : Dataset
        The table to inspect; it is never modified.
    header : str
        Column name.

    Returns
    -------
    ColumnStats
        Derived statistics for the column.
    """
    cells = dataset.column(header)
    present = [c for c in cells if not c.is_null and c.value != ""]
    kinds = {c.kind for c in present}

    if len(kinds) == 1:
        column_type = _KIND_TO_TYPE[next(iter(kinds))]
    elif len(kinds) > 1:
        column_type = MIXED
    else:
        column_type = STRING

    numeric: Dict[str, float] = {}
    if column_type == NUMBER:
        values = np.array([c.value for c in present], dtype=float)
        low, high = float(values.min()), float(values.max())
        # Rounding in the sum can push the mean a hair outside [min, max].
        numeric = {"min": low, "max": high, "mean": float(np.clip(values.mean(), low, high))}

    return ColumnStats(
        name=header,
        type=column_type,
        null_count=len(cells) - len(present),
        unique_count=len(set(present)),
        row_count=len(cells),
        **numeric,
    )


def compute_all_stats(dataset: Dataset) -> Dict[str, ColumnStats]:
    """Compute stats for every column, keyed and ordered by header."""
    return {header: compute_column_stats(dataset, header) for header in dataset.headers}
