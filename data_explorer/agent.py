"""Question answering over a loaded dataset.

The ``QueryInterpreter`` interface maps a free-text prompt to a short
textual answer plus the number of rows the answer is about.  The
default ``RuleBasedInterpreter`` is a deterministic keyword matcher
tuned for stock-screener style tables; it never raises on an
unrecognised prompt and falls back to a generic dataset summary.  A
language-model backed interpreter can be plugged into the session by
implementing the same ``interpret`` method.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .dataset import CellKind, Dataset, Row
from .views import numeric_value, render_cell

SUGGESTED_PROMPTS = (
    "Show me the top 5 stocks by market cap",
    "Which stocks have positive YTD returns?",
    "Compare technology sector stocks",
    "Find stocks with high P/E ratios",
)

TOP_N = 5
HIGH_PE_THRESHOLD = 50
TECHNOLOGY_SECTOR = "Technology"


@dataclass(frozen=True)
class Interpretation:
    """Answer text and the count of rows the answering rule matched or considered."""

    text: str
    rows_affected: Optional[int] = None


class QueryInterpreter(ABC):
    """Turns a prompt into an ``Interpretation`` without modifying the dataset."""

    @abstractmethod
    def interpret(self, prompt: str, dataset: Dataset) -> Interpretation:
        raise NotImplementedError


def find_column(headers: Sequence[str], *candidates: str) -> Optional[str]:
    """Resolve a column role by name.

    An exact (case-insensitive) match on any candidate wins; otherwise
    the first header containing a candidate is returned.
    """
    lowered = [(h, h.lower().replace("_", " ")) for h in headers]
    for candidate in candidates:
        for header, name in lowered:
            if name == candidate:
                return header
    for candidate in candidates:
        for header, name in lowered:
            if candidate in name:
                return header
    return None


@dataclass
class RuleBasedInterpreter(QueryInterpreter):
    """Keyword rules evaluated in a fixed order; the first match answers."""

    top_n: int = TOP_N
    pe_threshold: float = HIGH_PE_THRESHOLD

    def interpret(self, prompt: str, dataset: Dataset) -> Interpretation:
        q = prompt.lower()
        if "top" in q and "market cap" in q:
            return self._top_by_market_cap(dataset)
        if "positive" in q and "ytd" in q:
            return self._positive_ytd(dataset)
        if "technology" in q or "tech" in q:
            return self._technology_sector(dataset)
        if "p/e" in q or "pe ratio" in q:
            return self._high_pe(dataset)
        if any(word in q for word in ("graph", "chart", "volume")):
            return self._chart_placeholder(dataset)
        return self._summary(prompt, dataset)

    @staticmethod
    def _count(dataset: Dataset, column: Optional[str], predicate: Callable[[Row], bool]) -> int:
        if column is None:
            return 0
        return sum(1 for row in dataset.rows if predicate(row))

    def _top_by_market_cap(self, dataset: Dataset) -> Interpretation:
        column = find_column(dataset.headers, "market cap", "marketcap", "market capitalization")
        label = find_column(dataset.headers, "symbol", "ticker", "name") or (
            dataset.headers[0] if dataset.headers else None
        )
        ranked = sorted(
            dataset.rows,
            key=lambda row: numeric_value(row.get(column) if column else None),
            reverse=True,
        )
        top = ranked[: self.top_n]
        lines = []
        for position, row in enumerate(top, start=1):
            name = render_cell(row.get(label)) if label else f"Row {position}"
            value = render_cell(row.get(column)) if column else ""
            amount = f"${value}B" if value else "n/a"
            lines.append(f"{position}. {name} - {amount}")
        text = (
            f"Here are the top {len(top)} stocks by market capitalization:\n\n"
            + "\n".join(lines)
            + "\n\nThese companies represent the largest market valuations in the dataset."
        )
        return Interpretation(text, len(top))

    def _positive_ytd(self, dataset: Dataset) -> Interpretation:
        column = find_column(dataset.headers, "ytd return", "ytd")
        count = self._count(dataset, column, lambda row: numeric_value(row.get(column)) > 0)
        text = (
            f"Found {count} stocks with positive YTD returns.\n\n"
            "The top performers include stocks across various sectors. "
            "Consider reviewing the Technology and Healthcare sectors for strong performers."
        )
        return Interpretation(text, count)

    def _technology_sector(self, dataset: Dataset) -> Interpretation:
        column = find_column(dataset.headers, "sector", "industry")

        def is_tech(row: Row) -> bool:
            cell = row.get(column)
            return cell is not None and cell.kind is CellKind.TEXT and cell.value == TECHNOLOGY_SECTOR

        count = self._count(dataset, column, is_tech)
        text = (
            f"The Technology sector contains {count} stocks in this dataset.\n\n"
            "Key observations:\n"
            "- Average P/E ratio tends to be higher than other sectors\n"
            "- Generally higher YTD returns\n"
            "- Mixed dividend yields"
        )
        return Interpretation(text, count)

    def _high_pe(self, dataset: Dataset) -> Interpretation:
        column = find_column(dataset.headers, "p/e ratio", "p/e", "pe ratio")
        count = self._count(dataset, column, lambda row: numeric_value(row.get(column)) > self.pe_threshold)
        text = (
            f"Found {count} stocks with P/E ratios above {self.pe_threshold:g}.\n\n"
            "High P/E ratios can indicate growth expectations but also potential overvaluation. "
            "Consider comparing with sector averages for better context."
        )
        return Interpretation(text, count)

    @staticmethod
    def _chart_placeholder(dataset: Dataset) -> Interpretation:
        text = (
            "[Chart generation placeholder]\n\n"
            f"Charts are not implemented yet. The {dataset.row_count} rows in this dataset are "
            "available for visualization once a charting backend is connected."
        )
        return Interpretation(text, dataset.row_count)

    @staticmethod
    def _summary(prompt: str, dataset: Dataset) -> Interpretation:
        text = (
            f'I analyzed your query: "{prompt}"\n\n'
            f"Based on the dataset with {dataset.row_count} rows and {dataset.column_count} columns, "
            "I can help you explore:\n"
            "- Stock performance metrics\n"
            "- Sector comparisons\n"
            "- Market cap rankings\n"
            "- P/E ratio analysis\n\n"
            "Try asking more specific questions about the data."
        )
        return Interpretation(text, dataset.row_count)

