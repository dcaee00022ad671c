"""Top‑level package for the data explorer.

This package turns uploaded CSV or JSON files into an in-memory
``Dataset`` of typed cells, infers per-column types and summary
statistics, serves searched/sorted/paginated views of the rows and
answers free-text questions through a pluggable interpreter.  The
``DataExplorerSession`` ties these together for an interactive front
end; ``python -m data_explorer.main`` starts the command-line one.
"""

from .agent import Interpretation, QueryInterpreter, RuleBasedInterpreter
from .config import ExplorerConfig
from .data_handler import load_file, load_path, parse_delimited_text, parse_structured
from .dataset import Cell, CellKind, Dataset
from .exceptions import DataExplorerError, FormatError, ReadError, SessionStateError
from .session import DataExplorerSession, QueryResult, SessionStatus, SessionView, UploadedFile, ViewParameters
from .stats import ColumnStats, compute_all_stats, compute_column_stats
from .views import filter_rows, paginate, sort_rows

__all__ = [
    "Cell",
    "CellKind",
    "ColumnStats",
    "DataExplorerError",
    "DataExplorerSession",
    "Dataset",
    "ExplorerConfig",
    "FormatError",
    "Interpretation",
    "QueryInterpreter",
    "QueryResult",
    "ReadError",
    "RuleBasedInterpreter",
    "SessionStateError",
    "SessionStatus",
    "SessionView",
    "UploadedFile",
    "ViewParameters",
    "compute_all_stats",
    "compute_column_stats",
    "filter_rows",
    "load_file",
    "load_path",
    "paginate",
    "parse_delimited_text",
    "parse_structured",
    "sort_rows",
]
