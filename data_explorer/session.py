"""Session state for an interactive data exploration.

``DataExplorerSession`` owns everything that changes while a user works
with a dataset: the current ``Dataset``, its column statistics, the view
parameters (search, sort, visible columns, pagination) and the history
of answered questions.  The front end never mutates any of that
directly; it calls the session operations and renders the
``SessionView`` snapshot each of them returns.

Loading and querying are coroutines.  They are the only points where
the session can be suspended, and a newer call supersedes an older one
still in flight: every such operation takes a generation number on
entry and drops its result if the number has moved on by the time it
completes.  Because all writes happen on the event loop thread between
awaits, no two operations ever interleave writes to the same session.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from loguru import logger

from .agent import QueryInterpreter, RuleBasedInterpreter
from .config import ExplorerConfig
from .data_handler import load_file, load_path
from .dataset import Dataset, Row
from .exceptions import SessionStateError
from .sample_data import ProgressCallback, simulate_file_upload
from .stats import ColumnStats, compute_all_stats
from .views import ASC, DESC, Page, filter_rows, paginate, project_rows, sort_rows, total_pages


class SessionStatus(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class UploadedFile:
    """An in-memory upload: the client-side file name plus its bytes."""

    name: str
    content: bytes


Source = Union[UploadedFile, str, Path]


@dataclass(frozen=True)
class ViewParameters:
    """Search, sort, column visibility and pagination settings.

    ``visible_columns`` is kept in header order with no duplicates.
    """

    search_term: str = ""
    sort_column: Optional[str] = None
    sort_direction: str = ASC
    visible_columns: Tuple[str, ...] = ()
    current_page: int = 1
    page_size: int = 25


@dataclass(frozen=True)
class QueryResult:
    """One answered question.  History is kept newest first."""

    id: str
    query: str
    response: str
    timestamp: datetime
    rows_affected: Optional[int] = None


@dataclass(frozen=True)
class SessionView:
    """Everything the front end needs to render the current state."""

    status: SessionStatus
    error: Optional[str]
    headers: Tuple[str, ...]
    parameters: ViewParameters
    rows: Tuple[Dict[str, Any], ...]
    filtered_count: int
    total_rows: int
    total_pages: int
    page_start: int
    page_end: int
    stats: Dict[str, ColumnStats]
    history: Tuple[QueryResult, ...]
    loading_progress: float = 0.0
    is_querying: bool = False

    @property
    def column_count(self) -> int:
        return len(self.headers)

    @property
    def is_loading(self) -> bool:
        return self.status is SessionStatus.LOADING

    @property
    def current_page(self) -> int:
        return self.parameters.current_page

    @property
    def page_size(self) -> int:
        return self.parameters.page_size

    @property
    def visible_columns(self) -> Tuple[str, ...]:
        return self.parameters.visible_columns


_PARAMETER_NAMES = {f.name for f in fields(ViewParameters)}


@dataclass(eq=False)
class DataExplorerSession:
    """Mutable session with single-writer discipline.

    Parameters
    ----------
    config : ExplorerConfig, optional
        Page size, sample size and simulated latency settings.
    interpreter : QueryInterpreter, optional
        Backend answering free-text questions; rule based by default.
    sleep : callable, optional
        Coroutine used for simulated latency.  Defaults to ``asyncio.sleep``.
    """

    config: ExplorerConfig = field(default_factory=ExplorerConfig)
    interpreter: QueryInterpreter = field(default_factory=RuleBasedInterpreter)
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    def __post_init__(self) -> None:
        self._status = SessionStatus.EMPTY
        self._error: Optional[str] = None
        self._dataset: Optional[Dataset] = None
        self._stats: Dict[str, ColumnStats] = {}
        self._params = ViewParameters(page_size=self.config.default_page_size)
        self._history: List[QueryResult] = []
        self._progress = 0.0
        self._is_querying = False
        self._load_generation = 0
        self._query_generation = 0
        self._rng = np.random.default_rng(self.config.seed)

    # -- read access -------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def dataset(self) -> Optional[Dataset]:
        return self._dataset

    @property
    def parameters(self) -> ViewParameters:
        return self._params

    @property
    def history(self) -> Tuple[QueryResult, ...]:
        return tuple(self._history)

    def processed_rows(self, params: Optional[ViewParameters] = None) -> List[Row]:
        """Rows after search and sort, before pagination."""
        params = params or self._params
        if self._dataset is None:
            return []
        rows = filter_rows(self._dataset.rows, params.search_term)
        if params.sort_column is not None:
            rows = sort_rows(rows, params.sort_column, params.sort_direction)
        return rows

    def view(self) -> SessionView:
        """Build the filtered, sorted and paginated snapshot of the session."""
        rows = self.processed_rows()
        pages = total_pages(len(rows), self._params.page_size)
        page: Page = paginate(rows, min(self._params.current_page, pages), self._params.page_size)
        return SessionView(
            status=self._status,
            error=self._error,
            headers=self._dataset.headers if self._dataset is not None else (),
            parameters=self._params,
            rows=tuple(project_rows(page.rows, self._params.visible_columns)),
            filtered_count=len(rows),
            total_rows=self._dataset.row_count if self._dataset is not None else 0,
            total_pages=page.total_pages,
            page_start=page.start,
            page_end=page.end,
            stats=dict(self._stats),
            history=tuple(self._history),
            loading_progress=self._progress,
            is_querying=self._is_querying,
        )

    # -- loading -----------------------------------------------------

    def _begin_load(self) -> int:
        self._load_generation += 1
        self._status = SessionStatus.LOADING
        self._error = None
        self._progress = 0.0
        return self._load_generation

    def _install(self, dataset: Dataset) -> None:
        self._dataset = dataset
        self._stats = compute_all_stats(dataset)
        self._params = ViewParameters(visible_columns=dataset.headers, page_size=self._params.page_size)
        self._history = []
        self._query_generation += 1
        self._is_querying = False
        self._progress = 0.0
        self._status = SessionStatus.READY
        logger.info("Dataset ready: {} rows, {} columns", dataset.row_count, dataset.column_count)

    def _fail(self, message: str) -> None:
        self._clear()
        self._error = message
        logger.error("Failed to load dataset: {}", message)

    def _clear(self) -> None:
        self._status = SessionStatus.EMPTY
        self._error = None
        self._dataset = None
        self._stats = {}
        self._params = ViewParameters(page_size=self._params.page_size)
        self._history = []
        self._progress = 0.0
        self._is_querying = False
        self._query_generation += 1

    @staticmethod
    def _ingest(source: Source) -> Dataset:
        if isinstance(source, UploadedFile):
            return load_file(source.name, source.content)
        return load_path(source)

    async def _run_load(self, generation: int, job: Awaitable[Dataset]) -> SessionView:
        try:
            dataset = await job
        except Exception as e:
            if generation != self._load_generation:
                logger.debug("Discarding failure of superseded load #{}: {}", generation, e)
                return self.view()
            self._fail(str(e))
            raise
        if generation != self._load_generation:
            logger.debug("Discarding result of superseded load #{}", generation)
            return self.view()
        self._install(dataset)
        return self.view()

    async def load(self, source: Source) -> SessionView:
        """Load an uploaded file or a path and make it the current dataset.

        On failure the session drops to ``EMPTY``, records the error
        message and re-raises the ``FormatError``/``ReadError``.
        On success the view parameters are reset with every column
        visible; ``page_size`` is kept from the previous dataset.
        """
        generation = self._begin_load()
        name = source.name if isinstance(source, UploadedFile) else str(source)
        logger.info("Loading {} (load #{})", name, generation)
        return await self._run_load(generation, asyncio.to_thread(self._ingest, source))

    async def load_sample(self, progress_callback: Optional[ProgressCallback] = None) -> SessionView:
        """Generate the demo stock dataset, reporting progress from 0 to 100."""
        generation = self._begin_load()
        logger.info("Loading sample dataset (load #{})", generation)

        def on_progress(progress: float) -> None:
            if generation != self._load_generation:
                return
            self._progress = progress
            if progress_callback is not None:
                progress_callback(progress)

        job = simulate_file_upload(
            on_progress,
            steps=self.config.progress_steps,
            delay=self.config.progress_delay,
            row_count=self.config.sample_row_count,
            seed=self.config.seed,
        )
        return await self._run_load(generation, job)

    def reset(self) -> SessionView:
        """Drop the dataset and history; back to ``EMPTY``.

        View parameters return to their defaults except ``page_size``,
        which is kept so the chosen page size carries over to the next
        load.
        """
        self._load_generation += 1
        self._clear()
        logger.info("Session reset")
        return self.view()

    # -- questions ---------------------------------------------------

    def _query_delay(self) -> float:
        low, high = self.config.query_delay_min, self.config.query_delay_max
        return float(self._rng.uniform(low, high)) if high > low else low

    async def query(self, prompt: str) -> SessionView:
        """Answer ``prompt`` against the current dataset and prepend it to history.

        Only valid once a dataset is ready.  If another query, a load or
        a reset happens while this one is waiting, its answer is dropped.
        """
        if self._status is not SessionStatus.READY or self._dataset is None:
            raise SessionStateError("Load a dataset before asking questions.")
        if not prompt.strip():
            raise ValueError("Query must not be empty.")
        self._query_generation += 1
        generation = self._query_generation
        dataset = self._dataset
        self._is_querying = True
        logger.info("Query #{}: {}", generation, prompt)
        try:
            await self.sleep(self._query_delay())
            interpretation = self.interpreter.interpret(prompt, dataset)
        finally:
            if generation == self._query_generation:
                self._is_querying = False

        if generation != self._query_generation or dataset is not self._dataset:
            logger.debug("Discarding answer of superseded query #{}", generation)
            return self.view()
        self._history.insert(0, QueryResult(
            id=uuid.uuid4().hex,
            query=prompt,
            response=interpretation.text,
            timestamp=datetime.now(timezone.utc),
            rows_affected=interpretation.rows_affected,
        ))
        return self.view()

    # -- view parameters ---------------------------------------------

    def _check_column(self, column: str) -> None:
        if self._dataset is None or column not in self._dataset.headers:
            raise ValueError(f"Column '{column}' not found in dataset.")

    def set_view_parameters(self, **changes: Any) -> SessionView:
        """Merge ``changes`` into the current view parameters.

        Setting ``sort_column`` to the column already sorted on flips the
        direction; a different column starts ascending; ``None`` clears
        the sort.  An explicit ``sort_direction`` always wins.  Changing
        the search term or page size returns to page 1.  Unknown entries
        in ``visible_columns`` are ignored.
        """
        unknown = set(changes) - _PARAMETER_NAMES
        if unknown:
            raise TypeError(f"Unknown view parameter(s): {', '.join(sorted(unknown))}")
        current = self._params
        updates: Dict[str, Any] = {}

        if "search_term" in changes:
            updates["search_term"] = changes["search_term"] or ""
            if updates["search_term"] != current.search_term:
                updates["current_page"] = 1

        if "sort_column" in changes:
            column = changes["sort_column"]
            if column is None:
                updates.update(sort_column=None, sort_direction=ASC)
            else:
                self._check_column(column)
                if column == current.sort_column:
                    direction = DESC if current.sort_direction == ASC else ASC
                else:
                    direction = ASC
                updates.update(sort_column=column, sort_direction=direction)

        if "sort_direction" in changes:
            if changes["sort_direction"] not in (ASC, DESC):
                raise ValueError(f"Unknown sort direction: {changes['sort_direction']}")
            updates["sort_direction"] = changes["sort_direction"]

        if "visible_columns" in changes:
            wanted = set(changes["visible_columns"])
            headers = self._dataset.headers if self._dataset is not None else ()
            updates["visible_columns"] = tuple(h for h in headers if h in wanted)

        if "page_size" in changes:
            size = int(changes["page_size"])
            if size <= 0:
                raise ValueError(f"Page size must be positive; got {size}")
            updates["page_size"] = size
            if size != current.page_size:
                updates["current_page"] = 1

        if "current_page" in changes:
            updates["current_page"] = int(changes["current_page"])

        params = replace(current, **updates)
        pages = total_pages(len(self.processed_rows(params)), params.page_size)
        self._params = replace(params, current_page=min(max(params.current_page, 1), pages))
        return self.view()

    def set_search_term(self, term: str) -> SessionView:
        return self.set_view_parameters(search_term=term)

    def toggle_sort(self, column: str) -> SessionView:
        return self.set_view_parameters(sort_column=column)

    def toggle_column_visibility(self, column: str) -> SessionView:
        """Show ``column`` if hidden, hide it if shown."""
        self._check_column(column)
        visible = set(self._params.visible_columns)
        visible.symmetric_difference_update({column})
        return self.set_view_parameters(visible_columns=visible)

    def set_page(self, page: int) -> SessionView:
        """Jump to ``page``, clamped to the available pages."""
        return self.set_view_parameters(current_page=page)

    def set_page_size(self, page_size: int) -> SessionView:
        return self.set_view_parameters(page_size=page_size)
