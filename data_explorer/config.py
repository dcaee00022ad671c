"""Runtime configuration for the data explorer.

Every setting has an environment variable override so the CLI and tests
can tune delays and page sizes without touching code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

PAGE_SIZE_OPTIONS = (10, 25, 50, 100)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_seed() -> Optional[int]:
    value = os.getenv("DATA_EXPLORER_SEED")
    return int(value) if value else None


@dataclass
class ExplorerConfig:
    """Settings shared by the session and the command-line front end.

    Parameters
    ----------
    default_page_size : int
        Rows per page after a dataset is loaded.
    sample_row_count : int
        Number of rows generated by ``load_sample``.
    progress_steps : int
        Discrete progress ticks reported while the sample loads.
    progress_delay : float
        Seconds to wait between progress ticks.
    query_delay_min, query_delay_max : float
        Bounds of the simulated analysis latency for each query.
    seed : Optional[int]
        Seed for the sample generator and the latency jitter.
    """

    default_page_size: int = field(default_factory=lambda: _env_int("DATA_EXPLORER_PAGE_SIZE", 25))
    sample_row_count: int = field(default_factory=lambda: _env_int("DATA_EXPLORER_SAMPLE_ROWS", 150))
    progress_steps: int = field(default_factory=lambda: _env_int("DATA_EXPLORER_PROGRESS_STEPS", 10))
    progress_delay: float = field(default_factory=lambda: _env_float("DATA_EXPLORER_PROGRESS_DELAY", 0.1))
    query_delay_min: float = field(default_factory=lambda: _env_float("DATA_EXPLORER_QUERY_DELAY_MIN", 1.0))
    query_delay_max: float = field(default_factory=lambda: _env_float("DATA_EXPLORER_QUERY_DELAY_MAX", 2.5))
    seed: Optional[int] = field(default_factory=_env_seed)

    def __post_init__(self) -> None:
        if self.default_page_size <= 0:
            raise ValueError(f"default_page_size must be positive; got {self.default_page_size}")
        if self.sample_row_count < 0:
            raise ValueError(f"sample_row_count must not be negative; got {self.sample_row_count}")
        if self.progress_steps <= 0:
            raise ValueError(f"progress_steps must be positive; got {self.progress_steps}")
        if self.progress_delay < 0 or self.query_delay_min < 0:
            raise ValueError("Delays must not be negative.")
        if self.query_delay_max < self.query_delay_min:
            raise ValueError(
                f"query_delay_max ({self.query_delay_max}) is smaller than query_delay_min ({self.query_delay_min})"
            )

    @classmethod
    def immediate(cls, **overrides) -> "ExplorerConfig":
        """Return a config with every simulated delay disabled."""
        values = {"progress_delay": 0.0, "query_delay_min": 0.0, "query_delay_max": 0.0}
        values.update(overrides)
        return cls(**values)
