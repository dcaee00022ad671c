"""Synthetic stock-screener dataset used for demos and tests."""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional

import numpy as np
from loguru import logger

from .dataset import Dataset

STOCK_SYMBOLS = (
    "AAPL", "GOOGL", "MSFT", "AMZN", "META", "NVDA", "TSLA", "JPM", "V", "JNJ",
    "WMT", "PG", "UNH", "HD", "MA", "DIS", "PYPL", "BAC", "ADBE", "NFLX",
    "CMCSA", "XOM", "VZ", "INTC", "T", "PFE", "KO", "PEP", "MRK", "ABT",
    "CVX", "CSCO", "TMO", "ABBV", "CRM", "NKE", "AVGO", "ACN", "COST", "MDT",
)

SECTORS = (
    "Technology", "Healthcare", "Finance", "Consumer", "Energy",
    "Communications", "Industrial", "Materials", "Utilities", "Real Estate",
)

RATINGS = ("Strong Buy", "Buy", "Hold", "Sell", "Strong Sell")

SAMPLE_HEADERS = (
    "Symbol", "Company", "Sector", "Price", "Change", "Change %", "Volume",
    "Market Cap", "P/E Ratio", "Dividend %", "52W High", "52W Low", "Rating", "YTD Return",
)

ProgressCallback = Callable[[float], None]


def _stock_records(count: int, rng: np.random.Generator) -> List[Dict[str, object]]:
    records = []
    used = set()
    for i in range(count):
        symbol = str(rng.choice(STOCK_SYMBOLS))
        if symbol in used:
            symbol = f"{symbol}{i}"
        used.add(symbol)

        price = rng.uniform(10, 500)
        change = rng.uniform(-15, 15)
        dividend = rng.uniform(0, 5) if rng.random() > 0.3 else 0.0
        records.append({
            "Symbol": symbol,
            "Company": f"{symbol} Corporation",
            "Sector": str(rng.choice(SECTORS)),
            "Price": round(price, 2),
            "Change": round(change, 2),
            "Change %": round(change / price * 100, 2),
            "Volume": int(rng.integers(100_000, 50_000_000)),
            "Market Cap": round(rng.uniform(1, 3000), 2),
            "P/E Ratio": round(rng.uniform(5, 100), 2),
            "Dividend %": round(dividend, 2),
            "52W High": round(price * rng.uniform(1.1, 1.5), 2),
            "52W Low": round(price * rng.uniform(0.5, 0.9), 2),
            "Rating": str(rng.choice(RATINGS)),
            "YTD Return": round(rng.uniform(-30, 50), 2),
        })
    return records


def generate_sample_stock_data(row_count: int = 100, seed: Optional[int] = None) -> Dataset:
    """Build a random stock table with ``row_count`` rows.

    Market cap is in billions.  Symbols are unique: a repeated pick gets
    its row index appended.
    """
    rng = np.random.default_rng(seed)
    return Dataset.from_records(_stock_records(row_count, rng), headers=SAMPLE_HEADERS)


async def simulate_file_upload(
    progress_callback: Optional[ProgressCallback] = None,
    steps: int = 10,
    delay: float = 0.1,
    row_count: int = 150,
    seed: Optional[int] = None,
) -> Dataset:
    """Pretend to upload a file, reporting progress from 0 to 100.

    The callback is invoked ``steps + 1`` times with ``i / steps * 100``.
    """
    for i in range(steps + 1):
        await asyncio.sleep(delay)
        progress = i / steps * 100
        logger.debug("Sample upload progress: {:.0f}%", progress)
        if progress_callback is not None:
            progress_callback(progress)
    return generate_sample_stock_data(row_count, seed=seed)
