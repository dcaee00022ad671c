"""
Shared fixtures for the data explorer tests.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from data_explorer.config import ExplorerConfig
from data_explorer.sample_data import generate_sample_stock_data


@pytest.fixture
def prices_csv():
    return b"Symbol,Price\nAAA,10\nBBB,20\n"


@pytest.fixture
def gappy_csv():
    return b"Symbol,Price\nAAA,10\n\nBBB,\n"


@pytest.fixture
def immediate_config():
    return ExplorerConfig.immediate(sample_row_count=150, seed=3, default_page_size=25, progress_steps=10)


@pytest.fixture
def stocks():
    return generate_sample_stock_data(150, seed=7)
