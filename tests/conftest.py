"""Shared pytest fixtures for the channel report pipeline tests."""

import sys
from pathlib import Path

import pandas as pd
import pytest

# Ensure project root is on sys.path so the flat top-level packages import.
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


@pytest.fixture()
def scenario_orders():
    """Three orders: two online from customer A in January, one in-store from B in February."""
    return pd.DataFrame(
        [
            (1, "A", "2023-01-05", True, 100.0),
            (2, "A", "2023-01-20", True, 50.0),
            (3, "B", "2023-02-01", False, 200.0),
        ],
        columns=["order_id", "customer_id", "order_date", "online_order_flag", "total_due"],
    )


@pytest.fixture()
def scenario_products():
    return pd.DataFrame(
        [(1, "Helmet"), (2, "Bottle")],
        columns=["product_id", "name"],
    )


@pytest.fixture()
def scenario_order_lines():
    """Line totals deliberately differ from the order header totals."""
    return pd.DataFrame(
        [
            (1, 1, 1, 2, 40.0),
            (2, 1, 2, 3, 30.0),
            (3, 2, 1, 1, 20.0),
            (4, 3, 1, 1, 25.0),
            (5, 3, 2, 5, 50.0),
        ],
        columns=["order_line_id", "order_id", "product_id", "order_qty", "line_total"],
    )


@pytest.fixture()
def multi_year_orders():
    """Orders over two years and both channels, with revenue ties in 2023."""
    rows = [
        # 2023: Jan 100 / Feb 100 (tie) / Mar 50 / Apr 50 (tie) / Nov 80
        (1, 10, "2023-01-10", 1, 60.0),
        (2, 11, "2023-01-15", 0, 40.0),
        (3, 10, "2023-02-03", 1, 100.0),
        (4, 12, "2023-03-30", 0, 50.0),
        (5, 12, "2023-04-01", 0, 50.0),
        (6, 13, "2023-11-11", 1, 80.0),
        # 2024: single month
        (7, 10, "2024-07-04", 1, 300.0),
        (8, 14, "2024-07-05", 0, 20.0),
    ]
    return pd.DataFrame(
        rows,
        columns=["order_id", "customer_id", "order_date", "online_order_flag", "total_due"],
    )


@pytest.fixture()
def generation_config():
    from config import DataGenerationConfig
    return DataGenerationConfig(
        start="2023-01-01",
        end="2024-06-30",
        n_customers=40,
        seed=7,
    )


@pytest.fixture()
def sample_db(tmp_path, generation_config):
    """Provision a small synthetic SQLite database and return its path."""
    from database.setup_db import setup_database
    db_path = tmp_path / "sales.db"
    assert setup_database(db_path, generation_config)
    return db_path


@pytest.fixture()
def sample_tables(sample_db):
    from utils.helpers import load_tables
    return load_tables(sample_db)
