"""Tests for database provisioning and synthetic data generation."""

import sqlite3

import pytest

from config import DataGenerationConfig
from database.setup_db import PRODUCTS, generate_customers, generate_orders, setup_database


def _count(db_path, table):
    with sqlite3.connect(db_path) as conn:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


class TestSetupDatabase:

    def test_creates_all_tables(self, sample_db):
        assert _count(sample_db, "products") == len(PRODUCTS)
        assert _count(sample_db, "orders") > 0
        assert _count(sample_db, "order_lines") >= _count(sample_db, "orders")

    def test_is_idempotent(self, sample_db, generation_config):
        before = sample_db.stat().st_mtime_ns
        assert setup_database(sample_db, generation_config)
        assert sample_db.stat().st_mtime_ns == before

    def test_force_recreate_is_reproducible(self, sample_db, generation_config):
        orders_before = _count(sample_db, "orders")
        assert setup_database(sample_db, generation_config, force_recreate=True)
        assert _count(sample_db, "orders") == orders_before

    def test_header_total_exceeds_line_sum(self, sample_db):
        query = """
            SELECT o.total_due, SUM(ol.line_total)
            FROM orders o JOIN order_lines ol ON ol.order_id = o.order_id
            GROUP BY o.order_id
        """
        with sqlite3.connect(sample_db) as conn:
            rows = conn.execute(query).fetchall()
        assert rows
        assert all(total_due >= line_sum for total_due, line_sum in rows)

    def test_dates_within_range(self, sample_db, generation_config):
        with sqlite3.connect(sample_db) as conn:
            first, last = conn.execute("SELECT MIN(order_date), MAX(order_date) FROM orders").fetchone()
        assert first >= generation_config.start
        assert last <= generation_config.end


class TestGenerators:

    def test_customers_have_affinity(self):
        customers = generate_customers(n=25, seed=1)
        assert [c[0] for c in customers] == list(range(1, 26))
        assert all(0.0 < affinity < 1.0 for _, affinity in customers)

    def test_orders_reference_known_products(self):
        config = DataGenerationConfig(start="2023-01-01", end="2023-12-31", n_customers=10, seed=3)
        orders, lines = generate_orders(generate_customers(n=10, seed=3), config)

        order_ids = {o[0] for o in orders}
        product_ids = {p[0] for p in PRODUCTS}
        assert {line[1] for line in lines} <= order_ids
        assert {line[2] for line in lines} <= product_ids
        assert all(line[3] > 0 for line in lines)

    def test_same_seed_same_data(self):
        config = DataGenerationConfig(start="2023-01-01", end="2023-06-30", n_customers=5, seed=11)
        first = generate_orders(generate_customers(n=5, seed=11), config)
        second = generate_orders(generate_customers(n=5, seed=11), config)
        assert first == second

    @pytest.mark.parametrize("flag_values", [{0, 1}])
    def test_online_flag_is_binary(self, flag_values):
        orders, _ = generate_orders(generate_customers(n=30, seed=5))
        assert {o[3] for o in orders} <= flag_values
