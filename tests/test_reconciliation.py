"""Engine results must agree with the SQL renditions of the same reports."""

import pandas as pd
import pytest

from analysis.reconciliation import frames_match, reconcile_with_sql
from analysis.report_engine import REPORT_NAMES, ReportEngine


@pytest.mark.parametrize("mode", ["literal", "per_customer"])
def test_engine_matches_sql(sample_db, sample_tables, mode):
    engine = ReportEngine(
        sample_tables["orders"],
        sample_tables["order_lines"],
        sample_tables["products"],
        repeat_customer_mode=mode,
    )
    run = engine.run_all()

    outcome = reconcile_with_sql(run.results, sample_db, repeat_customer_mode=mode)

    assert set(outcome) == set(REPORT_NAMES)
    assert all(outcome.values()), outcome


class TestFramesMatch:

    def test_ignores_row_order(self):
        left = pd.DataFrame({"sales_channel": ["Online", "In-Store"], "total_revenue": [1.0, 2.0]})
        right = left.iloc[::-1]
        assert frames_match(left, right, ["sales_channel"])

    def test_tolerates_float_noise(self):
        left = pd.DataFrame({"year": [2023], "total_revenue": [0.1 + 0.2]})
        right = pd.DataFrame({"year": [2023], "total_revenue": [0.3]})
        assert frames_match(left, right, ["year"])

    def test_detects_value_difference(self):
        left = pd.DataFrame({"sales_channel": ["Online"], "total_revenue": [1.0]})
        right = pd.DataFrame({"sales_channel": ["Online"], "total_revenue": [1.5]})
        assert not frames_match(left, right, ["sales_channel"])

    def test_detects_missing_row(self):
        left = pd.DataFrame({"sales_channel": ["Online", "In-Store"], "total_revenue": [1.0, 2.0]})
        assert not frames_match(left, left.iloc[:1], ["sales_channel"])

    def test_detects_label_difference(self):
        left = pd.DataFrame({"year": [2023], "quarter": ["Q1"]})
        right = pd.DataFrame({"year": [2023], "quarter": ["Q2"]})
        assert not frames_match(left, right, ["year"])
