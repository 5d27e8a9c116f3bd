"""Smoke tests for chart rendering (Agg backend, no display)."""

import pytest

from analysis.report_engine import ReportEngine
from config import VisualizationConfig
from visualization.charts import create_all_charts


@pytest.fixture()
def chart_config():
    return VisualizationConfig(dpi=40)


def test_all_charts_written(sample_tables, chart_config, tmp_path):
    results = ReportEngine(
        sample_tables["orders"], sample_tables["order_lines"], sample_tables["products"]
    ).run_all().results

    paths = create_all_charts(results, chart_config, tmp_path, top_n_products=5)

    assert set(paths) == {
        "channel_overview",
        "seasonal_trends",
        "quarterly_revenue",
        "product_performance",
        "best_worst_months",
    }
    for path in paths.values():
        assert path.exists()
        assert path.suffix == ".png"
        assert path.stat().st_size > 0


def test_missing_reports_are_skipped(scenario_orders, chart_config, tmp_path):
    results = ReportEngine(scenario_orders).run_all().results

    paths = create_all_charts(results, chart_config, tmp_path)

    assert "product_performance" not in paths
    assert "channel_overview" in paths
