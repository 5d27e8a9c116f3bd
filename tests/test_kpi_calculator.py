"""Tests for KPI consolidation and display formatting."""

import pytest

from analysis.kpi_calculator import calculate_kpis, format_kpi_for_display
from analysis.report_engine import ReportEngine


@pytest.fixture()
def scenario_results(scenario_orders, scenario_order_lines, scenario_products):
    return ReportEngine(scenario_orders, scenario_order_lines, scenario_products).run_all().results


def test_totals(scenario_results):
    kpis = calculate_kpis(scenario_results)

    assert kpis["revenue"]["total"] == pytest.approx(350.0)
    assert kpis["revenue"]["total_orders"] == 3
    assert kpis["revenue"]["avg_order_value"] == pytest.approx(116.67)
    assert kpis["revenue"]["line_revenue"] == pytest.approx(165.0)


def test_channels(scenario_results):
    channels = calculate_kpis(scenario_results)["channels"]

    assert list(channels) == ["Online", "In-Store"]
    assert channels["Online"]["orders"] == 2
    assert channels["Online"]["avg_order_value"] == pytest.approx(75.0)
    assert channels["Online"]["revenue_share_pct"] == pytest.approx(42.9)
    assert channels["Online"]["repeat_customers"] == 1
    assert channels["In-Store"]["repeat_customers"] is None


def test_top_performers(scenario_results):
    top = calculate_kpis(scenario_results)["top_performers"]

    assert top["best_channel"] == "In-Store"
    assert top["top_product"] == "Bottle"
    assert top["best_quarter"] == "2023-Q1"
    assert top["peak_month"] == "2023-02"


def test_missing_product_report_degrades(scenario_results):
    results = dict(scenario_results)
    del results["product_performance"]

    kpis = calculate_kpis(results)

    assert kpis["revenue"]["line_revenue"] is None
    assert kpis["top_performers"]["top_product"] == "N/A"


def test_format_european_style(scenario_results):
    formatted = format_kpi_for_display(calculate_kpis(scenario_results))

    assert formatted["total_revenue"] == "€350,00"
    assert formatted["total_orders"] == "3"
    assert formatted["online_share"] == "42,9%"
    assert formatted["in_store_revenue"] == "€200,00"
    assert formatted["best_channel"] == "In-Store"


def test_format_thousands():
    kpis = {
        "revenue": {"total": 1234567.5, "total_orders": 12345, "avg_order_value": None, "line_revenue": None},
        "channels": {},
        "top_performers": {"best_channel": "N/A", "top_product": "N/A",
                           "best_quarter": "N/A", "peak_month": "N/A"},
    }
    formatted = format_kpi_for_display(kpis)

    assert formatted["total_revenue"] == "€1.234.567,50"
    assert formatted["total_orders"] == "12.345"
    assert formatted["avg_order_value"] == "N/A"
