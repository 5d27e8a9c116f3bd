"""Tests for delimited, text and Excel export."""

import pytest

from analysis.kpi_calculator import calculate_kpis, format_kpi_for_display
from analysis.report_engine import REPORT_NAMES, ReportEngine
from config import ExportConfig, PipelineConfig
from reporting.report_generator import (
    REPORT_TITLES,
    export_csv_reports,
    generate_excel_report,
    generate_text_report,
    render_delimited,
)


@pytest.fixture()
def scenario_run(scenario_orders, scenario_order_lines, scenario_products):
    return ReportEngine(scenario_orders, scenario_order_lines, scenario_products).run_all()


class TestRenderDelimited:

    def test_revenue_by_channel(self, scenario_orders):
        df = ReportEngine(scenario_orders).revenue_by_channel()
        assert render_delimited(df) == "sales_channel,total_revenue\nOnline,150.00\nIn-Store,200.00\n"

    def test_custom_delimiter(self, scenario_orders):
        df = ReportEngine(scenario_orders).order_count_by_channel()
        assert render_delimited(df, delimiter=";") == "sales_channel;order_count\nOnline;2\nIn-Store;1\n"

    def test_empty_report_keeps_header(self, scenario_orders):
        df = ReportEngine(scenario_orders.iloc[0:0]).revenue_by_channel()
        assert render_delimited(df) == "sales_channel,total_revenue\n"


class TestCsvExport:

    def test_one_file_per_report(self, scenario_run, tmp_path):
        paths = export_csv_reports(scenario_run.results, tmp_path)

        assert set(paths) == {f"csv_{name}" for name in REPORT_NAMES}
        for path in paths.values():
            assert path.exists()
            assert path.parent == tmp_path / "csv"

    def test_uses_configured_delimiter(self, scenario_run, tmp_path):
        paths = export_csv_reports(scenario_run.results, tmp_path, ExportConfig(csv_delimiter="|"))
        content = paths["csv_order_count_by_channel"].read_text(encoding="utf-8")
        assert content.splitlines()[0] == "sales_channel|order_count"


class TestTextReport:

    def test_contains_all_sections(self, scenario_run, tmp_path):
        kpis = calculate_kpis(scenario_run.results)
        path = generate_text_report(
            scenario_run.results, kpis, format_kpi_for_display(kpis), PipelineConfig(), tmp_path
        )
        text = path.read_text(encoding="utf-8")

        assert "EXECUTIVE SUMMARY" in text
        assert "€350,00" in text
        for title in REPORT_TITLES.values():
            assert title.upper() in text
        assert "FEHLGESCHLAGENE REPORTS" not in text

    def test_lists_failed_reports(self, scenario_orders, tmp_path):
        run = ReportEngine(scenario_orders).run_all()
        kpis = calculate_kpis(run.results)
        path = generate_text_report(
            run.results, kpis, format_kpi_for_display(kpis), PipelineConfig(), tmp_path, errors=run.errors
        )
        text = path.read_text(encoding="utf-8")

        assert "FEHLGESCHLAGENE REPORTS" in text
        assert "product_performance: ReportError" in text


def test_excel_report(scenario_run, tmp_path):
    from openpyxl import load_workbook

    kpis = calculate_kpis(scenario_run.results)
    path = generate_excel_report(scenario_run.results, kpis, PipelineConfig(), tmp_path)

    workbook = load_workbook(path)
    assert workbook.sheetnames[0] == "KPI Overview"
    assert len(workbook.sheetnames) == 1 + len(REPORT_NAMES)
