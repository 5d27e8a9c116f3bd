"""
reporting/report_generator.py - Text-, CSV- & Excel-Export der Reports.

- Delimited/CSV: maschinenlesbar, ein File je Report
- Text-Report: alle acht Tabellen + KPI-Überblick, Git-versionierbar
- Excel-Report: ein Sheet je Report, Business-User friendly

Design: Report-Layer kennt nur KPIs + DataFrames, keine Business-Logik.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from config import ExportConfig, PipelineConfig

logger = logging.getLogger(__name__)

# Anzeige-Titel je Report (Reihenfolge = Ausgabe-Reihenfolge)
REPORT_TITLES = {
    "revenue_by_channel":               "Umsatz je Kanal",
    "order_count_by_channel":           "Bestellungen je Kanal",
    "average_order_value_by_channel":   "Ø Bestellwert je Kanal",
    "repeat_customer_count_by_channel": "Wiederkehrende Kunden je Kanal",
    "product_performance":              "Produkt-Performance je Kanal",
    "seasonal_trends":                  "Saisonale Trends (Jahr × Monat × Kanal)",
    "best_worst_month_by_year":         "Bester / schwächster Monat je Jahr",
    "quarterly_revenue_by_year":        "Quartalsumsatz je Jahr",
}

# Excel-Sheetnamen: max. 31 Zeichen
SHEET_NAMES = {
    "revenue_by_channel":               "Umsatz Kanal",
    "order_count_by_channel":           "Bestellungen Kanal",
    "average_order_value_by_channel":   "AOV Kanal",
    "repeat_customer_count_by_channel": "Wiederkäufer Kanal",
    "product_performance":              "Produkte",
    "seasonal_trends":                  "Saison",
    "best_worst_month_by_year":         "Best-Worst Monat",
    "quarterly_revenue_by_year":        "Quartale",
}


# ─────────────────────────────────────────────
# DELIMITED / CSV
# ─────────────────────────────────────────────

def render_delimited(df: pd.DataFrame, delimiter: str = ",", float_format: str = "%.2f") -> str:
    """
    Rendert einen Report als Delimited-Text (Header + eine Zeile je Datensatz).

    Example:
        >>> print(render_delimited(engine.revenue_by_channel()))
        sales_channel,total_revenue
        Online,150.00
        In-Store,200.00
    """
    return df.to_csv(sep=delimiter, index=False, float_format=float_format, lineterminator="\n")


def export_csv_reports(results: dict, output_dir: Path, config: Optional[ExportConfig] = None) -> dict:
    """
    Schreibt jeden Report als eigene CSV-Datei.

    Args:
        results: Report-Name → DataFrame
        output_dir: Basis-Verzeichnis (CSV landen in config.csv_subdir)
        config: ExportConfig (Delimiter, Unterverzeichnis)

    Returns:
        Dict {"csv_<report>": Path}
    """
    config = config or ExportConfig()
    csv_dir = output_dir / config.csv_subdir
    csv_dir.mkdir(parents=True, exist_ok=True)

    paths = {}
    for name, df in results.items():
        path = csv_dir / f"{name}.csv"
        path.write_text(render_delimited(df, delimiter=config.csv_delimiter), encoding="utf-8")
        paths[f"csv_{name}"] = path

    logger.info(f"CSV-Export: {len(paths)} Dateien in {csv_dir}")
    return paths


# ─────────────────────────────────────────────
# TEXT REPORT
# ─────────────────────────────────────────────

def _format_table(df: pd.DataFrame, max_rows: Optional[int] = None) -> str:
    if df is None or len(df) == 0:
        return "  (keine Daten)\n"
    shown = df.head(max_rows) if max_rows else df
    table = shown.to_string(index=False, float_format=lambda v: f"{v:,.2f}")
    lines = ["  " + line for line in table.splitlines()]
    if max_rows and len(df) > max_rows:
        lines.append(f"  ... {len(df) - max_rows} weitere Zeilen (siehe CSV)")
    return "\n".join(lines) + "\n"


def generate_text_report(
    results: dict,
    kpis: dict,
    kpi_formatted: dict,
    config: PipelineConfig,
    output_dir: Path,
    errors: Optional[dict] = None,
) -> Path:
    """
    Generiert strukturierten Text-Report.

    Layout: Header → Executive Summary → Kanal-Überblick → alle Reports
    → fehlgeschlagene Reports.

    Args:
        results: Report-Name → DataFrame
        kpis: KPI-Dictionary (Rohdaten)
        kpi_formatted: Formatierte KPI-Strings
        config: Pipeline-Konfiguration
        output_dir: Ausgabe-Pfad
        errors: Report-Name → Exception, optional

    Returns:
        Pfad zur generierten Report-Datei
    """
    now = datetime.now()
    date_str = now.strftime("%Y-%m-%d")
    time_str = now.strftime("%H:%M:%S")

    period = kpis.get("period", {})
    border = "═" * 70
    thin_line = "─" * 70
    top_n = config.analysis.top_n_products

    report_text = f"""{border}
{config.company_name.upper()} - {config.report_title.upper()}
Zeitraum: {period.get('first_year', 'N/A')} bis {period.get('last_year', 'N/A')}
Generiert: {date_str} {time_str}
{border}

EXECUTIVE SUMMARY
{thin_line}
Gesamtumsatz (Header):   {kpi_formatted.get('total_revenue', 'N/A'):>16}
Positionsumsatz:         {kpi_formatted.get('line_revenue', 'N/A'):>16}
Bestellungen:            {kpi_formatted.get('total_orders', 'N/A'):>16}
Ø Bestellwert:           {kpi_formatted.get('avg_order_value', 'N/A'):>16}
Stärkster Kanal:         {kpi_formatted.get('best_channel', 'N/A'):>16}
Top-Produkt (Menge):     {kpi_formatted.get('top_product', 'N/A')}
Bestes Quartal:          {kpi_formatted.get('best_quarter', 'N/A'):>16}
Umsatzstärkster Monat:   {kpi_formatted.get('peak_month', 'N/A'):>16}

KANAL-ÜBERBLICK
{thin_line}
"""

    for channel, values in kpis.get("channels", {}).items():
        repeat = values.get("repeat_customers")
        report_text += (
            f"  {channel:<10} €{values['revenue']:>14,.2f}  "
            f"{values['orders']:>7,} Bestellungen  "
            f"Ø €{values['avg_order_value']:>10,.2f}  "
            f"{values['revenue_share_pct']:>5.1f}%  "
            f"Wiederkäufer: {repeat if repeat is not None else '-'}\n"
        )

    for name, title in REPORT_TITLES.items():
        if name not in results:
            continue
        max_rows = top_n if name == "product_performance" else None
        report_text += f"\n{title.upper()}\n{thin_line}\n"
        report_text += _format_table(results[name], max_rows=max_rows)

    if errors:
        report_text += f"\nFEHLGESCHLAGENE REPORTS\n{thin_line}\n"
        for name, error in errors.items():
            report_text += f"  {name}: {type(error).__name__}: {error}\n"

    report_text += f"""
{border}
Ende des Reports - {config.company_name} | {date_str}
{border}
"""

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / config.export.text_filename.format(date=date_str)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_text)

    logger.info(f"Text-Report gespeichert: {output_path.name} ({output_path.stat().st_size / 1024:.1f} KB)")
    return output_path


# ─────────────────────────────────────────────
# EXCEL REPORT
# ─────────────────────────────────────────────

def generate_excel_report(
    results: dict,
    kpis: dict,
    config: PipelineConfig,
    output_dir: Path
) -> Path:
    """
    Generiert Excel-Workbook: KPI-Sheet + ein Sheet je Report.

    Args:
        results: Report-Name → DataFrame
        kpis: KPI-Dictionary
        config: Pipeline-Konfiguration
        output_dir: Ausgabe-Pfad

    Returns:
        Pfad zur generierten Excel-Datei
    """
    from openpyxl.styles import Font, PatternFill, Alignment
    from openpyxl.utils import get_column_letter

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / config.export.excel_filename

    HEADER_BG = "1B4F72"
    HEADER_FG = "FFFFFF"

    def header_style(ws, row: int, values: list):
        """Schreibt eine Header-Zeile mit Formatierung."""
        for col, val in enumerate(values, 1):
            cell = ws.cell(row=row, column=col, value=val)
            cell.font = Font(bold=True, color=HEADER_FG, name="Calibri", size=10)
            cell.fill = PatternFill(fill_type="solid", fgColor=HEADER_BG)
            cell.alignment = Alignment(horizontal="center", vertical="center")

    def auto_width(ws, min_width: int = 12, max_width: int = 40):
        for col in ws.columns:
            max_len = max((len(str(cell.value or "")) for cell in col), default=0)
            ws.column_dimensions[get_column_letter(col[0].column)].width = (
                max(min_width, min(max_len + 3, max_width))
            )

    rev = kpis.get("revenue", {})
    top_perf = kpis.get("top_performers", {})
    kpi_rows = [
        ("Gesamtumsatz (Header)", rev.get("total"), "€"),
        ("Positionsumsatz", rev.get("line_revenue"), "€"),
        ("Bestellungen", rev.get("total_orders"), "Stück"),
        ("Ø Bestellwert", rev.get("avg_order_value"), "€"),
    ]
    for channel, values in kpis.get("channels", {}).items():
        kpi_rows.append((f"Umsatz {channel}", values["revenue"], "€"))
        kpi_rows.append((f"Umsatzanteil {channel}", values["revenue_share_pct"], "%"))
    kpi_rows += [
        ("Stärkster Kanal", top_perf.get("best_channel"), ""),
        ("Top-Produkt", top_perf.get("top_product"), ""),
        ("Bestes Quartal", top_perf.get("best_quarter"), ""),
    ]
    kpi_df = pd.DataFrame(kpi_rows, columns=["KPI", "Wert", "Einheit"])

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        kpi_df.to_excel(writer, sheet_name="KPI Overview", index=False)
        ws = writer.sheets["KPI Overview"]
        header_style(ws, 1, list(kpi_df.columns))
        ws.freeze_panes = "A2"
        auto_width(ws)

        for name, sheet in SHEET_NAMES.items():
            if name not in results:
                continue
            df = results[name]
            df.to_excel(writer, sheet_name=sheet, index=False)
            ws = writer.sheets[sheet]
            header_style(ws, 1, [c.replace("_", " ").title() for c in df.columns])
            ws.freeze_panes = "A2"
            auto_width(ws)

    logger.info(f"Excel-Report gespeichert: {output_path.name} ({output_path.stat().st_size / 1024:.1f} KB)")
    return output_path
