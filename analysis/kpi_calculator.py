"""
analysis/kpi_calculator.py - Verdichtung der Report-Ergebnisse zu KPIs.

Die acht Reports liefern Tabellen; dieser Layer macht daraus ein
strukturiertes Kennzahlen-Dict für Text-Report, Excel und Console.
Fehlende Reports (z.B. Produkt-Report nach Integritätsfehler) führen
zu None-Werten, nicht zu Abbrüchen.
"""

import logging
from typing import Optional

import pandas as pd

from analysis.channel import CHANNEL_ORDER

logger = logging.getLogger(__name__)


def _lookup(df: Optional[pd.DataFrame], channel: str, column: str):
    if df is None or len(df) == 0:
        return None
    match = df.loc[df["sales_channel"] == channel, column]
    if len(match) == 0:
        return None
    value = match.iloc[0]
    # numpy-Skalar → Python-Typ
    return value.item() if hasattr(value, "item") else value


def calculate_kpis(results: dict) -> dict:
    """
    Berechnet Gesamt- und Kanal-KPIs aus den Report-Ergebnissen.

    Args:
        results: Report-Name → DataFrame (ReportRun.results)

    Returns:
        KPI-Dictionary mit den Sektionen period, revenue, channels,
        top_performers
    """
    revenue_df = results.get("revenue_by_channel")
    count_df = results.get("order_count_by_channel")
    aov_df = results.get("average_order_value_by_channel")
    repeat_df = results.get("repeat_customer_count_by_channel")
    products_df = results.get("product_performance")
    quarterly_df = results.get("quarterly_revenue_by_year")
    best_worst_df = results.get("best_worst_month_by_year")

    # ── Gesamt ────────────────────────────────────────────────
    total_revenue = float(revenue_df["total_revenue"].sum()) if revenue_df is not None else 0.0
    total_orders = int(count_df["order_count"].sum()) if count_df is not None else 0
    avg_order_value = total_revenue / total_orders if total_orders > 0 else None
    line_revenue = (
        float(products_df["total_revenue"].sum())
        if products_df is not None and len(products_df) > 0 else None
    )

    # ── Je Kanal ──────────────────────────────────────────────
    channels = {}
    for channel in CHANNEL_ORDER:
        revenue = _lookup(revenue_df, channel, "total_revenue")
        if revenue is None:
            continue
        channels[channel] = {
            "revenue": round(revenue, 2),
            "orders": _lookup(count_df, channel, "order_count"),
            "avg_order_value": (
                round(_lookup(aov_df, channel, "avg_order_value"), 2)
                if _lookup(aov_df, channel, "avg_order_value") is not None else None
            ),
            "revenue_share_pct": round(revenue / total_revenue * 100, 1) if total_revenue else None,
            "repeat_customers": _lookup(repeat_df, channel, "repeat_customers"),
        }

    best_channel = max(channels, key=lambda c: channels[c]["revenue"]) if channels else "N/A"

    # ── Top-Performer ─────────────────────────────────────────
    top_product = None
    if products_df is not None and len(products_df) > 0:
        per_product = (
            products_df.groupby("product_name", sort=False)["total_quantity_sold"]
            .sum()
            .sort_values(ascending=False, kind="mergesort")
        )
        top_product = per_product.index[0]

    best_quarter = None
    if quarterly_df is not None and len(quarterly_df) > 0:
        row = quarterly_df.loc[quarterly_df["total_revenue"].idxmax()]
        best_quarter = f"{int(row['year'])}-{row['quarter']}"

    period = {"first_year": None, "last_year": None, "years": 0}
    peak_month = None
    if best_worst_df is not None and len(best_worst_df) > 0:
        period = {
            "first_year": int(best_worst_df["year"].min()),
            "last_year": int(best_worst_df["year"].max()),
            "years": int(len(best_worst_df)),
        }
        peak = best_worst_df.loc[best_worst_df["best_revenue"].idxmax()]
        peak_month = f"{int(peak['year'])}-{int(peak['best_month']):02d}"

    kpis = {
        "period": period,
        "revenue": {
            "total": round(total_revenue, 2),
            "total_orders": total_orders,
            "avg_order_value": round(avg_order_value, 2) if avg_order_value is not None else None,
            "line_revenue": round(line_revenue, 2) if line_revenue is not None else None,
        },
        "channels": channels,
        "top_performers": {
            "best_channel": best_channel,
            "top_product": top_product or "N/A",
            "best_quarter": best_quarter or "N/A",
            "peak_month": peak_month or "N/A",
        },
    }

    # ── Logging-Summary für schnellen Überblick ───────────────
    logger.info("=" * 50)
    logger.info("KPI SUMMARY")
    logger.info("=" * 50)
    logger.info(f"Total Revenue:    €{total_revenue:>12,.2f}")
    logger.info(f"Total Orders:      {total_orders:>12,}")
    for channel, values in channels.items():
        logger.info(f"{channel + ':':<17} €{values['revenue']:>12,.2f}  ({values['revenue_share_pct']}%)")
    logger.info(f"Best Channel:      {best_channel}")
    logger.info("=" * 50)

    return kpis


def format_kpi_for_display(kpis: dict) -> dict:
    """
    Formatiert KPI-Werte für Text-Report und Excel-Export.

    Zahlenformat: European style (Punkte als Tausendertrennzeichen,
    Komma für Dezimal).

    Args:
        kpis: Output von calculate_kpis()

    Returns:
        Dict mit formatierten String-Werten für Display
    """
    def fmt_eur(val: float) -> str:
        if val is None:
            return "N/A"
        return f"€{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")

    def fmt_pct(val: float) -> str:
        if val is None:
            return "N/A"
        return f"{val:.1f}%".replace(".", ",")

    def fmt_int(val: int) -> str:
        if val is None:
            return "N/A"
        return f"{val:,}".replace(",", ".")

    rev = kpis["revenue"]
    formatted = {
        "total_revenue":   fmt_eur(rev["total"]),
        "total_orders":    fmt_int(rev["total_orders"]),
        "avg_order_value": fmt_eur(rev["avg_order_value"]),
        "line_revenue":    fmt_eur(rev["line_revenue"]),
        "best_channel":    kpis["top_performers"]["best_channel"],
        "top_product":     kpis["top_performers"]["top_product"],
        "best_quarter":    kpis["top_performers"]["best_quarter"],
        "peak_month":      kpis["top_performers"]["peak_month"],
    }

    for channel, values in kpis["channels"].items():
        key = channel.lower().replace("-", "_")
        formatted[f"{key}_revenue"] = fmt_eur(values["revenue"])
        formatted[f"{key}_orders"] = fmt_int(values["orders"])
        formatted[f"{key}_avg_order_value"] = fmt_eur(values["avg_order_value"])
        formatted[f"{key}_share"] = fmt_pct(values["revenue_share_pct"])

    return formatted
