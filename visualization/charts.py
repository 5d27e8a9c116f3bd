"""
visualization/charts.py - Business-Charts zu den Kanal-Reports.

Jedes Chart folgt denselben Regeln:
- Titel nennt die Aussage, nicht nur die Kennzahl
- Konsistente Kanal-Farben (Online / In-Store) über alle Charts
- Quelle/Datum als Fußzeile
"""

import logging
import warnings
import pandas as pd
import matplotlib
matplotlib.use("Agg")  # Non-interactive backend für headless Execution
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import seaborn as sns
from pathlib import Path
from datetime import datetime

from config import VisualizationConfig
from analysis.channel import CHANNEL_ORDER

logger = logging.getLogger(__name__)
warnings.filterwarnings("ignore", category=FutureWarning)


# ─────────────────────────────────────────────
# GLOBAL STYLE SETUP
# ─────────────────────────────────────────────

def setup_style(config: VisualizationConfig) -> None:
    """Setzt globales Matplotlib-Styling. Wird einmal vor den Charts aufgerufen."""
    sns.set_theme(style="whitegrid")
    plt.rcParams.update({
        "font.family":        config.font_family,
        "font.size":          10,
        "axes.titlesize":     13,
        "axes.titleweight":   "bold",
        "axes.labelsize":     10,
        "axes.spines.top":    False,
        "axes.spines.right":  False,
        "axes.edgecolor":     "#CCCCCC",
        "grid.color":         "#E8E8E8",
        "grid.linestyle":     "--",
        "grid.linewidth":     0.5,
        "lines.linewidth":    2.0,
        "savefig.dpi":        config.dpi,
        "savefig.bbox":       "tight",
        "savefig.facecolor":  "white",
    })
    logger.info("Chart-Styling konfiguriert")


def _add_chart_footer(ax, source: str = "RetailCo Sales DB") -> None:
    """Fügt Quelle + Generierungsdatum als Fußzeile ein."""
    date_str = datetime.now().strftime("%d.%m.%Y")
    ax.annotate(
        f"Quelle: {source}  |  Erstellt: {date_str}",
        xy=(1, -0.14), xycoords="axes fraction",
        ha="right", va="bottom",
        fontsize=7, color="#999999",
        style="italic"
    )


def _format_euro(val: float, pos=None) -> str:
    """Axis-Formatter: Euro mit Tausendertrennzeichen."""
    if abs(val) >= 1_000_000:
        return f"€{val/1_000_000:.1f}M"
    elif abs(val) >= 1_000:
        return f"€{val/1_000:.0f}K"
    return f"€{val:.0f}"


def _save(fig, output_dir: Path, filename: str, config: VisualizationConfig) -> Path:
    output_path = output_dir / filename
    fig.savefig(output_path, dpi=config.dpi, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Chart gespeichert: {output_path.name}")
    return output_path


# ─────────────────────────────────────────────
# CHART 1: KANAL-ÜBERBLICK
# ─────────────────────────────────────────────

def create_channel_overview(results: dict, config: VisualizationConfig, output_dir: Path) -> Path:
    """
    Drei Balken-Panels: Umsatz, Bestellungen und Ø Bestellwert je Kanal.

    Zeigt auf einen Blick, ob ein Kanal über Frequenz oder über
    Warenkorbgröße gewinnt.
    """
    channel_colors = config.colors["channels"]
    panels = [
        ("revenue_by_channel", "total_revenue", "Umsatz", True),
        ("order_count_by_channel", "order_count", "Bestellungen", False),
        ("average_order_value_by_channel", "avg_order_value", "Ø Bestellwert", True),
    ]

    fig, axes = plt.subplots(1, 3, figsize=(config.figsize_dashboard[0], 6))
    fig.suptitle("Kanal-Überblick  |  Online vs. In-Store", fontsize=16,
                 fontweight="bold", color=config.colors["primary"])

    for ax, (report, column, label, is_money) in zip(axes, panels):
        df = results[report]
        bars = ax.bar(
            df["sales_channel"], df[column],
            color=[channel_colors.get(c, config.colors["neutral"]) for c in df["sales_channel"]],
            width=0.55,
        )
        ax.set_title(label)
        if is_money:
            ax.yaxis.set_major_formatter(mticker.FuncFormatter(_format_euro))
        for bar, value in zip(bars, df[column]):
            text = _format_euro(value) if is_money else f"{int(value):,}".replace(",", ".")
            ax.annotate(text, xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                        ha="center", va="bottom", fontsize=9, fontweight="bold")

    _add_chart_footer(axes[-1])
    return _save(fig, output_dir, "chart_01_channel_overview.png", config)


# ─────────────────────────────────────────────
# CHART 2: SAISONALE TRENDS
# ─────────────────────────────────────────────

def create_seasonal_trends(seasonal_df: pd.DataFrame, config: VisualizationConfig, output_dir: Path) -> Path:
    """
    Monatlicher Umsatz (oben) und Ø Transaktionswert (unten) je Kanal.

    Args:
        seasonal_df: Ergebnis von ReportEngine.seasonal_trends()
        config: Visualisierungs-Konfiguration
        output_dir: Ausgabe-Pfad

    Returns:
        Pfad zur gespeicherten PNG-Datei
    """
    df = seasonal_df.copy()
    df["period"] = pd.to_datetime(
        df["year"].astype(str) + "-" + df["month"].astype(str).str.zfill(2) + "-01"
    )
    channel_colors = config.colors["channels"]

    fig, (ax_rev, ax_avg) = plt.subplots(2, 1, figsize=config.figsize_single, sharex=True)

    for channel in CHANNEL_ORDER:
        subset = df[df["sales_channel"] == channel].sort_values("period")
        if subset.empty:
            continue
        color = channel_colors.get(channel, config.colors["neutral"])
        ax_rev.plot(subset["period"], subset["total_revenue"], marker="o", markersize=3,
                    color=color, label=channel)
        ax_avg.plot(subset["period"], subset["avg_transaction_value"], marker="o", markersize=3,
                    color=color, label=channel)

    ax_rev.set_title("Saisonale Umsatzentwicklung je Kanal  |  Q4-Peaks sichtbar")
    ax_rev.yaxis.set_major_formatter(mticker.FuncFormatter(_format_euro))
    ax_rev.legend(loc="upper left", frameon=False)

    ax_avg.set_title("Ø Transaktionswert je Kanal")
    ax_avg.yaxis.set_major_formatter(mticker.FuncFormatter(_format_euro))
    ax_avg.set_xlabel("Monat")

    _add_chart_footer(ax_avg)
    return _save(fig, output_dir, "chart_02_seasonal_trends.png", config)


# ─────────────────────────────────────────────
# CHART 3: QUARTALSUMSATZ
# ─────────────────────────────────────────────

def create_quarterly_revenue(quarterly_df: pd.DataFrame, config: VisualizationConfig, output_dir: Path) -> Path:
    """Gruppierte Balken: Quartal × Jahr."""
    df = quarterly_df.copy()
    df["year"] = df["year"].astype(str)

    fig, ax = plt.subplots(figsize=config.figsize_single)
    sns.barplot(
        data=df, x="quarter", y="total_revenue", hue="year",
        order=["Q1", "Q2", "Q3", "Q4"], palette="Blues", ax=ax,
    )
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(_format_euro))
    ax.set_xlabel("Quartal")
    ax.set_ylabel("Umsatz")
    ax.set_title("Quartalsumsatz im Jahresvergleich")
    ax.legend(title="Jahr", frameon=False)

    _add_chart_footer(ax)
    return _save(fig, output_dir, "chart_03_quarterly_revenue.png", config)


# ─────────────────────────────────────────────
# CHART 4: PRODUKT-PERFORMANCE
# ─────────────────────────────────────────────

def create_product_performance(
    products_df: pd.DataFrame,
    config: VisualizationConfig,
    output_dir: Path,
    top_n: int = 10
) -> Path:
    """
    Horizontale Balken: verkaufte Menge der Top-N Produkte, je Kanal gesplittet.

    Top-N wird über die Gesamtmenge beider Kanäle bestimmt.
    """
    totals = (
        products_df.groupby("product_name")["total_quantity_sold"]
        .sum()
        .sort_values(ascending=False)
    )
    top_names = list(totals.head(top_n).index)
    df = products_df[products_df["product_name"].isin(top_names)]

    fig, ax = plt.subplots(figsize=config.figsize_single)
    sns.barplot(
        data=df, y="product_name", x="total_quantity_sold", hue="sales_channel",
        order=top_names, hue_order=CHANNEL_ORDER,
        palette=config.colors["channels"], orient="h", ax=ax,
    )
    ax.set_xlabel("Verkaufte Menge")
    ax.set_ylabel("")
    ax.set_title(f"Top-{top_n} Produkte nach Menge  |  Online vs. In-Store")
    ax.legend(title="Kanal", frameon=False)

    _add_chart_footer(ax)
    return _save(fig, output_dir, "chart_04_product_performance.png", config)


# ─────────────────────────────────────────────
# CHART 5: BESTER / SCHWÄCHSTER MONAT
# ─────────────────────────────────────────────

def create_best_worst_months(best_worst_df: pd.DataFrame, config: VisualizationConfig, output_dir: Path) -> Path:
    """Je Jahr zwei Balken (bester/schwächster Monat), Monatsnummer als Label."""
    df = best_worst_df.reset_index(drop=True)
    x = range(len(df))
    width = 0.38

    fig, ax = plt.subplots(figsize=config.figsize_single)
    best_bars = ax.bar([i - width / 2 for i in x], df["best_revenue"], width,
                       color=config.colors["positive"], label="Bester Monat")
    worst_bars = ax.bar([i + width / 2 for i in x], df["worst_revenue"], width,
                        color=config.colors["negative"], label="Schwächster Monat")

    for bars, months in ((best_bars, df["best_month"]), (worst_bars, df["worst_month"])):
        for bar, month in zip(bars, months):
            ax.annotate(f"M{int(month):02d}", xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                        ha="center", va="bottom", fontsize=8)

    ax.set_xticks(list(x))
    ax.set_xticklabels(df["year"].astype(str))
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(_format_euro))
    ax.set_title("Spannweite der Monatsumsätze je Jahr")
    ax.legend(frameon=False)

    _add_chart_footer(ax)
    return _save(fig, output_dir, "chart_05_best_worst_months.png", config)


# ─────────────────────────────────────────────
# ALLE CHARTS ERZEUGEN
# ─────────────────────────────────────────────

def create_all_charts(
    results: dict,
    config: VisualizationConfig,
    output_dir: Path,
    top_n_products: int = 10
) -> dict:
    """
    Orchestriert die Erstellung aller Charts.

    Fehlende oder leere Reports werden übersprungen; ein fehlschlagendes
    Chart wird geloggt und stoppt die übrigen nicht.

    Returns:
        Dict {chart_name: Path} für alle erzeugten Charts
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    setup_style(config)

    def _available(*names) -> bool:
        return all(name in results and len(results[name]) > 0 for name in names)

    jobs = [
        ("channel_overview",
         ("revenue_by_channel", "order_count_by_channel", "average_order_value_by_channel"),
         lambda: create_channel_overview(results, config, output_dir)),
        ("seasonal_trends", ("seasonal_trends",),
         lambda: create_seasonal_trends(results["seasonal_trends"], config, output_dir)),
        ("quarterly_revenue", ("quarterly_revenue_by_year",),
         lambda: create_quarterly_revenue(results["quarterly_revenue_by_year"], config, output_dir)),
        ("product_performance", ("product_performance",),
         lambda: create_product_performance(results["product_performance"], config, output_dir,
                                            top_n=top_n_products)),
        ("best_worst_months", ("best_worst_month_by_year",),
         lambda: create_best_worst_months(results["best_worst_month_by_year"], config, output_dir)),
    ]

    chart_paths = {}
    for chart_name, required, build in jobs:
        if not _available(*required):
            logger.warning(f"Chart {chart_name} übersprungen: Report-Daten fehlen")
            continue
        try:
            chart_paths[chart_name] = build()
        except Exception as e:
            logger.error(f"Chart {chart_name} fehlgeschlagen: {e}")
            plt.close("all")

    logger.info(f"✅ {len(chart_paths)}/{len(jobs)} Charts erfolgreich erstellt")
    return chart_paths
