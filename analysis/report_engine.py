"""
analysis/report_engine.py - Die acht Kanal-Reports als reine Pandas-Aggregationen.

Eingabe sind drei Tabellen (Bestellköpfe, Bestellpositionen, Produkte) als
DataFrames. Jeder Report ist eine eigenständige, seiteneffektfreie Funktion
dieser Tabellen: kein Report liest das Ergebnis eines anderen, deshalb
können alle parallel laufen.

Zwei Umsatzbegriffe werden bewusst getrennt gehalten:
- Header-Umsatz (total_due, inkl. Steuer/Fracht) → Kanal-, Saison-, Quartals-Reports
- Positions-Umsatz (line_total)                   → Produkt-Performance
"""

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from analysis.channel import channel_series
from analysis.exceptions import (
    DuplicateKeyError,
    EmptyInputWarning,
    ReferentialIntegrityError,
    ReportError,
    SchemaValidationError,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# Tabellen-Schema & Report-Katalog
# ─────────────────────────────────────────────
REQUIRED_COLUMNS = {
    "orders":      ["order_id", "customer_id", "order_date", "online_order_flag", "total_due"],
    "order_lines": ["order_id", "product_id", "order_qty", "line_total"],
    "products":    ["product_id", "name"],
}

REPORT_NAMES = (
    "revenue_by_channel",
    "order_count_by_channel",
    "average_order_value_by_channel",
    "repeat_customer_count_by_channel",
    "product_performance",
    "seasonal_trends",
    "best_worst_month_by_year",
    "quarterly_revenue_by_year",
)

REPORT_COLUMNS = {
    "revenue_by_channel":               ["sales_channel", "total_revenue"],
    "order_count_by_channel":           ["sales_channel", "order_count"],
    "average_order_value_by_channel":   ["sales_channel", "avg_order_value"],
    "repeat_customer_count_by_channel": ["sales_channel", "repeat_customers"],
    "product_performance":              ["product_name", "total_quantity_sold",
                                         "total_revenue", "sales_channel"],
    "seasonal_trends":                  ["year", "month", "sales_channel", "total_revenue",
                                         "total_orders", "avg_transaction_value"],
    "best_worst_month_by_year":         ["year", "best_month", "worst_month",
                                         "best_revenue", "worst_revenue"],
    "quarterly_revenue_by_year":        ["year", "quarter", "total_revenue"],
}

REPEAT_CUSTOMER_MODES = ("literal", "per_customer")


@dataclass
class ReportRun:
    """Ergebnis von run_all(): Report-Name → DataFrame bzw. → Exception."""
    results: dict = field(default_factory=dict)
    errors: dict = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


def _require_columns(df: pd.DataFrame, table: str) -> None:
    if df is None:
        raise SchemaValidationError(table, REQUIRED_COLUMNS[table])
    missing = [c for c in REQUIRED_COLUMNS[table] if c not in df.columns]
    if missing:
        raise SchemaValidationError(table, missing)


def _empty_report(name: str) -> pd.DataFrame:
    return pd.DataFrame(columns=REPORT_COLUMNS[name])


def _finalize(df: pd.DataFrame, name: str) -> pd.DataFrame:
    """Kanal-Kategorie → String, feste Spaltenreihenfolge, frischer Index."""
    df = df.reset_index(drop=True)
    if "sales_channel" in df.columns:
        df["sales_channel"] = df["sales_channel"].astype(str)
    return df[REPORT_COLUMNS[name]]


class ReportEngine:
    """
    Berechnet die acht Kanal-Reports über unveränderlichen Eingabetabellen.

    Die Eingaben werden beim Erzeugen kopiert; Kanal, Jahr und Monat werden
    einmal je Bestellung abgeleitet und nur in der internen Kopie gehalten.

    Args:
        orders: Bestellköpfe (order_id, customer_id, order_date,
                online_order_flag, total_due)
        order_lines: Optional - Bestellpositionen, nur für product_performance()
        products: Optional - Produktstamm, nur für product_performance()
        repeat_customer_mode: "literal" (Filter auf Kanal-Bestellanzahl)
                              oder "per_customer" (echte Wiederkäufer)

    Example:
        >>> engine = ReportEngine(orders_df)
        >>> engine.revenue_by_channel()
          sales_channel  total_revenue
        0        Online          150.0
        1      In-Store          200.0
    """

    def __init__(
        self,
        orders: pd.DataFrame,
        order_lines: Optional[pd.DataFrame] = None,
        products: Optional[pd.DataFrame] = None,
        repeat_customer_mode: str = "literal",
    ):
        if repeat_customer_mode not in REPEAT_CUSTOMER_MODES:
            raise ValueError(
                f"Unbekannter repeat_customer_mode '{repeat_customer_mode}' "
                f"(erlaubt: {', '.join(REPEAT_CUSTOMER_MODES)})"
            )
        self.repeat_customer_mode = repeat_customer_mode

        _require_columns(orders, "orders")
        self._orders = self._prepare_orders(orders)

        self._order_lines = None
        if order_lines is not None:
            _require_columns(order_lines, "order_lines")
            self._order_lines = order_lines.copy()

        self._products = None
        if products is not None:
            _require_columns(products, "products")
            self._products = products.copy()

        logger.debug(
            f"ReportEngine: {len(self._orders):,} Bestellungen, "
            f"{len(self._order_lines) if self._order_lines is not None else 0:,} Positionen, "
            f"{len(self._products) if self._products is not None else 0:,} Produkte"
        )

    # ─────────────────────────────────────────────
    # INTERNE HELFER
    # ─────────────────────────────────────────────

    @staticmethod
    def _prepare_orders(orders: pd.DataFrame) -> pd.DataFrame:
        df = orders.copy()
        df["order_date"] = pd.to_datetime(df["order_date"])
        df["total_due"] = df["total_due"].astype(float)
        df["sales_channel"] = channel_series(df["online_order_flag"])
        df["year"] = df["order_date"].dt.year.astype(int)
        df["month"] = df["order_date"].dt.month.astype(int)
        df["quarter"] = "Q" + ((df["month"] - 1) // 3 + 1).astype(str)
        return df

    @staticmethod
    def _is_empty(df: pd.DataFrame, report: str) -> bool:
        if len(df) > 0:
            return False
        message = f"{report}: keine Eingabezeilen - leeres Ergebnis"
        warnings.warn(message, EmptyInputWarning, stacklevel=3)
        logger.warning(message)
        return True

    def _check_referential_integrity(self, lines: pd.DataFrame) -> None:
        known_orders = set(self._orders["order_id"].tolist())
        known_products = set(self._products["product_id"].tolist())

        missing_orders = set(lines["order_id"].tolist()) - known_orders
        missing_products = set(lines["product_id"].tolist()) - known_products

        if missing_orders or missing_products:
            logger.error(
                f"Integritätsfehler: {len(missing_orders)} unbekannte Bestellungen, "
                f"{len(missing_products)} unbekannte Produkte"
            )
            raise ReferentialIntegrityError(missing_orders, missing_products)

    def _check_unique_keys(self) -> None:
        """order_id und product_id müssen eindeutig sein, sonst vervielfacht der Join Positionen."""
        for table, df, column in (
            ("orders", self._orders, "order_id"),
            ("products", self._products, "product_id"),
        ):
            duplicated = df.loc[df[column].duplicated(), column]
            if len(duplicated) > 0:
                logger.error(f"Schlüsselfehler: {len(duplicated)} doppelte {column} in {table}")
                raise DuplicateKeyError(table, column, duplicated.tolist())

    # ─────────────────────────────────────────────
    # A) KANAL-REPORTS (Header-Umsatz)
    # ─────────────────────────────────────────────

    def revenue_by_channel(self) -> pd.DataFrame:
        """Summe total_due je Kanal. Kanäle ohne Bestellung fehlen im Ergebnis."""
        name = "revenue_by_channel"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        out = (
            self._orders.groupby("sales_channel", observed=True)["total_due"]
            .sum()
            .reset_index(name="total_revenue")
        )
        return _finalize(out, name)

    def order_count_by_channel(self) -> pd.DataFrame:
        name = "order_count_by_channel"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        out = (
            self._orders.groupby("sales_channel", observed=True)["order_id"]
            .count()
            .reset_index(name="order_count")
        )
        return _finalize(out, name)

    def average_order_value_by_channel(self) -> pd.DataFrame:
        """
        Ø Bestellwert = Kanal-Umsatz / Kanal-Bestellanzahl.

        Gruppen entstehen nur aus beobachteten Bestellungen, der Divisor
        ist also nie 0.
        """
        name = "average_order_value_by_channel"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        out = self._orders.groupby("sales_channel", observed=True).agg(
            revenue=("total_due", "sum"),
            orders=("order_id", "count"),
        ).reset_index()
        out["avg_order_value"] = out["revenue"] / out["orders"]
        return _finalize(out, name)

    def repeat_customer_count_by_channel(self) -> pd.DataFrame:
        """
        Anzahl Kunden je Kanal, die als Wiederkäufer gelten.

        Modus "literal": distinct customer_id je Kanal, aber nur für Kanäle
        mit mehr als einer Bestellung insgesamt. Der Filter greift auf die
        Kanal-Bestellanzahl, nicht auf Bestellungen je Kunde; zwei
        Einmalkäufer im selben Kanal zählen also beide.

        Modus "per_customer": distinct Kunden mit mindestens zwei
        Bestellungen im Kanal. Kanäle ohne solche Kunden fehlen.

        Returns:
            DataFrame [sales_channel, repeat_customers]
        """
        name = "repeat_customer_count_by_channel"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        if self.repeat_customer_mode == "literal":
            grouped = self._orders.groupby("sales_channel", observed=True).agg(
                order_count=("order_id", "count"),
                repeat_customers=("customer_id", "nunique"),
            ).reset_index()
            out = grouped[grouped["order_count"] > 1]
        else:
            per_customer = (
                self._orders.groupby(["sales_channel", "customer_id"], observed=True)["order_id"]
                .count()
                .reset_index(name="orders")
            )
            repeaters = per_customer[per_customer["orders"] >= 2]
            out = (
                repeaters.groupby("sales_channel", observed=True)["customer_id"]
                .nunique()
                .reset_index(name="repeat_customers")
            )
        return _finalize(out, name)

    # ─────────────────────────────────────────────
    # B) PRODUKT-REPORT (Positions-Umsatz)
    # ─────────────────────────────────────────────

    def product_performance(self) -> pd.DataFrame:
        """
        Menge und Positions-Umsatz je (Produkt, Kanal der Bestellung).

        Ein Produkt erscheint einmal je Kanal, in dem es verkauft wurde.
        Sortierung: total_quantity_sold absteigend; Gleichstände bleiben
        stabil in (product_id, Kanal)-Reihenfolge.

        Raises:
            ReportError: Positionen oder Produkte wurden nicht übergeben
            ReferentialIntegrityError: Position verweist ins Leere
            DuplicateKeyError: order_id oder product_id ist nicht eindeutig
        """
        name = "product_performance"
        if self._order_lines is None or self._products is None:
            raise ReportError(
                f"{name} benötigt order_lines und products - nicht übergeben"
            )

        lines = self._order_lines
        self._check_referential_integrity(lines)
        self._check_unique_keys()
        if self._is_empty(lines, name):
            return _empty_report(name)

        merged = lines[["order_id", "product_id", "order_qty", "line_total"]].merge(
            self._orders[["order_id", "sales_channel"]],
            on="order_id", how="inner", validate="many_to_one",
        )

        # Gruppiert wird nur über Schlüssel; der Name kann NULL sein
        out = merged.groupby(
            ["product_id", "sales_channel"], observed=True, sort=True
        ).agg(
            total_quantity_sold=("order_qty", "sum"),
            total_revenue=("line_total", "sum"),
        ).reset_index()

        names = self._products.set_index("product_id")["name"]
        out["product_name"] = out["product_id"].map(names)
        out = out.sort_values("total_quantity_sold", ascending=False, kind="mergesort")
        return _finalize(out, name)

    # ─────────────────────────────────────────────
    # C) ZEITREIHEN-REPORTS
    # ─────────────────────────────────────────────

    def seasonal_trends(self) -> pd.DataFrame:
        """Umsatz, Bestellungen und Ø Transaktionswert je (Jahr, Monat, Kanal)."""
        name = "seasonal_trends"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        out = self._orders.groupby(
            ["year", "month", "sales_channel"], observed=True, sort=True
        ).agg(
            total_revenue=("total_due", "sum"),
            total_orders=("order_id", "count"),
        ).reset_index()
        out["avg_transaction_value"] = out["total_revenue"] / out["total_orders"]
        return _finalize(out, name)

    def best_worst_month_by_year(self) -> pd.DataFrame:
        """
        Bester und schwächster Monat je Jahr (beide Kanäle zusammen).

        Statt Window-Ranking: expliziter Sort je Jahr. Bei Umsatz-Gleichstand
        gewinnt in beiden Rankings der kleinere Monat.
        """
        name = "best_worst_month_by_year"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        monthly = (
            self._orders.groupby(["year", "month"])["total_due"]
            .sum()
            .reset_index(name="revenue")
        )

        rows = []
        for year, group in monthly.groupby("year", sort=True):
            best = group.sort_values(["revenue", "month"], ascending=[False, True]).iloc[0]
            worst = group.sort_values(["revenue", "month"], ascending=[True, True]).iloc[0]
            rows.append({
                "year": int(year),
                "best_month": int(best["month"]),
                "worst_month": int(worst["month"]),
                "best_revenue": float(best["revenue"]),
                "worst_revenue": float(worst["revenue"]),
            })

        return _finalize(pd.DataFrame(rows, columns=REPORT_COLUMNS[name]), name)

    def quarterly_revenue_by_year(self) -> pd.DataFrame:
        name = "quarterly_revenue_by_year"
        if self._is_empty(self._orders, name):
            return _empty_report(name)

        # "Q1" < "Q2" < ... lexikografisch = numerisch
        out = (
            self._orders.groupby(["year", "quarter"], sort=True)["total_due"]
            .sum()
            .reset_index(name="total_revenue")
        )
        return _finalize(out, name)

    # ─────────────────────────────────────────────
    # ALLE REPORTS
    # ─────────────────────────────────────────────

    def run_all(self, parallel: bool = False, max_workers: Optional[int] = None) -> ReportRun:
        """
        Berechnet alle acht Reports unabhängig voneinander.

        Ein fehlschlagender Report (z.B. Integritätsfehler im Produkt-Report)
        wird in ReportRun.errors vermerkt, die übrigen laufen weiter.

        Args:
            parallel: Reports in einem ThreadPoolExecutor berechnen
            max_workers: Thread-Anzahl, default: ein Thread je Report

        Returns:
            ReportRun mit results und errors
        """
        run = ReportRun()

        if parallel:
            with ThreadPoolExecutor(max_workers=max_workers or len(REPORT_NAMES)) as pool:
                futures = {name: pool.submit(getattr(self, name)) for name in REPORT_NAMES}
                for name, future in futures.items():
                    try:
                        run.results[name] = future.result()
                    except ReportError as e:
                        logger.error(f"  ✗ {name}: {e}")
                        run.errors[name] = e
        else:
            for name in REPORT_NAMES:
                try:
                    run.results[name] = getattr(self, name)()
                except ReportError as e:
                    logger.error(f"  ✗ {name}: {e}")
                    run.errors[name] = e

        logger.info(f"Reports berechnet: {len(run.results)}/{len(REPORT_NAMES)}")
        return run
