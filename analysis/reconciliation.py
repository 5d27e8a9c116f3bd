"""
analysis/reconciliation.py - Gegenprobe: Pandas-Engine vs. SQL.

Jeder Report existiert zweimal: als Pandas-Aggregation in der
ReportEngine und als SQL-Konstante in database/queries.py. Auf derselben
Datenbank müssen beide dasselbe liefern. Abweichungen deuten auf einen
Fehler in einer der beiden Varianten hin.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from database.queries import REPORT_QUERIES, REPEAT_CUSTOMER_COUNT_BY_CHANNEL_PER_CUSTOMER
from utils.helpers import load_query

logger = logging.getLogger(__name__)

# Sortierschlüssel für den Vergleich: SQL liefert teils ohne ORDER BY
_SORT_KEYS = {
    "revenue_by_channel":               ["sales_channel"],
    "order_count_by_channel":           ["sales_channel"],
    "average_order_value_by_channel":   ["sales_channel"],
    "repeat_customer_count_by_channel": ["sales_channel"],
    "product_performance":              ["product_name", "sales_channel"],
    "seasonal_trends":                  ["year", "month", "sales_channel"],
    "best_worst_month_by_year":         ["year"],
    "quarterly_revenue_by_year":        ["year", "quarter"],
}


def frames_match(left: pd.DataFrame, right: pd.DataFrame, sort_keys: list, rtol: float = 1e-6) -> bool:
    """
    Vergleicht zwei Report-Frames unabhängig von Zeilenreihenfolge.

    Numerische Spalten mit relativer Toleranz (Float-Summen), alle
    anderen exakt.
    """
    if list(left.columns) != list(right.columns) or len(left) != len(right):
        return False

    left = left.sort_values(sort_keys).reset_index(drop=True)
    right = right.sort_values(sort_keys).reset_index(drop=True)

    for column in left.columns:
        a, b = left[column], right[column]
        if pd.api.types.is_numeric_dtype(a) and pd.api.types.is_numeric_dtype(b):
            if not np.allclose(a.astype(float), b.astype(float), rtol=rtol):
                return False
        elif not (a.astype(str) == b.astype(str)).all():
            return False
    return True


def reconcile_with_sql(results: dict, db_path: Path, repeat_customer_mode: str = "literal") -> dict:
    """
    Führt die SQL-Variante jedes berechneten Reports aus und vergleicht.

    Args:
        results: Report-Name → DataFrame aus der Engine
        db_path: SQLite-Datenbank, aus der die Engine-Eingaben stammen
        repeat_customer_mode: muss zum Modus der Engine passen

    Returns:
        Report-Name → True/False (übereinstimmend)
    """
    queries = dict(REPORT_QUERIES)
    if repeat_customer_mode == "per_customer":
        queries["repeat_customer_count_by_channel"] = REPEAT_CUSTOMER_COUNT_BY_CHANNEL_PER_CUSTOMER

    outcome = {}
    for name, engine_df in results.items():
        sql_df = load_query(db_path, queries[name])
        outcome[name] = frames_match(engine_df, sql_df, _SORT_KEYS[name])
        if outcome[name]:
            logger.info(f"  ✓ {name:<34}: SQL = Engine")
        else:
            logger.warning(f"  ⚠ {name:<34}: Abweichung SQL ↔ Engine")

    return outcome
