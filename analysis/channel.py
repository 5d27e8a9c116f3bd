"""
analysis/channel.py - Vertriebskanal als Aufzählungstyp.

Der Kanal wird aus dem Online-Flag einer Bestellung abgeleitet und nie
gespeichert. Ein Enum statt freier Strings verhindert, dass sich
Schreibweisen zwischen einzelnen Reports auseinanderentwickeln.
"""

from enum import Enum

import pandas as pd


class Channel(str, Enum):
    ONLINE = "Online"
    IN_STORE = "In-Store"

    def __str__(self) -> str:
        return self.value


# Reihenfolge der Kanäle in allen Report-Ausgaben
CHANNEL_ORDER = [Channel.ONLINE.value, Channel.IN_STORE.value]


def _normalise_flag(is_online):
    if isinstance(is_online, str):
        try:
            return float(is_online.strip())
        except ValueError:
            return None
    return is_online


def classify_channel(is_online) -> Channel:
    """
    Online-Flag → Kanal.

    Online ist nur ein Flag mit Wert 1 (True, 1, "1"), wie in den
    SQL-Queries (online_order_flag = 1). Alles andere, auch NULL,
    "0" und nicht-numerische Strings, zählt als In-Store.
    """
    flag = _normalise_flag(is_online)
    if flag is None or pd.isna(flag):
        return Channel.IN_STORE
    return Channel.ONLINE if flag == 1 else Channel.IN_STORE


def channel_series(online_flags: pd.Series) -> pd.Series:
    """
    Vektorisierte Variante von classify_channel() für eine ganze Spalte.

    Liefert eine kategoriale Series mit fester Kategorie-Reihenfolge
    (Online vor In-Store), damit groupby() deterministisch sortiert.
    """
    labels = [classify_channel(flag).value for flag in online_flags]
    return pd.Series(
        pd.Categorical(labels, categories=CHANNEL_ORDER, ordered=True),
        index=online_flags.index,
        name="sales_channel",
    )
