"""
database/setup_db.py - Datenbank-Setup & synthetische Verkaufsdaten.

Legt das feste Retail-Schema an (Bestellköpfe, Bestellpositionen,
Produkte) und befüllt es mit einem reproduzierbaren Dataset:
- Saisonalität (Q4-Boost, Januar-Delle, Sommerloch)
- Wachstumstrend (~2% MoM)
- Online vs. In-Store mit kundenspezifischer Kanal-Affinität
- Header-Total = Positionssumme + Steuer + Fracht (≠ Summe line_total)
"""

import sqlite3
import logging
import random
import numpy as np
from pathlib import Path
from datetime import datetime, timedelta
from typing import Optional

from config import DataGenerationConfig

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# Produkt-Master (id, name, list_price)
# ─────────────────────────────────────────────
PRODUCTS = [
    (1,  "Road-150 Red 52",          3578.27),
    (2,  "Mountain-200 Black 42",    2294.99),
    (3,  "Touring-1000 Blue 50",     2384.07),
    (4,  "Road-650 Black 58",         782.99),
    (5,  "HL Mountain Frame",        1349.60),
    (6,  "Sport-100 Helmet Red",       34.99),
    (7,  "Sport-100 Helmet Black",     34.99),
    (8,  "Mountain Bike Socks M",       9.50),
    (9,  "Long-Sleeve Logo Jersey L",  49.99),
    (10, "Short-Sleeve Classic Jersey", 53.99),
    (11, "Water Bottle 30 oz",          4.99),
    (12, "Mountain Bottle Cage",        9.99),
    (13, "Patch Kit 8 Patches",         2.29),
    (14, "HL Road Tire",               32.60),
    (15, "Fender Set - Mountain",      21.98),
    (16, "Hydration Pack 70 oz",       54.99),
]

# Zubehör wird häufiger und in größeren Mengen gekauft als Räder
ACCESSORY_IDS = [p[0] for p in PRODUCTS if p[2] < 100]
BIKE_IDS = [p[0] for p in PRODUCTS if p[2] >= 100]

SCHEMA_SQL = """
    DROP TABLE IF EXISTS order_lines;
    DROP TABLE IF EXISTS orders;
    DROP TABLE IF EXISTS products;

    CREATE TABLE products (
        product_id  INTEGER PRIMARY KEY,
        name        TEXT    NOT NULL,
        list_price  REAL    NOT NULL
    );

    CREATE TABLE orders (
        order_id          INTEGER PRIMARY KEY,
        customer_id       INTEGER NOT NULL,
        order_date        TEXT    NOT NULL,
        online_order_flag INTEGER NOT NULL,
        total_due         REAL    NOT NULL CHECK (total_due >= 0)
    );

    CREATE TABLE order_lines (
        order_line_id INTEGER PRIMARY KEY,
        order_id      INTEGER NOT NULL REFERENCES orders(order_id),
        product_id    INTEGER NOT NULL REFERENCES products(product_id),
        order_qty     INTEGER NOT NULL CHECK (order_qty > 0),
        line_total    REAL    NOT NULL CHECK (line_total >= 0)
    );

    CREATE INDEX idx_orders_date     ON orders(order_date);
    CREATE INDEX idx_orders_customer ON orders(customer_id);
    CREATE INDEX idx_lines_order     ON order_lines(order_id);
    CREATE INDEX idx_lines_product   ON order_lines(product_id);
"""


def _get_seasonality_factor(date: datetime) -> float:
    """
    Saisonaler Umsatz-Multiplikator je Monat.

    Args:
        date: Das zu bewertende Datum

    Returns:
        Multiplikator zwischen 0.75 und 1.5
    """
    seasonal_base = {
        1: 0.78,   # Januar-Delle
        2: 0.82,
        3: 0.95,
        4: 1.05,   # Saisonstart Fahrrad
        5: 1.15,
        6: 1.10,
        7: 0.95,   # Urlaub
        8: 0.90,
        9: 1.00,
        10: 1.05,
        11: 1.30,  # Vorweihnacht
        12: 1.50,  # Hochsaison
    }
    return seasonal_base.get(date.month, 1.0)


def _get_growth_factor(date: datetime, start_date: datetime) -> float:
    """Kumulativer Wachstumsfaktor (2% MoM compound growth)."""
    months_elapsed = (
        (date.year - start_date.year) * 12 +
        (date.month - start_date.month)
    )
    return 1.02 ** max(0, months_elapsed)


def generate_customers(n: int = 400, online_share: float = 0.6, seed: int = 42) -> list[tuple]:
    """
    Generiert Kunden mit Kanal-Affinität.

    Die Affinität ist die Wahrscheinlichkeit, dass eine Bestellung des
    Kunden online aufgegeben wird. Kunden sind tendenziell kanaltreu.

    Returns:
        Liste von (customer_id, online_affinity) Tuples
    """
    random.seed(seed)
    customers = []
    for i in range(1, n + 1):
        if random.random() < online_share:
            affinity = random.uniform(0.7, 0.95)
        else:
            affinity = random.uniform(0.05, 0.3)
        customers.append((i, round(affinity, 3)))
    return customers


def generate_orders(
    customers: list[tuple],
    config: Optional[DataGenerationConfig] = None,
) -> tuple[list[tuple], list[tuple]]:
    """
    Generiert Bestellköpfe und Bestellpositionen.

    Args:
        customers: Ergebnis von generate_customers()
        config: Zeitraum, Seed, Steuersatz, max. Positionen je Bestellung

    Returns:
        (orders, order_lines) als Listen von Tuples in Tabellen-Spaltenreihenfolge

    Example:
        >>> orders, lines = generate_orders(generate_customers(50))
        >>> len(lines) >= len(orders)
        True
    """
    config = config or DataGenerationConfig()
    random.seed(config.seed)
    np.random.seed(config.seed)

    start_dt = datetime.strptime(config.start, "%Y-%m-%d")
    end_dt = datetime.strptime(config.end, "%Y-%m-%d")
    total_days = (end_dt - start_dt).days
    years = max(1, round(total_days / 365))
    prices = {p[0]: p[2] for p in PRODUCTS}

    orders = []
    order_lines = []
    order_id = 1
    line_id = 1

    for cust_id, online_affinity in customers:
        n_orders = max(1, int(np.random.poisson(3 * years)))

        for _ in range(n_orders):
            order_date = start_dt + timedelta(days=random.randint(0, total_days))
            is_online = random.random() < online_affinity
            factor = _get_seasonality_factor(order_date) * _get_growth_factor(order_date, start_dt)

            subtotal = 0.0
            n_lines = random.randint(1, config.max_lines_per_order)
            for _ in range(n_lines):
                # In-Store verkauft öfter Räder, Online überwiegend Zubehör
                bike_prob = 0.15 if is_online else 0.35
                product_id = random.choice(BIKE_IDS if random.random() < bike_prob else ACCESSORY_IDS)
                qty = int(np.random.poisson(1.0)) + 1
                noise = max(0.5, np.random.normal(1.0, 0.05))
                line_total = round(prices[product_id] * qty * factor * noise, 2)

                order_lines.append((line_id, order_id, product_id, qty, line_total))
                subtotal += line_total
                line_id += 1

            freight = subtotal * 0.025
            total_due = round(subtotal * (1 + config.tax_rate) + freight, 2)
            orders.append((
                order_id,
                cust_id,
                order_date.strftime("%Y-%m-%d"),
                int(is_online),
                total_due,
            ))
            order_id += 1

    logger.info(
        f"Generiert: {len(orders):,} Bestellungen / {len(order_lines):,} Positionen "
        f"für {len(customers)} Kunden"
    )
    return orders, order_lines


def create_schema(conn: sqlite3.Connection) -> None:
    """Legt die drei Tabellen (neu) an."""
    conn.executescript(SCHEMA_SQL)


def load_rows(
    conn: sqlite3.Connection,
    products: list[tuple],
    orders: list[tuple],
    order_lines: list[tuple],
) -> None:
    """Schreibt Tuples in die Tabellen; Reihenfolge wie im Schema."""
    conn.executemany("INSERT INTO products VALUES (?, ?, ?)", products)
    conn.executemany("INSERT INTO orders VALUES (?, ?, ?, ?, ?)", orders)
    conn.executemany("INSERT INTO order_lines VALUES (?, ?, ?, ?, ?)", order_lines)
    conn.commit()


def setup_database(
    db_path: Path,
    config: Optional[DataGenerationConfig] = None,
    force_recreate: bool = False,
) -> bool:
    """
    Erstellt SQLite-Datenbank mit Schema und lädt Beispieldaten.

    Idempotent: Existiert die DB bereits, wird sie übersprungen
    (außer force_recreate=True).

    Args:
        db_path: Pfad zur SQLite-Datenbankdatei
        config: Parameter der Datengenerierung
        force_recreate: DB löschen und neu aufbauen wenn True

    Returns:
        True wenn erfolgreich, False bei Fehler
    """
    config = config or DataGenerationConfig()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    if db_path.exists() and not force_recreate:
        logger.info(f"Datenbank bereits vorhanden: {db_path}")
        return True

    logger.info(f"Erstelle Datenbank: {db_path}")

    try:
        conn = sqlite3.connect(db_path)
        try:
            create_schema(conn)
            logger.info("Schema erstellt")

            customers = generate_customers(
                n=config.n_customers, online_share=config.online_share, seed=config.seed
            )
            orders, order_lines = generate_orders(customers, config)
            load_rows(conn, PRODUCTS, orders, order_lines)
            logger.info(
                f"Geladen: {len(PRODUCTS)} Produkte, {len(orders):,} Bestellungen, "
                f"{len(order_lines):,} Positionen"
            )
        finally:
            conn.close()

        logger.info("✅ Datenbank-Setup abgeschlossen")
        return True

    except sqlite3.Error as e:
        logger.error(f"Fehler beim Datenbank-Setup: {e}")
        if db_path.exists():
            db_path.unlink()
        return False
