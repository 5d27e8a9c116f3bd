"""
utils/helpers.py - Allgemeine Hilfsfunktionen für die Pipeline.

Sammlung kleiner, wiederverwendbarer Funktionen die in mehreren
Pipeline-Phasen benötigt werden: Logging, DB-Zugriff, Validierung.
"""

import logging
import sqlite3
import sys
from pathlib import Path
from typing import Optional

import pandas as pd

from database.queries import ORDERS_TABLE, ORDER_LINES_TABLE, PRODUCTS_TABLE


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Konfiguriert Logging für die gesamte Pipeline.

    Zweistufiges Logging: Console (level) + optionale Datei (DEBUG).
    Bereits registrierte Handler werden ersetzt, damit ein zweiter
    Aufruf keine doppelten Zeilen erzeugt.

    Args:
        level: Log-Level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional: Pfad zur Log-Datei
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Zeitstempel | Level | Modul | Nachricht
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s",
        datefmt="%H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Drittanbieter-Logger auf WARNING setzen (weniger Noise)
    for noisy_lib in ["matplotlib", "PIL", "fontTools"]:
        logging.getLogger(noisy_lib).setLevel(logging.WARNING)


def load_query(db_path: Path, query: str, params: tuple = ()) -> pd.DataFrame:
    """
    Führt SQL-Query aus und gibt DataFrame zurück.

    Args:
        db_path: Pfad zur SQLite-Datenbankdatei
        query: SQL-Query-String
        params: Query-Parameter (für parametrisierte Queries)

    Returns:
        DataFrame mit Query-Ergebnissen

    Raises:
        FileNotFoundError: Wenn Datenbankdatei nicht existiert
        sqlite3.Error: Bei SQL-Fehlern
    """
    if not db_path.exists():
        raise FileNotFoundError(f"Datenbank nicht gefunden: {db_path}")

    conn = sqlite3.connect(db_path)
    try:
        return pd.read_sql_query(query, conn, params=params)
    finally:
        conn.close()


def load_tables(db_path: Path) -> dict:
    """
    Liest die drei Quelltabellen der Report-Engine.

    Returns:
        {"orders": DataFrame, "order_lines": DataFrame, "products": DataFrame}
    """
    return {
        "orders":      load_query(db_path, ORDERS_TABLE),
        "order_lines": load_query(db_path, ORDER_LINES_TABLE),
        "products":    load_query(db_path, PRODUCTS_TABLE),
    }


def validate_dataframe(
    df: pd.DataFrame,
    name: str,
    required_columns: list[str],
    min_rows: int = 1
) -> bool:
    """
    Validiert DataFrame-Struktur und Mindestgröße.

    Args:
        df: Zu validierender DataFrame
        name: Name für Fehlermeldungen
        required_columns: Liste benötigter Spalten
        min_rows: Minimale Zeilenanzahl

    Returns:
        True wenn valide, False bei Problemen (mit Logging)
    """
    logger = logging.getLogger(__name__)

    if df is None:
        logger.error(f"Validation fehlgeschlagen [{name}]: kein DataFrame")
        return False

    missing = [c for c in required_columns if c not in df.columns]
    if missing:
        logger.error(f"Validation fehlgeschlagen [{name}]: Spalten fehlen: {missing}")
        return False

    if len(df) < min_rows:
        logger.warning(f"Validation [{name}]: Nur {len(df)} Zeilen (Minimum: {min_rows})")
        return False

    return True


def print_pipeline_summary(result) -> None:
    """
    Gibt abschließende Pipeline-Zusammenfassung auf Console aus.

    Args:
        result: PipelineResult Objekt
    """
    print("\n" + "=" * 60)
    print("  PIPELINE ABGESCHLOSSEN")
    print("=" * 60)

    if result.success:
        print("  ✅ Status: ERFOLGREICH")
        print(f"  ⏱  Laufzeit: {result.duration_seconds:.1f} Sekunden")
        print(f"  📊 Phasen: {' → '.join(result.phases_completed)}")

        if result.failed_reports:
            print()
            print("  ⚠  FEHLGESCHLAGENE REPORTS:")
            for name, message in result.failed_reports.items():
                print(f"    {name:<34}: {message}")

        print()
        print("  📁 OUTPUT-DATEIEN:")
        for file_type, path in result.output_files.items():
            if path:
                size_kb = Path(path).stat().st_size / 1024 if Path(path).exists() else 0
                print(f"    {file_type:<34}: {Path(path).name} ({size_kb:.1f} KB)")

        if result.kpi_summary:
            rev = result.kpi_summary.get("revenue", {})
            print()
            print("  💰 KEY METRICS:")
            print(f"    Gesamtumsatz:   €{rev.get('total', 0):>12,.2f}")
            print(f"    Bestellungen:    {rev.get('total_orders', 0):>12,}")
    else:
        print("  ❌ Status: FEHLGESCHLAGEN")
        if result.error_message:
            print(f"  💥 Fehler: {result.error_message}")

    print("=" * 60 + "\n")
