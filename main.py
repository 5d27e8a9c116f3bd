"""
main.py - Kanal-Report Pipeline: Einstiegspunkt & Orchestrierung.

Orchestriert die Phasen der Pipeline:
  1. Setup     → SQLite-Datenbank + Schema + Beispieldaten
  2. Extract   → Bestellungen, Positionen, Produkte → DataFrames
  3. Compute   → acht Kanal-Reports über die ReportEngine + KPIs
  4. Verify    → optional: Gegenprobe der Reports per SQL
  5. Visualize → Charts
  6. Report    → Text, CSV und Excel

Verwendung:
  python main.py                          # Standard-Pipeline
  python main.py --parallel               # Reports parallel berechnen
  python main.py --repeat-mode per_customer
  python main.py --verify-sql             # Engine gegen SQL prüfen
  python main.py --log-level DEBUG        # Verbose Logging
  python main.py --force-recreate-db      # DB neu aufbauen
"""

import argparse
import copy
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from config import PipelineConfig, PipelineResult, DEFAULT_CONFIG
from database.setup_db import setup_database
from analysis.report_engine import ReportEngine, ReportRun, REPEAT_CUSTOMER_MODES, REQUIRED_COLUMNS
from analysis.kpi_calculator import calculate_kpis, format_kpi_for_display
from analysis.reconciliation import reconcile_with_sql
from visualization.charts import create_all_charts
from reporting.report_generator import export_csv_reports, generate_text_report, generate_excel_report
from utils.helpers import setup_logging, load_tables, validate_dataframe, print_pipeline_summary

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# CLI ARGUMENT PARSER
# ─────────────────────────────────────────────

def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parst CLI-Argumente für flexible Pipeline-Konfiguration.

    Args:
        argv: Argumentliste, default: sys.argv[1:]

    Returns:
        Parsed Namespace mit allen Argumenten
    """
    parser = argparse.ArgumentParser(
        description="Kanal-Report Pipeline - Online vs. In-Store Verkaufsanalysen",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Beispiele:
  python main.py                          Standard-Pipeline (alle Phasen)
  python main.py --parallel               Reports parallel berechnen
  python main.py --verify-sql             Engine-Ergebnisse per SQL gegenprüfen
  python main.py --skip-charts            Schnell (ohne Visualisierungen)
        """
    )

    parser.add_argument(
        "--force-recreate-db",
        action="store_true",
        help="Datenbank löschen und neu aufbauen (neue Testdaten)"
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="Alternative SQLite-Datenbank"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Alternatives Output-Verzeichnis"
    )
    parser.add_argument(
        "--repeat-mode",
        choices=REPEAT_CUSTOMER_MODES,
        default=None,
        help="Wiederkäufer-Logik: literal (Kanal-Bestellanzahl > 1) oder per_customer"
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Reports in einem Thread-Pool berechnen"
    )
    parser.add_argument(
        "--verify-sql",
        action="store_true",
        help="Reports zusätzlich per SQL berechnen und vergleichen"
    )
    parser.add_argument(
        "--skip-charts",
        action="store_true",
        help="Visualisierungen überspringen (schnellerer Durchlauf)"
    )
    parser.add_argument(
        "--skip-excel",
        action="store_true",
        help="Excel-Export überspringen"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging-Level (default: INFO)"
    )

    return parser.parse_args(argv)


# ─────────────────────────────────────────────
# PIPELINE PHASEN
# ─────────────────────────────────────────────

def phase1_setup(config: PipelineConfig, force_recreate: bool = False) -> bool:
    """Phase 1: Datenbank anlegen, falls noch nicht vorhanden (idempotent)."""
    logger.info("📦 Phase 1/6: Datenbank Setup...")
    success = setup_database(config.db_path, config.data, force_recreate=force_recreate)
    if success:
        logger.info(f"  ✓ Datenbank bereit: {config.db_path}")
    return success


def phase2_extract(config: PipelineConfig) -> Optional[dict]:
    """
    Phase 2: Die drei Quelltabellen lesen.

    Returns:
        Dict mit orders / order_lines / products, None bei Fehlern
    """
    logger.info("🔍 Phase 2/6: Daten extrahieren...")
    try:
        tables = load_tables(config.db_path)
    except Exception as e:
        logger.error(f"  ✗ Extraktion fehlgeschlagen: {e}")
        return None

    for name, df in tables.items():
        if not validate_dataframe(df, name, REQUIRED_COLUMNS[name], min_rows=0):
            return None
        logger.info(f"  ✓ {name:<12}: {len(df):>7,} Zeilen")
    return tables


def phase3_compute(tables: dict, config: PipelineConfig) -> tuple[ReportRun, dict]:
    """
    Phase 3: Alle Reports berechnen und KPIs verdichten.

    Ein fehlschlagender Report landet in ReportRun.errors; die übrigen
    Reports und die KPI-Berechnung laufen weiter.

    Returns:
        (ReportRun, KPI-Dictionary)
    """
    logger.info("📊 Phase 3/6: Reports berechnen...")
    engine = ReportEngine(
        tables["orders"],
        order_lines=tables["order_lines"],
        products=tables["products"],
        repeat_customer_mode=config.analysis.repeat_customer_mode,
    )
    run = engine.run_all(parallel=config.analysis.parallel)

    for name, df in run.results.items():
        logger.info(f"  ✓ {name:<34}: {len(df):>5,} Zeilen")

    kpis = calculate_kpis(run.results)
    return run, kpis


def phase4_verify(run: ReportRun, config: PipelineConfig) -> bool:
    """Phase 4: Engine-Ergebnisse gegen die SQL-Varianten prüfen."""
    logger.info("🔎 Phase 4/6: Gegenprobe per SQL...")
    outcome = reconcile_with_sql(run.results, config.db_path, config.analysis.repeat_customer_mode)
    matched = sum(outcome.values())
    logger.info(f"  → {matched}/{len(outcome)} Reports identisch")
    return matched == len(outcome)


def phase5_visualize(run: ReportRun, config: PipelineConfig, skip: bool = False) -> dict:
    """Phase 5: Charts erstellen. Gibt {chart_name: Path} zurück."""
    if skip:
        logger.info("🎨 Phase 5/6: Charts übersprungen (--skip-charts)")
        return {}

    logger.info("🎨 Phase 5/6: Charts werden erstellt...")
    chart_paths = create_all_charts(
        run.results,
        config=config.visualization,
        output_dir=config.output_dir,
        top_n_products=config.analysis.top_n_products,
    )
    logger.info(f"  → {len(chart_paths)} Charts erstellt")
    return chart_paths


def phase6_report(
    run: ReportRun,
    kpis: dict,
    chart_paths: dict,
    config: PipelineConfig,
    skip_excel: bool = False
) -> dict:
    """
    Phase 6: CSV-, Text- und Excel-Export.

    Returns:
        Dictionary {output_name: Path}
    """
    logger.info("📝 Phase 6/6: Reports werden exportiert...")
    output_files = {}

    try:
        output_files.update(export_csv_reports(run.results, config.output_dir, config.export))
    except Exception as e:
        logger.error(f"  ✗ CSV-Export fehlgeschlagen: {e}")

    try:
        text_path = generate_text_report(
            results=run.results,
            kpis=kpis,
            kpi_formatted=format_kpi_for_display(kpis),
            config=config,
            output_dir=config.output_dir,
            errors=run.errors,
        )
        output_files["text_report"] = text_path
        logger.info(f"  ✓ Text-Report: {text_path.name}")
    except Exception as e:
        logger.error(f"  ✗ Text-Report fehlgeschlagen: {e}")

    if not skip_excel:
        try:
            excel_path = generate_excel_report(run.results, kpis, config, config.output_dir)
            output_files["excel_report"] = excel_path
            logger.info(f"  ✓ Excel-Report: {excel_path.name}")
        except Exception as e:
            logger.error(f"  ✗ Excel-Report fehlgeschlagen: {e}")

    output_files.update(chart_paths)
    logger.info(f"  → {len(output_files)} Output-Dateien generiert")
    return output_files


# ─────────────────────────────────────────────
# PIPELINE ORCHESTRIERUNG
# ─────────────────────────────────────────────

def run_pipeline(config: PipelineConfig, args: argparse.Namespace) -> PipelineResult:
    """
    Orchestriert die komplette Pipeline.

    Args:
        config: PipelineConfig mit allen Einstellungen
        args: Parsed CLI-Argumente

    Returns:
        PipelineResult mit Status, Dateipfaden und KPI-Summary
    """
    start_time = datetime.now()
    result = PipelineResult(success=False, start_time=start_time)

    logger.info("🚀 Kanal-Report Pipeline gestartet")
    logger.info(f"   Datenbank:   {config.db_path}")
    logger.info(f"   Output:      {config.output_dir}")
    logger.info(f"   Wiederkäufer: {config.analysis.repeat_customer_mode}")

    try:
        if not phase1_setup(config, force_recreate=args.force_recreate_db):
            result.error_message = "Datenbank-Setup fehlgeschlagen"
            return result
        result.phases_completed.append("Setup")

        tables = phase2_extract(config)
        if tables is None:
            result.error_message = "Daten-Extraktion fehlgeschlagen"
            return result
        result.phases_completed.append("Extract")

        run, kpis = phase3_compute(tables, config)
        result.phases_completed.append("Compute")
        result.kpi_summary = kpis
        result.failed_reports = {name: str(e) for name, e in run.errors.items()}

        if args.verify_sql:
            if not phase4_verify(run, config):
                logger.warning("Gegenprobe mit Abweichungen - Pipeline läuft weiter")
            result.phases_completed.append("Verify")

        chart_paths = phase5_visualize(run, config, skip=args.skip_charts)
        result.phases_completed.append("Visualize")

        output_files = phase6_report(run, kpis, chart_paths, config, skip_excel=args.skip_excel)
        result.phases_completed.append("Report")
        result.output_files = {k: str(v) for k, v in output_files.items() if v}

        result.success = True
        result.end_time = datetime.now()
        logger.info(f"✅ Pipeline erfolgreich in {result.duration_seconds:.1f}s abgeschlossen")

    except Exception as e:
        logger.exception(f"💥 Unerwarteter Pipeline-Fehler: {e}")
        result.error_message = str(e)
        result.end_time = datetime.now()

    return result


# ─────────────────────────────────────────────
# EINSTIEGSPUNKT
# ─────────────────────────────────────────────

def main(argv: Optional[list] = None) -> int:
    """
    Haupt-Einstiegspunkt mit CLI-Integration.

    Returns:
        Exit-Code: 0 = Erfolg, 1 = Fehler
    """
    args = parse_args(argv)

    config = copy.deepcopy(DEFAULT_CONFIG)
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.db_path:
        config.db_path = args.db_path
    if args.repeat_mode:
        config.analysis.repeat_customer_mode = args.repeat_mode
    if args.parallel:
        config.analysis.parallel = True

    config.output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(level=args.log_level, log_file=config.output_dir / "pipeline.log")

    result = run_pipeline(config, args)
    print_pipeline_summary(result)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
