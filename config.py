"""
config.py - Zentrale Konfiguration für die Kanal-Report Pipeline.

Alle Parameter an einem Ort: einfach anpassbar für verschiedene
Umgebungen (Dev / Demo / Prod) ohne Code-Änderungen.
"""

from dataclasses import dataclass, field
from pathlib import Path
from datetime import datetime
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()

# ─────────────────────────────────────────────
# Projekt-Pfade (per .env überschreibbar)
# ─────────────────────────────────────────────
BASE_DIR = Path(__file__).parent
OUTPUT_DIR = Path(os.getenv("REPORT_OUTPUT_DIR", BASE_DIR / "output"))
DB_PATH = Path(os.getenv("SALES_DB_PATH", BASE_DIR / "database" / "sales.db"))


# ─────────────────────────────────────────────
# Pipeline-Konfiguration als Dataclass
# ─────────────────────────────────────────────
@dataclass
class DataGenerationConfig:
    start: str = "2022-01-01"
    end: str = "2024-12-31"
    n_customers: int = 400
    seed: int = 42
    online_share: float = 0.6       # Anteil Online-Bestellungen
    tax_rate: float = 0.08          # Header-Total = Positionen + Steuer + Fracht
    max_lines_per_order: int = 4


@dataclass
class AnalysisConfig:
    repeat_customer_mode: str = "literal"   # literal | per_customer
    parallel: bool = False
    top_n_products: int = 10


@dataclass
class VisualizationConfig:
    dpi: int = 150
    figsize_dashboard: tuple = (18, 11)
    figsize_single: tuple = (12, 7)
    colors: dict = field(default_factory=lambda: {
        "primary":   "#1B4F72",
        "secondary": "#2E86C1",
        "positive":  "#1E8449",
        "negative":  "#922B21",
        "neutral":   "#7F8C8D",
        # Kanal-Farben: Online / In-Store
        "channels":  {"Online": "#2E86C1", "In-Store": "#E67E22"},
    })
    font_family: str = "DejaVu Sans"


@dataclass
class ExportConfig:
    csv_delimiter: str = ","
    csv_subdir: str = "csv"
    excel_filename: str = "channel_reports.xlsx"
    text_filename: str = "report_{date}.txt"


@dataclass
class PipelineConfig:
    """Master-Konfiguration - wird an alle Pipeline-Phasen weitergereicht."""
    data: DataGenerationConfig = field(default_factory=DataGenerationConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    output_dir: Path = OUTPUT_DIR
    db_path: Path = DB_PATH
    report_title: str = "Channel Sales Report"
    company_name: str = "RetailCo GmbH"


@dataclass
class PipelineResult:
    """Rückgabe-Objekt der Pipeline - strukturierter Status statt lose Variablen."""
    success: bool
    start_time: datetime
    end_time: Optional[datetime] = None
    phases_completed: list = field(default_factory=list)
    output_files: dict = field(default_factory=dict)
    kpi_summary: dict = field(default_factory=dict)
    failed_reports: dict = field(default_factory=dict)
    error_message: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0


# ─────────────────────────────────────────────
# Standard-Konfiguration (wird in main.py genutzt)
# ─────────────────────────────────────────────
DEFAULT_CONFIG = PipelineConfig()
