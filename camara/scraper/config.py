"""Configuration constants for the legislative document scraper."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

OUTPUT_ROOT: Path = Path(os.getenv("CAMARA_OUTPUT_ROOT", "output"))
LOG_DIRNAME: str = "logs"

INDEX_JSON_NAME: str = "documentos_info.json"
INDEX_CSV_NAME: str = "documentos_info.csv"
INDEX_XLSX_NAME: str = "documentos_info.xlsx"
CHECKPOINT_NAME: str = "checkpoint.json"
SUMMARY_NAME: str = "last_summary.json"

CSV_HEADERS: tuple[str, ...] = (
    "Título",
    "Pasta",
    "PDF",
    "Tipo do Arquivo",
    "Caminho do Arquivo",
    "Página",
)


def _parse_positive_int(env_var: str, default: int, *, minimum: int = 1) -> int:
    """Parse a bounded integer (seconds, attempts) from the environment."""

    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return max(minimum, value)


# Navigation timeout for page.goto calls.
NAV_TIMEOUT_SECONDS: int = _parse_positive_int("CAMARA_NAV_TIMEOUT_SECONDS", 60)
# Wait for the listing marker; a timeout here means the listing is empty.
SELECTOR_TIMEOUT_SECONDS: int = _parse_positive_int("CAMARA_SELECTOR_TIMEOUT_SECONDS", 20)
DOWNLOAD_TIMEOUT_SECONDS: int = _parse_positive_int("CAMARA_DOWNLOAD_TIMEOUT_SECONDS", 120)
DOWNLOAD_RETRIES: int = _parse_positive_int("CAMARA_DOWNLOAD_RETRIES", 2)

# Pause after rendering a detail page to PDF.
PDF_SETTLE_SECONDS: float = float(os.getenv("CAMARA_PDF_SETTLE_SECONDS", "2.0"))
PER_DOCUMENT_DELAY: float = float(os.getenv("CAMARA_PER_DOCUMENT_DELAY", "0"))

HEADLESS: bool = os.getenv("CAMARA_HEADLESS", "true").strip().lower() not in {"0", "false"}

COMMON_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "*/*",
    "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
    "Connection": "keep-alive",
}


@dataclass
class ScrapeSettings:
    """Everything a run needs, passed explicitly to each component."""

    source: str
    output_dir: Path
    single_page: bool = False
    max_pages: Optional[int] = None
    start_page: Optional[int] = None
    resume: bool = True
    headless: bool = HEADLESS
    export_excel: bool = False
    nav_timeout_seconds: int = NAV_TIMEOUT_SECONDS
    selector_timeout_seconds: int = SELECTOR_TIMEOUT_SECONDS
    download_timeout_seconds: int = DOWNLOAD_TIMEOUT_SECONDS
    download_retries: int = DOWNLOAD_RETRIES
    pdf_settle_seconds: float = PDF_SETTLE_SECONDS
    per_document_delay: float = PER_DOCUMENT_DELAY
    headers: dict[str, str] = field(default_factory=lambda: dict(COMMON_HEADERS))

    @property
    def index_json_path(self) -> Path:
        return self.output_dir / INDEX_JSON_NAME

    @property
    def index_csv_path(self) -> Path:
        return self.output_dir / INDEX_CSV_NAME

    @property
    def index_xlsx_path(self) -> Path:
        return self.output_dir / INDEX_XLSX_NAME

    @property
    def checkpoint_path(self) -> Path:
        return self.output_dir / CHECKPOINT_NAME

    @property
    def summary_path(self) -> Path:
        return self.output_dir / SUMMARY_NAME

    @property
    def log_dir(self) -> Path:
        return self.output_dir / LOG_DIRNAME


__all__ = [
    "OUTPUT_ROOT",
    "INDEX_JSON_NAME",
    "INDEX_CSV_NAME",
    "INDEX_XLSX_NAME",
    "CHECKPOINT_NAME",
    "SUMMARY_NAME",
    "CSV_HEADERS",
    "NAV_TIMEOUT_SECONDS",
    "SELECTOR_TIMEOUT_SECONDS",
    "DOWNLOAD_TIMEOUT_SECONDS",
    "DOWNLOAD_RETRIES",
    "PDF_SETTLE_SECONDS",
    "PER_DOCUMENT_DELAY",
    "HEADLESS",
    "COMMON_HEADERS",
    "ScrapeSettings",
]
