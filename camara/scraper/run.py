"""Playwright-driven batch scraper for municipal legislative portals.

Workflow:

- Work out the start page from the checkpoint or the existing index.
- For each listing page: navigate, wait for the listing marker and collect the
  listed documents. An empty listing ends the run.
- For each document: open the detail page in an auxiliary tab, save the page
  PDF and every attachment under a folder named after the document.
- After every page, and once more when the run ends for any reason, rewrite
  ``documentos_info.json`` / ``documentos_info.csv`` and the checkpoint.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from playwright.sync_api import Page

from .browser import goto, open_browser, wait_for_marker, wait_seconds
from .config import ScrapeSettings
from .downloader import HttpClient, build_session
from .fetcher import DocumentFetcher
from .index_writer import export_excel, write_index
from .logging_utils import _scraper_event
from .models import DocumentRecord, ListingItem
from .parser import extract_listing
from .sources import SourceProfile, get_profile
from .state import (
    ORIGIN_FRESH,
    ResumePoint,
    clear_checkpoint,
    locate_resume,
    save_checkpoint,
)
from .utils import LOGGER, log_line, save_json_file, setup_run_logger


@dataclass
class RunSummary:
    source: str
    start_page: int
    resume_origin: str = ORIGIN_FRESH
    last_page: Optional[int] = None
    pages: int = 0
    documents: int = 0
    files_downloaded: int = 0
    files_failed: int = 0
    status: str = "running"
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _short_error_message(exc: BaseException, max_length: int = 200) -> str:
    message = f"{type(exc).__name__}: {exc}"
    return message if len(message) <= max_length else message[: max_length - 3] + "..."


def build_listing_url(profile: SourceProfile, page_number: int) -> str:
    return profile.listing_url(page_number)


def load_listing(
    page: Page, profile: SourceProfile, page_number: int, settings: ScrapeSettings
) -> List[ListingItem]:
    """Open listing page ``page_number`` and return the documents it lists.

    A listing marker that never shows up is treated as an empty page.
    """

    url = build_listing_url(profile, page_number)
    log_line(f"Acessando página {page_number}...")
    log_line(url)
    goto(page, url, timeout_seconds=settings.nav_timeout_seconds)

    if not wait_for_marker(
        page,
        profile.listing_ready_selector,
        timeout_seconds=settings.selector_timeout_seconds,
    ):
        log_line(f"Nenhuma listagem encontrada na página {page_number}.")
        return []

    return extract_listing(page.content(), profile, page.url or url)


def should_continue(pages_processed: int, items: Sequence[ListingItem], settings: ScrapeSettings) -> bool:
    """Decide, after a page, whether the walker moves on to the next one."""

    if not items:
        return False
    if settings.single_page:
        return False
    if settings.max_pages is not None and pages_processed >= settings.max_pages:
        return False
    return True


def resolve_start(settings: ScrapeSettings) -> ResumePoint:
    """Combine the resume locator with the ``--no-resume``/``--start-page`` overrides."""

    if settings.resume:
        point = locate_resume(settings.index_json_path, settings.checkpoint_path)
    else:
        clear_checkpoint(settings.checkpoint_path)
        point = ResumePoint(start_page=1)

    if settings.start_page is not None:
        start = max(1, int(settings.start_page))
        point = ResumePoint(
            start_page=start,
            records=[r for r in point.records if r.page_number < start],
            origin=point.origin,
        )
    return point


def _flush_index(records: List[DocumentRecord], settings: ScrapeSettings) -> None:
    try:
        write_index(records, settings.output_dir)
        if settings.export_excel:
            export_excel(records, settings.index_xlsx_path)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Erro ao salvar índice final: %s", exc)


def run_scrape(settings: ScrapeSettings, *, http_client: Optional[HttpClient] = None) -> RunSummary:
    """Walk the listing of ``settings.source`` and save every document.

    The index is written whether the run completes or fails; errors are logged
    and re-raised.
    """

    profile = get_profile(settings.source)
    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    setup_run_logger(settings.log_dir)

    point = resolve_start(settings)
    records: List[DocumentRecord] = list(point.records)
    summary = RunSummary(
        source=profile.name,
        start_page=point.start_page,
        resume_origin=point.origin,
    )
    _scraper_event(
        "run",
        phase="start",
        source=profile.name,
        start_page=point.start_page,
        origin=point.origin,
        carried_records=len(records),
        single_page=settings.single_page,
    )

    session = None if http_client is not None else build_session(settings.headers)
    try:
        with open_browser(headless=settings.headless) as context:
            listing_page = context.new_page()
            fetcher = DocumentFetcher(
                context, profile, settings, http_client=http_client, session=session
            )
            page_number = point.start_page

            while True:
                items = load_listing(listing_page, profile, page_number, settings)
                log_line(f"Foram encontrados {len(items)} documentos na página {page_number}")

                for index, item in enumerate(items, start=1):
                    log_line(f"Processando documento {index} de {len(items)} da página {page_number}:")
                    log_line(f"Título: {item.title}")
                    result = fetcher.fetch(item, page_number)
                    records.append(result.record)
                    summary.documents += 1
                    summary.files_downloaded += result.files_downloaded
                    summary.files_failed += result.files_failed
                    wait_seconds(settings.per_document_delay)

                if items:
                    summary.pages += 1
                    summary.last_page = page_number
                    write_index(records, output_dir)
                    save_checkpoint(settings.checkpoint_path, page_number)

                if not should_continue(summary.pages, items, settings):
                    break
                page_number += 1
                log_line(f"Preparando para processar página {page_number}...")

        summary.status = "completed"
        return summary
    except Exception as exc:
        summary.status = "failed"
        summary.error = _short_error_message(exc)
        LOGGER.exception("Ocorreu um erro: %s", exc)
        raise
    finally:
        _flush_index(records, settings)
        _scraper_event("run", phase="end", **summary.to_dict())
        try:
            save_json_file(settings.summary_path, summary.to_dict())
        except OSError as exc:
            log_line(f"[RUN][WARN] Unable to write summary: {exc}")
        if session is not None:
            session.close()


__all__ = [
    "RunSummary",
    "build_listing_url",
    "load_listing",
    "should_continue",
    "resolve_start",
    "run_scrape",
]
