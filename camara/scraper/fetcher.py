"""Fetch one listed document: detail page, attachments and page PDF."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests
from playwright.sync_api import BrowserContext, Error as PWError

from .browser import goto, render_pdf, wait_seconds
from .config import ScrapeSettings
from .downloader import DownloadError, HttpClient, download_file
from .logging_utils import _scraper_event
from .models import Attachment, AttachmentLink, DocumentRecord, ListingItem
from .parser import extract_attachment_links, extract_export_pdf_link
from .sources import PAGE_PDF_RENDER, SourceProfile
from .utils import build_file_name, log_line, sanitize_name

MANUSCRIPT_SUFFIX = "manuscrito1"
EXPORTED_PAGE_SUFFIX = "pagina"


@dataclass
class FetchResult:
    record: DocumentRecord
    files_downloaded: int = 0
    files_failed: int = 0


def _attachment_filename(safe_title: str, link: AttachmentLink) -> str:
    return build_file_name(f"{safe_title}_{sanitize_name(link.text)}", link.kind)


class DocumentFetcher:
    """Handles every listed document of a run, one at a time.

    The browser context, HTTP client and settings are shared for the whole run;
    each document gets its own short-lived auxiliary page.
    """

    def __init__(
        self,
        context: BrowserContext,
        profile: SourceProfile,
        settings: ScrapeSettings,
        *,
        http_client: Optional[HttpClient] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.context = context
        self.profile = profile
        self.settings = settings
        self.http_client = http_client
        self.session = session

    def _download(self, url: str, dest: Path) -> bool:
        try:
            log_line(f"Baixando: {url}")
            download_file(
                url,
                dest,
                http_client=self.http_client,
                session=self.session,
                max_retries=self.settings.download_retries,
                timeout=self.settings.download_timeout_seconds,
            )
            return True
        except DownloadError as exc:
            _scraper_event(
                "error",
                phase="download",
                url=url,
                error_code=exc.error_code,
                http_status=exc.http_status,
            )
            log_line(f"Erro ao baixar {url}: {exc}")
            return False
        except OSError as exc:
            _scraper_event("error", phase="download", url=url, error_code="filesystem")
            log_line(f"Erro ao gravar {dest}: {exc}")
            return False

    def fetch(self, item: ListingItem, page_number: int) -> FetchResult:
        """Save everything belonging to ``item`` and return its index record.

        Navigation errors propagate. Individual file failures are logged and
        counted without stopping the remaining files.
        """

        safe_title = sanitize_name(item.title)
        doc_dir = Path(self.settings.output_dir) / safe_title
        doc_dir.mkdir(parents=True, exist_ok=True)

        downloaded = 0
        failed = 0
        primary_pdf = ""
        export_url: Optional[str] = None
        links: List[AttachmentLink] = []

        detail = self.context.new_page()
        try:
            log_line(f"Abrindo página de detalhe: {item.detail_url}")
            goto(
                detail,
                item.detail_url,
                wait_until=self.profile.detail_wait_until,
                timeout_seconds=self.settings.nav_timeout_seconds,
            )
            html = detail.content()
            base_url = detail.url or item.detail_url

            if self.profile.page_pdf_mode == PAGE_PDF_RENDER:
                links = extract_attachment_links(html, self.profile, base_url)
                pdf_path = doc_dir / build_file_name(safe_title, "pdf")
                try:
                    log_line("Salvando PDF...")
                    render_pdf(detail, pdf_path)
                    wait_seconds(self.settings.pdf_settle_seconds)
                    primary_pdf = str(pdf_path)
                    downloaded += 1
                except PWError as exc:
                    log_line(f"Erro ao gerar PDF de {item.detail_url}: {exc}")
                    failed += 1
            else:
                export_url = extract_export_pdf_link(html, self.profile, base_url)
        finally:
            detail.close()

        if self.profile.page_pdf_mode != PAGE_PDF_RENDER:
            if export_url:
                pdf_path = doc_dir / build_file_name(f"{safe_title}_{EXPORTED_PAGE_SUFFIX}", "pdf")
                log_line(f"Baixando PDF de: {export_url}")
                if self._download(export_url, pdf_path):
                    primary_pdf = str(pdf_path)
                    downloaded += 1
                else:
                    failed += 1
            else:
                log_line(f"Link de exportação não encontrado em {item.detail_url}")
            if item.pdf_url:
                links = [AttachmentLink(text=MANUSCRIPT_SUFFIX, href=item.pdf_url, kind="pdf")]

        attachments: List[Attachment] = []
        for link in links:
            dest = doc_dir / _attachment_filename(safe_title, link)
            if self._download(link.href, dest):
                downloaded += 1
            else:
                failed += 1
            attachments.append(Attachment(kind=link.kind, path=str(dest)))

        record = DocumentRecord(
            title=item.title,
            folder_path=str(doc_dir),
            primary_pdf_path=primary_pdf,
            page_number=page_number,
            attachments=tuple(attachments),
            detail_url=item.detail_url,
        )
        _scraper_event(
            "document",
            title=item.title,
            page=page_number,
            attachments=len(attachments),
            downloaded=downloaded,
            failed=failed,
        )
        return FetchResult(record=record, files_downloaded=downloaded, files_failed=failed)


__all__ = ["DocumentFetcher", "FetchResult"]
