"""Thin Playwright helpers shared by the page walker and document fetcher."""
from __future__ import annotations

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from playwright.sync_api import (
    BrowserContext,
    Error as PWError,
    Page,
    TimeoutError as PWTimeout,
    sync_playwright,
)

from . import config
from .error_codes import ErrorCode
from .logging_utils import _scraper_event
from .utils import log_line


class NavigationError(RuntimeError):
    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Navigation to {url} failed: {message}")
        self.url = url
        self.error_code = ErrorCode.NAVIGATION


@contextmanager
def open_browser(headless: bool = True) -> Iterator[BrowserContext]:
    """Launch Chromium and yield a single browser context, closing both on exit."""

    with sync_playwright() as pw:
        browser = pw.chromium.launch(headless=headless, args=["--start-maximized"])
        context = browser.new_context(
            user_agent=config.COMMON_HEADERS["User-Agent"],
            locale="pt-BR",
            no_viewport=True,
        )
        log_line("Browser started.")
        try:
            yield context
        finally:
            try:
                context.close()
            finally:
                browser.close()
                log_line("Browser closed.")


def goto(page: Page, url: str, *, wait_until: str = "load", timeout_seconds: int = config.NAV_TIMEOUT_SECONDS) -> None:
    """Navigate ``page`` to ``url``; failures raise :class:`NavigationError`."""

    try:
        page.goto(url, wait_until=wait_until, timeout=timeout_seconds * 1000)
    except PWError as exc:
        _scraper_event("error", phase="navigation", url=url, error=str(exc)[:200])
        raise NavigationError(url, str(exc).splitlines()[0] if str(exc) else repr(exc)) from exc


def wait_for_marker(page: Page, selector: str, *, timeout_seconds: int) -> bool:
    """Return ``False`` when ``selector`` does not show up within the timeout."""

    try:
        page.wait_for_selector(selector, state="attached", timeout=timeout_seconds * 1000)
    except PWTimeout:
        return False
    return True


def render_pdf(page: Page, out_path: Path) -> Path:
    """Print the current page to an A4 PDF (headless Chromium only)."""

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    page.pdf(path=str(out_path), format="A4", print_background=True)
    return out_path


def wait_seconds(seconds: float) -> None:
    if seconds and seconds > 0:
        time.sleep(seconds)


__all__ = [
    "NavigationError",
    "open_browser",
    "goto",
    "wait_for_marker",
    "render_pdf",
    "wait_seconds",
]
