"""HTTP downloads of attachment files."""
from __future__ import annotations

import contextlib
import time
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import requests

from . import config
from .error_codes import ErrorCode, classify_http_status
from .logging_utils import _scraper_event
from .retry_policy import compute_backoff_seconds, decide_retry
from .utils import log_line

HttpClient = Callable[..., Any]


@dataclass
class DownloadResult:
    ok: bool
    status_code: Optional[int]
    bytes_written: int


class DownloadError(Exception):
    def __init__(self, error_code: str, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.http_status = http_status


def build_session(headers: Optional[dict[str, str]] = None) -> requests.Session:
    """Return a requests session carrying the scraper's default headers."""

    session = requests.Session()
    session.headers.update(headers or config.COMMON_HEADERS)
    return session


def _redact_url(url: str) -> str:
    try:
        parsed = urllib.parse.urlparse(url)
        return urllib.parse.urlunparse(parsed._replace(query=""))
    except Exception:
        return url


def _response_status(response: Any) -> Optional[int]:
    status = getattr(response, "status", None)
    if status is None:
        status = getattr(response, "status_code", None)
    return int(status) if status is not None else None


def _response_body(response: Any) -> bytes:
    body = response.body() if hasattr(response, "body") else response.content
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body or b"")


def _fetch_with_client(http_client: HttpClient, url: str, dest_path: Path, timeout: int) -> tuple[Optional[int], int]:
    response = http_client(url, timeout=timeout)
    status = _response_status(response)
    if status is not None and status >= 400:
        raise DownloadError(classify_http_status(status), f"HTTP {status}", http_status=status)

    data = _response_body(response)
    if not data:
        raise DownloadError(ErrorCode.EMPTY_FILE, "Empty response body", http_status=status)
    dest_path.write_bytes(data)
    return status, len(data)


def _fetch_with_session(session: requests.Session, url: str, dest_path: Path, timeout: int) -> tuple[Optional[int], int]:
    with session.get(url, stream=True, timeout=timeout) as response:
        status = response.status_code
        if status >= 400:
            raise DownloadError(
                classify_http_status(status),
                f"HTTP {status} {response.reason or ''}".strip(),
                http_status=status,
            )
        with dest_path.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    handle.write(chunk)

    size = dest_path.stat().st_size
    if size == 0:
        raise DownloadError(ErrorCode.EMPTY_FILE, "Empty response body", http_status=status)
    return status, size


def download_file(
    url: str,
    dest_path: Path,
    *,
    http_client: Optional[HttpClient] = None,
    session: Optional[requests.Session] = None,
    max_retries: int = config.DOWNLOAD_RETRIES,
    timeout: int = config.DOWNLOAD_TIMEOUT_SECONDS,
) -> DownloadResult:
    """Download ``url`` into ``dest_path``.

    ``http_client(url, timeout=...)`` may be supplied instead of a session; its
    response needs a ``status``/``status_code`` and a ``body()``/``content``.
    Raises :class:`DownloadError` once retries are exhausted or the failure is
    not retryable. A partially written file is removed on failure.
    """

    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    safe_url = _redact_url(url)
    max_retries = max(1, int(max_retries))

    owns_session = http_client is None and session is None
    if owns_session:
        session = build_session()

    try:
        for attempt in range(1, max_retries + 1):
            status: Optional[int] = None
            try:
                if http_client is not None:
                    status, size = _fetch_with_client(http_client, url, dest_path, timeout)
                else:
                    status, size = _fetch_with_session(session, url, dest_path, timeout)
                _scraper_event(
                    "download",
                    url=safe_url,
                    status="ok",
                    http_status=status,
                    bytes=size,
                )
                log_line(f"Arquivo salvo em: {dest_path}")
                return DownloadResult(True, status, size)
            except DownloadError as exc:
                error: Exception = exc
                error_code = exc.error_code
                status = exc.http_status
            except (requests.Timeout, requests.ConnectionError) as exc:
                error = exc
                error_code = ErrorCode.NETWORK
            except requests.RequestException as exc:
                error = exc
                error_code = ErrorCode.INTERNAL
            except OSError as exc:
                error = exc
                error_code = "disk_full" if getattr(exc, "errno", None) == 28 else ErrorCode.INTERNAL

            with contextlib.suppress(OSError):
                dest_path.unlink(missing_ok=True)
            should_retry = decide_retry(
                attempt_index=attempt,
                max_attempts=max_retries,
                error=error,
                error_code=error_code,
                http_status=status,
            )
            backoff = compute_backoff_seconds(attempt)
            _scraper_event(
                "state",
                phase="download_retry",
                url=safe_url,
                attempt=attempt,
                max_attempts=max_retries,
                error_code=error_code,
                http_status=status,
                will_retry=should_retry,
                backoff_seconds=backoff if should_retry else None,
            )
            log_line(f"[DOWNLOAD] Attempt {attempt} for {safe_url} failed: {error}")

            if not should_retry:
                raise DownloadError(error_code, str(error) or "download failed", http_status=status)

            time.sleep(backoff)
    finally:
        if owns_session and session is not None:
            session.close()

    # Unreachable: the final attempt is always capped by decide_retry.
    raise DownloadError(ErrorCode.INTERNAL, "download failed")


__all__ = ["DownloadResult", "DownloadError", "build_session", "download_file"]
