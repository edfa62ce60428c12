import sys
from pathlib import Path

import pytest
import requests

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from camara.scraper import downloader
from camara.scraper.error_codes import ErrorCode
from tests.fakes import FakeHttp


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    sleeps: list[float] = []
    monkeypatch.setattr(downloader.time, "sleep", lambda seconds: sleeps.append(seconds))
    return sleeps


def test_download_with_http_client_writes_file(tmp_path: Path) -> None:
    http = FakeHttp({"https://files.example/a.pdf?token=1": b"%PDF-1.7 body"})
    dest = tmp_path / "doc" / "a.pdf"

    result = downloader.download_file("https://files.example/a.pdf?token=1", dest, http_client=http)

    assert result.ok is True
    assert result.status_code == 200
    assert result.bytes_written == len(b"%PDF-1.7 body")
    assert dest.read_bytes() == b"%PDF-1.7 body"


def test_not_found_is_not_retried(tmp_path: Path, no_sleep: list[float]) -> None:
    http = FakeHttp({"https://files.example/gone.pdf": 404})
    dest = tmp_path / "gone.pdf"

    with pytest.raises(downloader.DownloadError) as excinfo:
        downloader.download_file("https://files.example/gone.pdf", dest, http_client=http, max_retries=3)

    assert excinfo.value.error_code == ErrorCode.HTTP_404
    assert excinfo.value.http_status == 404
    assert http.calls == ["https://files.example/gone.pdf"]
    assert not dest.exists()
    assert no_sleep == []


def test_server_error_is_retried_with_backoff(tmp_path: Path, no_sleep: list[float]) -> None:
    http = FakeHttp({"https://files.example/flaky.pdf": [503, b"data"]})
    dest = tmp_path / "flaky.pdf"

    result = downloader.download_file("https://files.example/flaky.pdf", dest, http_client=http, max_retries=2)

    assert result.ok is True
    assert len(http.calls) == 2
    assert no_sleep == [1.0]
    assert dest.read_bytes() == b"data"


def test_empty_body_is_a_failure(tmp_path: Path) -> None:
    http = FakeHttp({"https://files.example/empty.pdf": b""})

    with pytest.raises(downloader.DownloadError) as excinfo:
        downloader.download_file("https://files.example/empty.pdf", tmp_path / "e.pdf", http_client=http)

    assert excinfo.value.error_code == ErrorCode.EMPTY_FILE
    assert not (tmp_path / "e.pdf").exists()


def test_connection_errors_exhaust_retries(tmp_path: Path, no_sleep: list[float]) -> None:
    http = FakeHttp({"https://files.example/x.pdf": requests.ConnectionError("reset")})

    with pytest.raises(downloader.DownloadError) as excinfo:
        downloader.download_file("https://files.example/x.pdf", tmp_path / "x.pdf", http_client=http, max_retries=2)

    assert excinfo.value.error_code == ErrorCode.NETWORK
    assert len(http.calls) == 2
    assert no_sleep == [1.0]


class _StreamResponse:
    def __init__(self, status_code: int, chunks: list[bytes], reason: str = "OK") -> None:
        self.status_code = status_code
        self.reason = reason
        self._chunks = chunks

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):  # noqa: ANN001
        return False

    def iter_content(self, chunk_size=8192):  # noqa: ANN001
        yield from self._chunks


class _Session:
    def __init__(self, response: _StreamResponse) -> None:
        self.response = response
        self.requests: list[tuple[str, dict]] = []

    def get(self, url, **kwargs):  # noqa: ANN001
        self.requests.append((url, kwargs))
        return self.response


def test_download_with_session_streams_chunks(tmp_path: Path) -> None:
    session = _Session(_StreamResponse(200, [b"%PDF", b"", b"-1.4 rest"]))
    dest = tmp_path / "s.pdf"

    result = downloader.download_file("https://files.example/s.pdf", dest, session=session, timeout=30)

    assert result.bytes_written == len(b"%PDF-1.4 rest")
    assert dest.read_bytes() == b"%PDF-1.4 rest"
    url, kwargs = session.requests[0]
    assert kwargs == {"stream": True, "timeout": 30}


def test_download_with_session_reports_status(tmp_path: Path) -> None:
    session = _Session(_StreamResponse(403, [], reason="Forbidden"))

    with pytest.raises(downloader.DownloadError) as excinfo:
        downloader.download_file("https://files.example/f.pdf", tmp_path / "f.pdf", session=session)

    assert excinfo.value.error_code == ErrorCode.HTTP_403
    assert "Forbidden" in str(excinfo.value)


def test_build_session_uses_common_headers() -> None:
    session = downloader.build_session()
    try:
        assert "Mozilla" in session.headers["User-Agent"]
    finally:
        session.close()
