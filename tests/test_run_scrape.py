import csv
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from camara.scraper import run, sources, state
from camara.scraper.browser import NavigationError
from camara.scraper.config import ScrapeSettings
from camara.scraper.models import Attachment, DocumentRecord
from tests.fakes import (
    FakeContext,
    FakeHttp,
    fake_open_browser,
    navigation_failure,
    normas_detail,
    normas_listing,
    proposituras_detail,
    proposituras_listing,
)

PROP = sources.PROPOSITURAS_PROFILE
NORMAS = sources.COMPLEMENTO_LEGISLATIVO_PROFILE


def _settings(tmp_path: Path, source: str, **overrides) -> ScrapeSettings:
    values = dict(
        source=source,
        output_dir=tmp_path / source,
        pdf_settle_seconds=0,
        download_retries=1,
        selector_timeout_seconds=1,
    )
    values.update(overrides)
    return ScrapeSettings(**values)


def _install(monkeypatch: pytest.MonkeyPatch, context: FakeContext) -> None:
    monkeypatch.setattr(run, "open_browser", fake_open_browser(context))


def _document_dirs(output_dir: Path) -> list[Path]:
    return sorted(p for p in output_dir.iterdir() if p.is_dir() and p.name != "logs")


def _csv_data_rows(path: Path) -> list[list[str]]:
    with path.open(encoding="utf-8", newline="") as handle:
        return list(csv.reader(handle))[1:]


def _raise_value_error(records, path) -> None:
    raise ValueError("bad cell value")


def _proposituras_site(pages: int, per_page: int = 1) -> tuple[dict, dict]:
    site: dict = {}
    files: dict = {}
    for page in range(1, pages + 1):
        items = []
        for n in range(per_page):
            detail = f"https://rioclaro.siscam.com.br/Documentos/Documento/{page}{n}"
            items.append((f"Requerimento {page}-{n}", detail))
            file_url = f"https://files.example/{page}{n}.pdf"
            site[detail] = proposituras_detail([("Documento Assinado", file_url)])
            files[file_url] = b"%PDF attachment"
        site[PROP.listing_url(page)] = proposituras_listing(items)
    return site, files


def test_one_page_two_documents_without_export_link(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site = {
        NORMAS.listing_url(1): normas_listing(
            [
                ("Lei 1", "https://ld.example/lei-1", "https://ld.example/lei-1.pdf"),
                ("Lei 2", "https://ld.example/lei-2", "https://ld.example/lei-2.pdf"),
            ]
        ),
        "https://ld.example/lei-1": normas_detail(),
        "https://ld.example/lei-2": normas_detail(),
    }
    context = FakeContext(site)
    _install(monkeypatch, context)
    http = FakeHttp({"https://ld.example/lei-1.pdf": b"%PDF 1", "https://ld.example/lei-2.pdf": b"%PDF 2"})
    settings = _settings(tmp_path, sources.COMPLEMENTO_LEGISLATIVO, single_page=True)

    summary = run.run_scrape(settings, http_client=http)

    assert summary.status == "completed"
    assert summary.documents == 2
    payload = json.loads(settings.index_json_path.read_text(encoding="utf-8"))
    assert len(payload) == 2
    assert len(_csv_data_rows(settings.index_csv_path)) == 2
    dirs = _document_dirs(settings.output_dir)
    assert [d.name for d in dirs] == ["Lei_1", "Lei_2"]
    assert all(len(list(d.iterdir())) == 1 for d in dirs)
    assert all(record["pdf"] == "" for record in payload)


def test_single_page_flag_stops_after_one_page(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=3)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS, single_page=True)

    summary = run.run_scrape(settings, http_client=FakeHttp(files))

    assert summary.pages == 1
    assert PROP.listing_url(2) not in context.visited
    assert state.load_checkpoint(settings.checkpoint_path)["last_completed_page"] == 1


def test_walker_stops_on_first_empty_page(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=2, per_page=2)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS)

    summary = run.run_scrape(settings, http_client=FakeHttp(files))

    assert summary.pages == 2
    assert summary.last_page == 2
    assert summary.documents == 4
    assert summary.files_downloaded == 8  # rendered page + attachment per document
    assert context.visited[-1] == PROP.listing_url(3)
    records = state.load_index_records(settings.index_json_path)
    assert [r.page_number for r in records] == [1, 1, 2, 2]
    assert len(_csv_data_rows(settings.index_csv_path)) == 4


def test_max_pages_limits_walk(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=3)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS, max_pages=2)

    summary = run.run_scrape(settings, http_client=FakeHttp(files))

    assert summary.pages == 2
    assert PROP.listing_url(3) not in context.visited


def test_resume_from_index_redoes_last_recorded_page(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=3)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS, single_page=True)
    settings.output_dir.mkdir(parents=True)
    previous = [
        DocumentRecord("Antigo 1", "/x/1", "/x/1.pdf", 1, (Attachment("pdf", "/x/1a.pdf"),)),
        DocumentRecord("Antigo 2", "/x/2", "/x/2.pdf", 2),
    ]
    settings.index_json_path.write_text(
        json.dumps([r.to_dict() for r in previous]), encoding="utf-8"
    )

    summary = run.run_scrape(settings, http_client=FakeHttp(files))

    assert summary.start_page == 2
    assert summary.resume_origin == state.ORIGIN_INDEX
    assert context.visited[0] == PROP.listing_url(2)
    titles = [r.title for r in state.load_index_records(settings.index_json_path)]
    assert titles == ["Antigo 1", "Requerimento 2-0"]


def test_resume_from_checkpoint_continues_on_next_page(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=3)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS, single_page=True)
    state.save_checkpoint(settings.checkpoint_path, 2)

    summary = run.run_scrape(settings, http_client=FakeHttp(files))

    assert summary.start_page == 3
    assert context.visited[0] == PROP.listing_url(3)
    assert state.load_checkpoint(settings.checkpoint_path)["last_completed_page"] == 3


def test_no_resume_and_start_page_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=3)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS, single_page=True, resume=False)
    state.save_checkpoint(settings.checkpoint_path, 2)

    run.run_scrape(settings, http_client=FakeHttp(files))
    assert context.visited[0] == PROP.listing_url(1)

    settings.start_page = 3
    settings.resume = True
    assert run.resolve_start(settings).start_page == 3


def test_failure_mid_page_flushes_partial_index(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=1, per_page=2)
    site["https://rioclaro.siscam.com.br/Documentos/Documento/11"] = navigation_failure()
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS)

    with pytest.raises(NavigationError):
        run.run_scrape(settings, http_client=FakeHttp(files))

    records = state.load_index_records(settings.index_json_path)
    assert [r.title for r in records] == ["Requerimento 1-0"]
    assert len(_csv_data_rows(settings.index_csv_path)) == 1
    assert state.load_checkpoint(settings.checkpoint_path) is None
    summary = json.loads(settings.summary_path.read_text(encoding="utf-8"))
    assert summary["status"] == "failed"
    assert "NavigationError" in summary["error"]


def test_excel_export_written_with_index(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    site, files = _proposituras_site(pages=1)
    context = FakeContext(site)
    _install(monkeypatch, context)
    settings = _settings(tmp_path, sources.PROPOSITURAS, export_excel=True)

    run.run_scrape(settings, http_client=FakeHttp(files))

    assert settings.index_xlsx_path.exists()


def test_excel_export_error_keeps_original_failure_and_summary(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    site, files = _proposituras_site(pages=1, per_page=2)
    site["https://rioclaro.siscam.com.br/Documentos/Documento/11"] = navigation_failure()
    context = FakeContext(site)
    _install(monkeypatch, context)
    monkeypatch.setattr(run, "export_excel", _raise_value_error)
    settings = _settings(tmp_path, sources.PROPOSITURAS, export_excel=True)

    with pytest.raises(NavigationError):
        run.run_scrape(settings, http_client=FakeHttp(files))

    assert [r.title for r in state.load_index_records(settings.index_json_path)] == ["Requerimento 1-0"]
    assert settings.index_csv_path.exists()
    summary = json.loads(settings.summary_path.read_text(encoding="utf-8"))
    assert summary["status"] == "failed"
    assert "NavigationError" in summary["error"]


def test_excel_export_error_does_not_fail_completed_run(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    site, files = _proposituras_site(pages=1)
    _install(monkeypatch, FakeContext(site))
    monkeypatch.setattr(run, "export_excel", _raise_value_error)
    settings = _settings(tmp_path, sources.PROPOSITURAS, export_excel=True)

    summary = run.run_scrape(settings, http_client=FakeHttp(files))

    assert summary.status == "completed"
    assert json.loads(settings.summary_path.read_text(encoding="utf-8"))["status"] == "completed"


@pytest.mark.parametrize(
    "pages, items, kwargs, expected",
    [
        (1, [], {}, False),
        (1, ["x"], {"single_page": True}, False),
        (2, ["x"], {"max_pages": 2}, False),
        (1, ["x"], {"max_pages": 2}, True),
        (5, ["x"], {}, True),
    ],
)
def test_should_continue(tmp_path: Path, pages, items, kwargs, expected) -> None:
    settings = _settings(tmp_path, sources.PROPOSITURAS, **kwargs)

    assert run.should_continue(pages, items, settings) is expected
