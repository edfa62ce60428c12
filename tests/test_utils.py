import json
from pathlib import Path

import pytest

from camara.scraper import utils


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Requerimento nº 12/2024", "Requerimento_nº_12_2024"),
        ("  Lei   Complementar\t\n45 ", "Lei_Complementar_45"),
        ('a<b>c:d"e/f\\g|h?i*j', "a_b_c_d_e_f_g_h_i_j"),
        ("", "documento"),
        (None, "documento"),
        (".", "documento"),
        ("..", "documento"),
        (" .oculto. ", "oculto"),
        ("../../etc", "_.._etc"),
    ],
)
def test_sanitize_name(raw, expected) -> None:
    assert utils.sanitize_name(raw) == expected


def test_sanitize_name_never_leaves_unsafe_characters() -> None:
    nasty = 'Moção  de "Aplauso" <urgente> : C:\\temp/arq | x? *'
    result = utils.sanitize_name(nasty)

    assert not any(ch in result for ch in '<>:"/\\|?*')
    assert " " not in result
    assert "Moção_de" in result


def test_sanitize_name_truncates_long_titles_on_char_boundary() -> None:
    result = utils.sanitize_name("ç" * 200, max_bytes=51)

    assert len(result.encode("utf-8")) <= 51
    assert set(result) == {"ç"}


def test_save_json_file_is_atomic_and_readable(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "data.json"
    utils.save_json_file(target, [{"título": "Ação"}])

    assert json.loads(target.read_text(encoding="utf-8")) == [{"título": "Ação"}]
    assert "Ação" in target.read_text(encoding="utf-8")
    assert not list(target.parent.glob("*.tmp"))


def test_load_json_file_returns_default_on_bad_json(tmp_path: Path, monkeypatch) -> None:
    messages = []
    monkeypatch.setattr(utils, "log_line", lambda msg: messages.append(msg))
    target = tmp_path / "broken.json"
    target.write_text("{not json", encoding="utf-8")

    assert utils.load_json_file(target, default=[]) == []
    assert utils.load_json_file(tmp_path / "missing.json") is None
    assert any("Unable to read" in msg for msg in messages)


def test_build_file_name_keeps_extension_within_byte_limit() -> None:
    name = utils.build_file_name("ã" * 300, "pdf")

    assert name.endswith(".pdf")
    assert len(name.encode("utf-8")) <= utils.MAX_FILENAME_BYTES
    assert utils.build_file_name("Lei_1", "doc") == "Lei_1.doc"
