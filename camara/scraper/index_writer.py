"""Serialise the document index to JSON, CSV and Excel."""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, List, Sequence, Union

import pandas as pd

from . import config
from .models import DocumentRecord
from .utils import log_line, save_json_file

CsvValue = Union[str, int]


def csv_rows(records: Iterable[DocumentRecord]) -> List[List[CsvValue]]:
    """Flatten records to one row per attachment, or one blank row if none."""

    rows: List[List[CsvValue]] = []
    for record in records:
        base = [record.title, record.folder_path, record.primary_pdf_path]
        if record.attachments:
            for attachment in record.attachments:
                rows.append(base + [attachment.kind, attachment.path, record.page_number])
        else:
            rows.append(base + ["", "", record.page_number])
    return rows


def write_json_index(records: Sequence[DocumentRecord], path: Path) -> Path:
    save_json_file(path, [record.to_dict() for record in records])
    log_line(f"Informações salvas em: {path}")
    return Path(path)


def write_csv_index(records: Sequence[DocumentRecord], path: Path) -> Path:
    """Write the CSV index; text columns are quoted, the page column is not."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")

    with tmp_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
        writer.writerow(config.CSV_HEADERS)
        writer.writerows(csv_rows(records))

    tmp_path.replace(path)
    log_line(f"CSV salvo em: {path}")
    return path


def write_index(records: Sequence[DocumentRecord], output_dir: Path) -> tuple[Path, Path]:
    """Overwrite both index files under ``output_dir``."""

    output_dir = Path(output_dir)
    json_path = write_json_index(records, output_dir / config.INDEX_JSON_NAME)
    csv_path = write_csv_index(records, output_dir / config.INDEX_CSV_NAME)
    return json_path, csv_path


def export_excel(records: Sequence[DocumentRecord], dest_path: Path) -> Path:
    """Create a workbook with the flattened index and a per-page summary."""

    df = pd.DataFrame(csv_rows(records), columns=list(config.CSV_HEADERS))
    if df.empty:
        summary = pd.DataFrame(columns=["Página", "Documentos", "Arquivos"])
    else:
        summary = (
            pd.DataFrame(
                [
                    {"Página": r.page_number, "Título": r.title, "Arquivos": len(r.attachments)}
                    for r in records
                ]
            )
            .groupby("Página")
            .agg(Documentos=("Título", "size"), Arquivos=("Arquivos", "sum"))
            .reset_index()
        )

    dest_path = Path(dest_path)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(dest_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Documentos")
        summary.to_excel(writer, index=False, sheet_name="Resumo")

    log_line(f"Planilha salva em: {dest_path}")
    return dest_path


__all__ = [
    "csv_rows",
    "write_json_index",
    "write_csv_index",
    "write_index",
    "export_excel",
]
