"""Helpers for persisting and restoring the scrape position."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .models import DocumentRecord
from .utils import load_json_file, log_line, save_json_file

ORIGIN_CHECKPOINT = "checkpoint"
ORIGIN_INDEX = "index"
ORIGIN_FRESH = "fresh"


@dataclass
class ResumePoint:
    start_page: int
    records: List[DocumentRecord] = field(default_factory=list)
    origin: str = ORIGIN_FRESH


def load_checkpoint(path: Path) -> Optional[Dict]:
    """Load the persisted checkpoint if present and well formed."""

    data = load_json_file(path)
    if not isinstance(data, dict):
        return None
    try:
        last_page = int(data["last_completed_page"])
    except (KeyError, TypeError, ValueError):
        log_line(f"[STATE] Ignoring malformed checkpoint at {path}")
        return None
    if last_page < 1:
        return None
    data["last_completed_page"] = last_page
    return data


def save_checkpoint(path: Path, last_completed_page: int) -> None:
    """Record that every document of ``last_completed_page`` has been handled."""

    save_json_file(
        path,
        {"last_completed_page": int(last_completed_page), "saved_at_ts": time.time()},
    )


def clear_checkpoint(path: Path) -> None:
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass


def load_index_records(path: Path) -> List[DocumentRecord]:
    """Read the JSON index; any problem is logged and yields an empty list."""

    path = Path(path)
    if not path.exists():
        return []

    data = load_json_file(path)
    if not isinstance(data, list):
        log_line(f"Erro ao ler {path.name}: expected a JSON array")
        return []

    try:
        return [DocumentRecord.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        log_line(f"Erro ao ler {path.name}: malformed record ({exc!r})")
        return []


def locate_resume(index_path: Path, checkpoint_path: Path) -> ResumePoint:
    """Work out where a new run should continue.

    A checkpoint names the last fully processed page, so the run continues on
    the page after it. Without one, the page of the last indexed record is
    redone from scratch since it may have been cut short.
    """

    records = load_index_records(index_path)
    checkpoint = load_checkpoint(checkpoint_path)

    if checkpoint is not None:
        last_page = checkpoint["last_completed_page"]
        kept = [record for record in records if record.page_number <= last_page]
        log_line(f"Retomando a partir da página {last_page + 1} (checkpoint)...")
        return ResumePoint(start_page=last_page + 1, records=kept, origin=ORIGIN_CHECKPOINT)

    if records:
        last_page = records[-1].page_number
        kept = [record for record in records if record.page_number < last_page]
        log_line(f"Retomando a partir da página {last_page}...")
        return ResumePoint(start_page=max(1, last_page), records=kept, origin=ORIGIN_INDEX)

    return ResumePoint(start_page=1)


__all__ = [
    "ResumePoint",
    "load_checkpoint",
    "save_checkpoint",
    "clear_checkpoint",
    "load_index_records",
    "locate_resume",
]
