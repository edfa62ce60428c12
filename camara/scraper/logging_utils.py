"""``[SCRAPER][LABEL] key=value`` event lines for runs, downloads and errors."""
from __future__ import annotations

from typing import Any

from .utils import log_line


def _format_fields(fields: dict[str, Any]) -> str:
    return ", ".join(f"{key}={value!r}" for key, value in sorted(fields.items()) if value is not None)


def _scraper_event(label: str, **fields: Any) -> None:
    """Log one event line; ``None`` fields are left out. Never raises."""

    try:
        log_line(f"[SCRAPER][{label.upper()}] {_format_fields(fields)}")
    except Exception:  # noqa: BLE001
        return


__all__ = ["_scraper_event"]
