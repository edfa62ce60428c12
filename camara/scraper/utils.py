from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

LOGGER = logging.getLogger("camara")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Optional[Path] = None

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
MAX_NAME_BYTES = 180
# Most filesystems cap a single path component at 255 bytes.
MAX_FILENAME_BYTES = 255


def _configure_logger(log_path: Optional[Path]) -> None:
    """Configure the shared logger for stdout and, optionally, ``log_path``."""

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    LOGGER.addHandler(stream_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        LOGGER.addHandler(file_handler)

    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False

    _CURRENT_LOG_FILE = log_path
    _LOGGER_INITIALISED = True


def _ensure_logger() -> None:
    if _LOGGER_INITIALISED:
        return
    _configure_logger(None)


def setup_run_logger(log_dir: Path) -> Path:
    """Rotate to a fresh timestamped log file for the current run."""

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = Path(log_dir) / f"scrape_{timestamp}.log"
    _configure_logger(log_path)
    LOGGER.info("Logging to %s", log_path)
    return log_path


def get_current_log_path() -> Optional[Path]:
    """Return the log file currently receiving lines, if any."""

    _ensure_logger()
    return _CURRENT_LOG_FILE


def log_line(message: str) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.info(message)


def truncate_to_max_bytes(value: str, max_bytes: int) -> str:
    """Truncate *value* so its UTF-8 byte length does not exceed *max_bytes*."""

    encoded = value.encode("utf-8")
    if len(encoded) <= max_bytes:
        return value

    encoded = encoded[:max_bytes]
    while encoded and (encoded[-1] & 0b11000000) == 0b10000000:
        encoded = encoded[:-1]

    return encoded.decode("utf-8", "ignore")


def sanitize_name(name: str | None, *, max_bytes: int = MAX_NAME_BYTES) -> str:
    """
    Return a filesystem-safe folder or file name derived from *name*.

    Runs of whitespace become a single underscore and each of
    ``< > : " / \\ | ? *`` is replaced with an underscore. Leading and
    trailing dots are dropped so ``.`` and ``..`` never name a folder.
    """
    cleaned = _WHITESPACE.sub("_", (name or "").strip())
    cleaned = _UNSAFE_CHARS.sub("_", cleaned)
    cleaned = truncate_to_max_bytes(cleaned, max_bytes).strip(".")
    return cleaned or "documento"


def build_file_name(stem: str, extension: str, *, max_bytes: int = MAX_FILENAME_BYTES) -> str:
    """Join ``stem`` and ``extension``, trimming the stem to fit ``max_bytes``."""

    suffix = f".{extension}" if extension else ""
    budget = max(1, max_bytes - len(suffix.encode("utf-8")))
    trimmed = truncate_to_max_bytes(stem, budget).rstrip(".") or "arquivo"
    return f"{trimmed}{suffix}"


def load_json_file(path: Path, default: Any = None) -> Any:
    """Load JSON from *path*, returning *default* when missing or invalid."""

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        return default
    except (OSError, json.JSONDecodeError) as exc:
        log_line(f"[UTILS] Unable to read {path}: {exc}")
        return default


def save_json_file(path: Path, payload: Any) -> None:
    """Persist *payload* as pretty-printed JSON, atomically."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")

    with tmp_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, ensure_ascii=False, indent=2)

    tmp_path.replace(path)


__all__ = [
    "LOGGER",
    "setup_run_logger",
    "get_current_log_path",
    "log_line",
    "truncate_to_max_bytes",
    "sanitize_name",
    "build_file_name",
    "load_json_file",
    "save_json_file",
]
