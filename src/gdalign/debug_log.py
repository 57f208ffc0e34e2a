from __future__ import annotations

import datetime as dt
import os
from pathlib import Path
from threading import Lock

from . import __version__

_TRACE_LOCK = Lock()
_TRACE_PATH: Path | None = None

LOG_ENV_VAR = "GDALIGN_LOG"


def _format_value(value: object) -> str:
    text = str(value)
    return text.replace("\n", "\\n")


def _format_fields(fields: dict[str, object]) -> str:
    parts: list[str] = []
    for key in sorted(fields):
        parts.append(f"{key}={_format_value(fields[key])}")
    return " ".join(parts)


def search_debug_log_path() -> Path | None:
    with _TRACE_LOCK:
        return _TRACE_PATH


def init_search_debug_log(path: Path | str | None = None) -> Path | None:
    """Start appending search events to `path` (or `$GDALIGN_LOG`); None disables."""

    if path is None:
        raw = os.environ.get(LOG_ENV_VAR, "").strip()
        if not raw:
            return None
        path = raw
    resolved = Path(path).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)

    with _TRACE_LOCK:
        global _TRACE_PATH
        _TRACE_PATH = resolved

    search_debug_log("init", version=__version__, pid=int(os.getpid()))
    return resolved


def search_debug_log(event: str, **fields: object) -> None:
    with _TRACE_LOCK:
        path = _TRACE_PATH
    if path is None:
        return

    timestamp = dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")
    payload = _format_fields(fields)
    line = f"{timestamp} event={str(event).strip()}"
    if payload:
        line += f" {payload}"
    line += "\n"

    with _TRACE_LOCK:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(line)


def close_search_debug_log() -> None:
    with _TRACE_LOCK:
        global _TRACE_PATH
        _TRACE_PATH = None


__all__ = [
    "LOG_ENV_VAR",
    "close_search_debug_log",
    "init_search_debug_log",
    "search_debug_log",
    "search_debug_log_path",
]
