from __future__ import annotations

import csv
import datetime as dt
import io
import math
import os
from pathlib import Path
from typing import Sequence

import msgspec

from . import __version__
from .debug_log import search_debug_log
from .engine.collector import Alignment
from .engine.search import SearchResult

__all__ = [
    "AlignmentRow",
    "CSV_HEADER",
    "REPORT_FORMAT_VERSION",
    "SearchReport",
    "build_report",
    "default_csv_name",
    "dump_report",
    "load_report",
    "render_csv",
    "write_csv",
    "write_report",
]

CSV_HEADER = ("ticks_since_portal", "portalX_min", "portalX_max")
REPORT_FORMAT_VERSION = 1


class AlignmentRow(msgspec.Struct, forbid_unknown_fields=True):
    ticks_since_portal: int
    portal_min: float
    # JSON has no infinity; `None` stands for a bound that overflowed to +inf.
    portal_max: float | None


class SearchReport(msgspec.Struct, forbid_unknown_fields=True):
    version: int
    tool_version: str
    target: str
    canonical: float
    range_min: float
    range_max: float | None
    tps: float
    speed: str
    leniency: float
    precision: str
    strategy: str
    delta: float
    required_ticks: int | None
    max_ticks: int
    ticks_checked: int
    truncated_by_tick_cap: bool
    truncated_by_result_cap: bool
    cancelled: bool
    cache_seconds: float
    search_seconds: float
    warnings: list[str] = msgspec.field(default_factory=list)
    alignments: list[AlignmentRow] = msgspec.field(default_factory=list)


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


def default_csv_name(now: dt.datetime | None = None) -> str:
    stamp = (now or dt.datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")
    return f"alignments_{stamp}.csv"


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + f".tmp.{os.getpid()}")
    tmp_path.write_bytes(data)
    tmp_path.replace(path)


def render_csv(alignments: Sequence[Alignment]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in alignments:
        writer.writerow(
            (
                int(row.ticks_since_portal),
                f"{row.portal_min:.6f}",
                f"{row.portal_max:.6f}",
            )
        )
    return buf.getvalue()


def write_csv(alignments: Sequence[Alignment], path: Path) -> Path:
    path = Path(path)
    _atomic_write_bytes(path, render_csv(alignments).encode("utf-8"))
    search_debug_log("export", kind="csv", path=str(path), rows=len(alignments))
    return path.resolve()


def build_report(result: SearchResult) -> SearchReport:
    params = result.params
    return SearchReport(
        version=REPORT_FORMAT_VERSION,
        tool_version=str(__version__),
        target=result.resolved.text,
        canonical=result.resolved.canonical,
        range_min=result.resolved.range_min,
        range_max=_finite_or_none(result.resolved.range_max),
        tps=params.tps,
        speed=params.speed.label,
        leniency=params.leniency,
        precision=params.precision.value,
        strategy=params.strategy.value,
        delta=result.delta,
        required_ticks=result.budget.required,
        max_ticks=result.max_ticks,
        ticks_checked=result.ticks_checked,
        truncated_by_tick_cap=result.was_truncated_by_tick_cap,
        truncated_by_result_cap=result.truncated_by_result_cap,
        cancelled=result.cancelled,
        cache_seconds=result.cache_seconds,
        search_seconds=result.search_seconds,
        warnings=[str(w) for w in result.warnings],
        alignments=[
            AlignmentRow(
                ticks_since_portal=a.ticks_since_portal,
                portal_min=a.portal_min,
                portal_max=_finite_or_none(a.portal_max),
            )
            for a in result.alignments
        ],
    )


def dump_report(report: SearchReport) -> bytes:
    return msgspec.json.format(msgspec.json.encode(report), indent=2)


def load_report(data: bytes | str) -> SearchReport:
    if isinstance(data, str):
        data = data.encode("utf-8")
    report = msgspec.json.decode(data, type=SearchReport)
    if int(report.version) != REPORT_FORMAT_VERSION:
        raise ValueError(f"unsupported report version: {report.version}")
    return report


def write_report(result: SearchResult, path: Path) -> Path:
    path = Path(path)
    report = build_report(result)
    _atomic_write_bytes(path, dump_report(report))
    search_debug_log("export", kind="json", path=str(path), rows=len(report.alignments))
    return path.resolve()
