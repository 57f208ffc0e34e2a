from __future__ import annotations

import datetime as dt
import math
from pathlib import Path

import msgspec
import pytest

from gdalign.engine.collector import Alignment
from gdalign.engine.search import SearchParams, run_search
from gdalign.export import (
    REPORT_FORMAT_VERSION,
    build_report,
    default_csv_name,
    dump_report,
    load_report,
    render_csv,
    write_csv,
    write_report,
)
from gdalign.speeds import SpeedPreset


def test_render_csv_uses_six_decimals() -> None:
    text = render_csv([Alignment(0, 100.0, 100.0), Alignment(2, 97.4035, 97.9035)])
    assert text.splitlines() == [
        "ticks_since_portal,portalX_min,portalX_max",
        "0,100.000000,100.000000",
        "2,97.403500,97.903500",
    ]


def test_default_csv_name_is_timestamped() -> None:
    now = dt.datetime(2024, 3, 5, 7, 8, 9)
    assert default_csv_name(now) == "alignments_2024-03-05_07-08-09.csv"


def test_write_csv_creates_parent_dirs(tmp_path: Path) -> None:
    out = write_csv([Alignment(1, 2.0, 3.0)], tmp_path / "nested" / "out.csv")
    assert out.read_text(encoding="utf-8").splitlines()[1] == "1,2.000000,3.000000"
    assert not list(out.parent.glob("*.tmp.*"))


def test_report_roundtrip(tmp_path: Path) -> None:
    result = run_search(SearchParams(target="100.000000", tps=240.0, speed=SpeedPreset.NORMAL, leniency=0.25))
    path = write_report(result, tmp_path / "report.json")
    report = load_report(path.read_bytes())
    assert report.version == REPORT_FORMAT_VERSION
    assert report.target == "100.000000"
    assert report.speed == "1x"
    assert report.precision == "single"
    assert report.strategy == "preimage"
    assert report.canonical == 100.0
    assert report.max_ticks == result.max_ticks
    assert report.truncated_by_tick_cap is False
    assert len(report.alignments) == len(result.alignments)
    first = report.alignments[0]
    assert (first.ticks_since_portal, first.portal_min, first.portal_max) == (
        result.alignments[0].ticks_since_portal,
        result.alignments[0].portal_min,
        result.alignments[0].portal_max,
    )
    assert report == build_report(result)


def test_load_report_rejects_unknown_fields_and_versions() -> None:
    result = run_search(SearchParams(target="5", tps=60.0, speed=SpeedPreset.HALF))
    data = msgspec.json.decode(dump_report(build_report(result)))
    data["surprise"] = 1
    with pytest.raises(msgspec.ValidationError):
        load_report(msgspec.json.encode(data))

    del data["surprise"]
    data["version"] = 99
    with pytest.raises(ValueError):
        load_report(msgspec.json.encode(data).decode("utf-8"))


def test_report_roundtrip_with_overflowing_bounds() -> None:
    result = run_search(
        SearchParams(target="3.4028235e38", tps=240.0, speed=SpeedPreset.QUADRUPLE, leniency=1e38, tick_ceiling=5)
    )
    assert math.isinf(result.resolved.range_max)
    assert math.isinf(result.alignments[0].portal_max)

    report = load_report(dump_report(build_report(result)))
    assert report.range_max is None
    assert report.alignments[0].portal_max is None
    assert report.alignments[0].portal_min == result.alignments[0].portal_min
    assert report == build_report(result)
