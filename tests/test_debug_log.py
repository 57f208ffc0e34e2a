from __future__ import annotations

from pathlib import Path

import pytest

from gdalign.debug_log import (
    close_search_debug_log,
    init_search_debug_log,
    search_debug_log,
    search_debug_log_path,
)
from gdalign.engine.search import SearchParams, run_search
from gdalign.speeds import SpeedPreset


def test_disabled_by_default() -> None:
    assert init_search_debug_log() is None
    assert search_debug_log_path() is None
    search_debug_log("ignored", a=1)


def test_env_var_enables_log(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "env.log"
    monkeypatch.setenv("GDALIGN_LOG", str(path))
    try:
        assert init_search_debug_log() == path
    finally:
        close_search_debug_log()
    assert "event=init" in path.read_text(encoding="utf-8")


def test_search_events_are_written(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "search.log"
    init_search_debug_log(path)
    try:
        run_search(SearchParams(target="100.000000", tps=240.0, speed=SpeedPreset.NORMAL))
        search_debug_log("note", text="two\nlines", b=2, a=1)
    finally:
        close_search_debug_log()

    lines = path.read_text(encoding="utf-8").splitlines()
    events = [line.split(" ")[1] for line in lines]
    assert events == ["event=init", "event=resolve", "event=cache_built", "event=search_done", "event=note"]
    assert lines[-1].endswith("event=note a=1 b=2 text=two\\nlines")
    assert search_debug_log_path() is None
