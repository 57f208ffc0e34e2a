from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    # Ensure the local `src/` tree wins over any other editable install that may exist
    # (e.g. a different git worktree pointing at the same project).
    src_dir = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_dir)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Never pick up a developer's real config file or trace log.
    for name in (
        "GDALIGN_LOG",
        "GDALIGN_TICK_CEILING",
        "GDALIGN_RESULT_CAP",
        "GDALIGN_DISPLAY_LIMIT",
        "GDALIGN_PRECISION",
        "GDALIGN_STRATEGY",
        "GDALIGN_EXPORT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GDALIGN_CONFIG", str(tmp_path / "no-such-config.toml"))
