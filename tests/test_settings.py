from __future__ import annotations

from pathlib import Path

import pytest

from gdalign.engine.verify import VerifyStrategy
from gdalign.errors import ConfigError, InvalidInput
from gdalign.float_bits import Precision
from gdalign.settings import CONFIG_NAME, SearchSettings, config_path, load_settings


def test_defaults_without_config(tmp_path: Path) -> None:
    settings = load_settings(env={}, path=tmp_path / "missing.toml")
    assert settings == SearchSettings()
    assert settings.tick_ceiling == 150_000
    assert settings.precision is Precision.SINGLE
    assert settings.strategy is VerifyStrategy.PREIMAGE


def test_config_file_then_env_then_overrides(tmp_path: Path) -> None:
    cfg = tmp_path / CONFIG_NAME
    cfg.write_text(
        '[search]\ntick_ceiling = 5000\nprecision = "double"\nresult_cap = 7\nexport_dir = "out"\n',
        encoding="utf-8",
    )
    env = {"GDALIGN_CONFIG": str(cfg), "GDALIGN_TICK_CEILING": "6000", "GDALIGN_STRATEGY": "brute-force"}
    settings = load_settings({"result_cap": 9, "precision": None}, env=env)
    assert settings.tick_ceiling == 6000
    assert settings.precision is Precision.DOUBLE
    assert settings.strategy is VerifyStrategy.BRUTE_FORCE
    assert settings.result_cap == 9
    assert settings.export_dir == Path("out")


def test_log_env_var_sets_log_file(tmp_path: Path) -> None:
    settings = load_settings(env={"GDALIGN_LOG": str(tmp_path / "trace.log")}, path=tmp_path / "missing.toml")
    assert settings.log_file == tmp_path / "trace.log"


def test_top_level_keys_are_accepted(tmp_path: Path) -> None:
    cfg = tmp_path / "flat.toml"
    cfg.write_text("display_limit = 50\n", encoding="utf-8")
    assert load_settings(env={}, path=cfg).display_limit == 50


@pytest.mark.parametrize(
    "body",
    [
        "tick_ceiling = -1\n",
        "tick_ceiling = true\n",
        'precision = "quad"\n',
        "display_limit = 1\n",
        "mystery = 3\n",
        "tick_ceiling = \n",
    ],
)
def test_bad_config_raises(tmp_path: Path, body: str) -> None:
    cfg = tmp_path / "bad.toml"
    cfg.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(env={}, path=cfg)


def test_config_error_is_invalid_input() -> None:
    assert issubclass(ConfigError, InvalidInput)


def test_config_path_prefers_env(tmp_path: Path) -> None:
    assert config_path({"GDALIGN_CONFIG": str(tmp_path / "x.toml")}) == tmp_path / "x.toml"
    assert config_path({}).name == CONFIG_NAME
