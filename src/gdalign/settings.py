from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
import os
from pathlib import Path
import tomllib
from typing import Any

from platformdirs import PlatformDirs

from .display import DEFAULT_DISPLAY_LIMIT
from .engine.backward_cache import DEFAULT_TICK_CEILING
from .engine.collector import DEFAULT_RESULT_CAP
from .engine.verify import VerifyStrategy
from .errors import ConfigError
from .float_bits import Precision

__all__ = [
    "APP_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_NAME",
    "SearchSettings",
    "config_path",
    "load_settings",
]

APP_NAME = "gdalign"
CONFIG_NAME = "gdalign.toml"
CONFIG_ENV_VAR = "GDALIGN_CONFIG"
_ENV_PREFIX = "GDALIGN_"


@dataclass(frozen=True, slots=True)
class SearchSettings:
    tick_ceiling: int = DEFAULT_TICK_CEILING
    result_cap: int = DEFAULT_RESULT_CAP
    display_limit: int = DEFAULT_DISPLAY_LIMIT
    precision: Precision = Precision.SINGLE
    strategy: VerifyStrategy = VerifyStrategy.PREIMAGE
    log_file: Path | None = None
    export_dir: Path = Path(".")

    def merged(self, overrides: Mapping[str, Any], *, source: str) -> SearchSettings:
        values = {key: _coerce(key, value, source=source) for key, value in overrides.items() if value is not None}
        return replace(self, **values)


_FIELD_NAMES = frozenset(f.name for f in fields(SearchSettings))
# `log_file` uses the bare `GDALIGN_LOG` variable shared with debug_log.
_ENV_NAMES = {name: _ENV_PREFIX + name.upper() for name in _FIELD_NAMES} | {"log_file": _ENV_PREFIX + "LOG"}


def _coerce(key: str, value: Any, *, source: str) -> Any:
    if key not in _FIELD_NAMES:
        raise ConfigError(f"{source}: unknown setting {key!r}")
    try:
        if key in ("tick_ceiling", "result_cap", "display_limit"):
            if isinstance(value, bool):
                raise ValueError("expected an integer")
            number = int(value)
            if number < 0:
                raise ValueError("must be non-negative")
            if key == "display_limit" and number < 2:
                raise ValueError("must be at least 2")
            return number
        if key == "precision":
            if isinstance(value, Precision):
                return value
            return Precision(str(value).strip().lower())
        if key == "strategy":
            if isinstance(value, VerifyStrategy):
                return value
            return VerifyStrategy(str(value).strip().lower())
        if key in ("log_file", "export_dir"):
            text = str(value).strip()
            if not text:
                return None if key == "log_file" else Path(".")
            return Path(text).expanduser()
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{source}: invalid {key}={value!r}: {exc}") from exc
    raise ConfigError(f"{source}: unhandled setting {key!r}")


def _config_dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=False)


def config_path(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(_config_dirs().user_config_path) / CONFIG_NAME


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    # Accept either top-level keys or a `[search]` table.
    section = data.get("search", data)
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: [search] must be a table")
    return dict(section)


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
) -> SearchSettings:
    """Defaults <- config file <- `GDALIGN_*` env vars <- explicit overrides."""

    env = os.environ if env is None else env
    cfg_path = path if path is not None else config_path(env)
    settings = SearchSettings().merged(_read_config_file(cfg_path), source=str(cfg_path))

    from_env = {name: env[var] for name, var in _ENV_NAMES.items() if var in env}
    settings = settings.merged(from_env, source="environment")

    if overrides:
        settings = settings.merged(overrides, source="options")
    return settings
