"""YAML-based configuration.

Reads ``$XDG_CONFIG_HOME/mirro/mirro.yaml`` (or an explicit path), fills
in defaults for anything missing, and combines it with command line
overrides into a ``Configuration``. The file is only ever read.
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .fetch import DEFAULT_URL
from .types import ExportSettings, ExportSort, Filter, ViewSort

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "mirro.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "outfile": "mirrorlist",
    "export": 50,
    "filters": ["https", "http"],
    "view": "alphabetical",
    "sort": "score",
    "countries": [],
    "cache-ttl": 24,
    "url": DEFAULT_URL,
    "debug": False,
}


def get_config_dir() -> Path:
    """Get the mirro config directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config) / "mirro"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_config_dir() / CONFIG_FILENAME


def get_cache_dir() -> Path:
    """Get the cache directory (status cache and log file)."""
    xdg_cache = os.environ.get("XDG_CACHE_HOME", os.path.expanduser("~/.cache"))
    return Path(xdg_cache) / "mirro"


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load the config file merged over the defaults.

    A missing, unreadable or corrupt file yields the defaults.
    """
    config_path = path or get_config_path()
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            return copy.deepcopy(DEFAULT_CONFIG)
        return _deep_merge(copy.deepcopy(DEFAULT_CONFIG), data)
    except FileNotFoundError:
        return copy.deepcopy(DEFAULT_CONFIG)
    except (yaml.YAMLError, OSError) as e:
        logger.warning("ignoring unreadable config %s: %s", config_path, e)
        return copy.deepcopy(DEFAULT_CONFIG)


def _enum_value(enum_cls, raw: Any, key: str):
    try:
        return enum_cls(str(raw).strip().lower().replace("_", "-"))
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigError(f"Invalid {key} '{raw}' (choose from: {choices})") from None


def _positive_int(raw: Any, key: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid {key} '{raw}': expected a number") from None
    if value < 0:
        raise ConfigError(f"Invalid {key} '{raw}': must not be negative")
    return value


def _as_list(raw: Any) -> list:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


@dataclass(frozen=True)
class Configuration:
    """Settings for one dashboard session."""

    outfile: Path = Path("mirrorlist")
    export: int = 50
    filters: tuple[Filter, ...] = (Filter.HTTPS, Filter.HTTP)
    view: ViewSort = ViewSort.ALPHABETICAL
    sort: ExportSort = ExportSort.SCORE
    countries: tuple[str, ...] = ()
    ttl: int = 24
    url: str = DEFAULT_URL
    debug: bool = False
    config_path: Path | None = field(default=None, compare=False)
    overrides: tuple[tuple[str, Any], ...] = field(default=(), compare=False)

    @property
    def export_settings(self) -> ExportSettings:
        return ExportSettings(outfile=self.outfile, limit=self.export, order=self.sort)


def build_configuration(
    cfg: dict[str, Any],
    overrides: dict[str, Any] | None = None,
    config_path: Path | None = None,
) -> Configuration:
    """Validate merged config values; non-None overrides win.

    Raises:
        ConfigError: On unknown enum values or malformed numbers.
    """
    applied = {key: value for key, value in (overrides or {}).items() if value is not None}
    merged = {**cfg, **applied}

    filters = tuple(
        dict.fromkeys(_enum_value(Filter, raw, "filter") for raw in _as_list(merged.get("filters")))
    )
    return Configuration(
        outfile=Path(os.path.expanduser(str(merged.get("outfile") or "mirrorlist"))),
        export=_positive_int(merged.get("export", 50), "export"),
        filters=filters,
        view=_enum_value(ViewSort, merged.get("view", "alphabetical"), "view"),
        sort=_enum_value(ExportSort, merged.get("sort", "score"), "sort"),
        countries=tuple(str(c).strip() for c in _as_list(merged.get("countries")) if str(c).strip()),
        ttl=_positive_int(merged.get("cache-ttl", 24), "cache-ttl"),
        url=str(merged.get("url") or DEFAULT_URL),
        debug=bool(merged.get("debug", False)),
        config_path=config_path,
        overrides=tuple(applied.items()),
    )


def load_configuration(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Configuration:
    """Read the config file and apply overrides."""
    config_path = path or get_config_path()
    return build_configuration(load_config(config_path), overrides, config_path=config_path)

