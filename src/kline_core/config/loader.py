"""Config loader — reads YAML, applies KLINE_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from kline_core.config.schema import AppConfig
from kline_core.errors import ConfigError

_ENV_OVERRIDES = {
    "KLINE_AGG_TRADE_DIR": ("source", "agg_trade_dir"),
    "KLINE_OUTPUT_DIR": ("output", "dir"),
    "KLINE_LOG_LEVEL": ("logging", "level"),
    "KLINE_LOG_FORMAT": ("logging", "format"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    If *path* is None or the file doesn't exist, returns defaults.  A file
    that exists but cannot be parsed or validated raises ConfigError.

    Environment variable overrides:
        KLINE_AGG_TRADE_DIR  -> source.agg_trade_dir
        KLINE_OUTPUT_DIR     -> output.dir
        KLINE_LOG_LEVEL      -> logging.level
        KLINE_LOG_FORMAT     -> logging.format
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            try:
                with open(p) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError("config file is not valid YAML", {"path": str(p)}) from exc
            if not isinstance(data, dict):
                raise ConfigError("config file must hold a mapping", {"path": str(p)})

    for var, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            data.setdefault(section, {})[key] = value

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError("invalid configuration", {"errors": exc.error_count()}) from exc
