"""structlog wiring for batch runs.

structlog events and plain stdlib records (zipfile, asyncio, ...) end up on
one stderr handler and render identically, either as one JSON object per
line or as coloured console output.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

from kline_core.errors import ConfigError

if TYPE_CHECKING:
    from kline_core.config.schema import LoggingConfig

# Applied to every record before rendering, whichever logger produced it.
_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _resolve_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ConfigError("unknown log level", {"level": level})
    return numeric


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    raise ConfigError("unknown log format", {"format": log_format})


def setup_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Install the stderr handler on the root logger.

    Raises ConfigError for an unknown level name or a format other than
    ``json`` / ``console``.  Safe to call more than once; the previous
    handlers are replaced.
    """
    numeric_level = _resolve_level(level)
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(log_format)],
    )

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)


def setup_from_config(config: LoggingConfig) -> None:
    setup_logging(level=config.level, log_format=config.format)


def get_logger(name: str | None = None, **initial_context) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
