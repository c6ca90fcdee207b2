"""Error taxonomy. Every failure here is fatal to the run."""

from __future__ import annotations

from typing import Any


class KlineError(Exception):
    """Base class for kline builder errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class ConfigError(KlineError):
    """Config file present but unreadable or invalid."""


class ParseError(KlineError):
    """Malformed trade line or archive content."""


class StructuralError(KlineError):
    """Unexpected archive or directory layout."""


class PrevDayLookupError(KlineError, LookupError):
    """Previous day's last trade could not be read."""


class MinuteRangeError(KlineError, ValueError):
    """Trade timestamp falls outside the day's minute slots."""


class DatasetStateError(KlineError):
    """Dataset lifecycle violated (add after finalize, export before finalize)."""


class ExportError(KlineError):
    """Dataset cannot be rendered into tables."""


class RunAborted(KlineError):
    """Pipeline stopped because another pipeline in the run failed."""
