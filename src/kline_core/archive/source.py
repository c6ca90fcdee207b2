"""The <base>/<category>/<date>/ directory tree of aggTrades zips."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterator

import structlog

from kline_core.archive.reader import iter_trades, last_trade_in
from kline_core.config.schema import Category
from kline_core.errors import KlineError, PrevDayLookupError, StructuralError
from kline_core.models.trade import Trade

log = structlog.get_logger("archive")

AGG_TRADES_MARKER = "-aggTrades-"
ARCHIVE_SUFFIX = ".zip"


def symbol_from_archive(path: Path) -> str:
    """``BTCUSDT-aggTrades-2024-01-05.zip`` -> ``BTCUSDT``."""
    name = path.name
    if AGG_TRADES_MARKER not in name:
        raise StructuralError("archive name lacks aggTrades marker", {"path": str(path)})
    symbol = name.split(AGG_TRADES_MARKER, 1)[0]
    if not symbol:
        raise StructuralError("archive name has no symbol", {"path": str(path)})
    return symbol


class ArchiveSource:
    """Locates daily aggTrades archives under a base directory."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def day_dir(self, category: Category, day: date) -> Path:
        return self.base_dir / category.value / day.isoformat()

    def archive_path(self, symbol: str, category: Category, day: date) -> Path:
        d = day.isoformat()
        return self.day_dir(category, day) / f"{symbol}{AGG_TRADES_MARKER}{d}{ARCHIVE_SUFFIX}"

    def list_archives(self, category: Category, day: date) -> list[Path]:
        """Zip archives for one category-day, sorted by name.

        Sidecar files (``.CHECKSUM`` and the like) are skipped.
        """
        day_dir = self.day_dir(category, day)
        if not day_dir.is_dir():
            raise StructuralError("input directory missing", {"path": str(day_dir)})
        archives = []
        for entry in sorted(day_dir.iterdir()):
            if entry.is_dir():
                continue
            if entry.suffix != ARCHIVE_SUFFIX:
                log.debug("skipping_non_archive", path=str(entry))
                continue
            archives.append(entry)
        return archives

    def iter_trades(self, path: Path) -> Iterator[Trade]:
        return iter_trades(path)

    def last_trade(self, symbol: str, category: Category, day: date) -> Trade:
        """Last trade of *symbol* on *day*; the previous-day fallback seed.

        Raises PrevDayLookupError when the archive is missing, unreadable,
        malformed, or holds no trades.
        """
        path = self.archive_path(symbol, category, day)
        details = {"symbol": symbol, "category": category.value, "date": day.isoformat(), "path": str(path)}
        try:
            trade = last_trade_in(path)
        except KlineError as exc:
            raise PrevDayLookupError(f"previous-day source unusable: {exc.message}", details) from exc
        except OSError as exc:
            raise PrevDayLookupError("previous-day source unreadable", details) from exc
        if trade is None:
            raise PrevDayLookupError("previous-day archive holds no trades", details)
        log.info("previous_day_trade", price=str(trade.price), **details)
        return trade
