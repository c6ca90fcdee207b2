"""Zipped aggTrades archives on disk."""

from kline_core.archive.reader import iter_trades, last_trade_in, open_entry
from kline_core.archive.source import AGG_TRADES_MARKER, ArchiveSource, symbol_from_archive

__all__ = [
    "AGG_TRADES_MARKER",
    "ArchiveSource",
    "iter_trades",
    "last_trade_in",
    "open_entry",
    "symbol_from_archive",
]
