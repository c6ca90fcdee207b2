"""Shared test fixtures."""

from __future__ import annotations

import zipfile
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from kline_core.config.schema import Category
from kline_core.models import Trade

HEADER = "agg_trade_id,price,quantity,first_trade_id,last_trade_id,transact_time,is_buyer_maker,is_best_match"

DAY = date(2024, 1, 5)
PREV_DAY = date(2024, 1, 4)
# 2024-01-05T00:00:00Z
DAY_START = int(datetime(2024, 1, 5, tzinfo=timezone.utc).timestamp())


def trade_line(trade_id: int, price: str, qty: str, ts_ms: int, is_sell: bool = False) -> str:
    return f"{trade_id},{price},{qty},{trade_id},{trade_id},{ts_ms},{'true' if is_sell else 'false'},true"


@pytest.fixture
def make_trade():
    """Factory: make_trade(offset_s, price, volume, is_sell=False) relative to DAY_START."""
    counter = iter(range(1, 1_000_000))

    def _make(offset_s: int, price: str, volume: str = "1", is_sell: bool = False) -> Trade:
        return Trade(
            trade_id=next(counter),
            price=Decimal(price),
            volume=Decimal(volume),
            timestamp=DAY_START + offset_s,
            is_sell=is_sell,
        )

    return _make


@pytest.fixture
def agg_dir(tmp_path) -> Path:
    d = tmp_path / "agg"
    d.mkdir()
    return d


@pytest.fixture
def write_archive(agg_dir):
    """Factory writing ``<agg_dir>/<category>/<day>/<SYMBOL>-aggTrades-<day>.zip``."""

    def _write(
        symbol: str,
        lines: list[str],
        category: Category = Category.SPOT,
        day: date = DAY,
        header: bool = True,
    ) -> Path:
        day_dir = agg_dir / category.value / day.isoformat()
        day_dir.mkdir(parents=True, exist_ok=True)
        path = day_dir / f"{symbol}-aggTrades-{day.isoformat()}.zip"
        body = "\n".join(([HEADER] if header else []) + lines) + "\n"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr(f"{symbol}-aggTrades-{day.isoformat()}.csv", body)
        return path

    return _write


class FakeLookup:
    """Previous-day lookup that records its calls."""

    def __init__(self, price: str | None = "50", error: Exception | None = None) -> None:
        self.price = price
        self.error = error
        self.calls: list[tuple[str, Category, date]] = []

    def __call__(self, symbol: str, category: Category, day: date) -> Trade | None:
        self.calls.append((symbol, category, day))
        if self.error is not None:
            raise self.error
        if self.price is None:
            return None
        return Trade(trade_id=1, price=Decimal(self.price), volume=Decimal("1"), timestamp=DAY_START - 1, is_sell=False)


@pytest.fixture
def lookup() -> FakeLookup:
    return FakeLookup()
