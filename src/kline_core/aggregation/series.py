"""One instrument's 1440 minute buckets for one trading day."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Callable

import structlog

from kline_core.aggregation.bucket import MinuteBucket
from kline_core.config.schema import Category
from kline_core.errors import MinuteRangeError, PrevDayLookupError
from kline_core.models.trade import Trade

log = structlog.get_logger("aggregation")

MINUTES_PER_DAY = 1440
SECONDS_PER_MINUTE = 60

# (symbol, category, previous trading day) -> that day's last trade
PrevDayLookup = Callable[[str, Category, date], Trade]


class InstrumentSeries:
    """Dense per-minute OHLCV series with carry-forward gap filling.

    Minute ``i`` covers ``[day_start + 60*i, day_start + 60*(i+1))``.  Empty
    minutes before a trade are carried forward from the nearest earlier
    filled minute; when there is none, the previous day's last trade seeds
    them through *lookup*, which is called at most once per series.
    """

    def __init__(
        self,
        symbol: str,
        category: Category,
        trading_date: date,
        day_start: int,
        lookup: PrevDayLookup,
        fold_boundary_minute: bool = True,
    ) -> None:
        self.symbol = symbol
        self.category = category
        self.trading_date = trading_date
        self.day_start = day_start
        self.fold_boundary_minute = fold_boundary_minute
        self.buckets = [MinuteBucket() for _ in range(MINUTES_PER_DAY)]
        self._lookup = lookup
        self._seed: Decimal | None = None

    def __len__(self) -> int:
        return len(self.buckets)

    def minute_index(self, ts: int) -> int:
        """Bucket index for epoch second *ts*.

        A trade stamped inside the first minute after the day boundary folds
        into the last slot when ``fold_boundary_minute`` is set; anything else
        outside ``[0, 1439]`` raises MinuteRangeError.
        """
        minute = (ts - self.day_start) // SECONDS_PER_MINUTE
        if minute == MINUTES_PER_DAY and self.fold_boundary_minute:
            return MINUTES_PER_DAY - 1
        if not 0 <= minute < MINUTES_PER_DAY:
            raise MinuteRangeError(
                "trade timestamp outside trading day",
                {
                    "symbol": self.symbol,
                    "category": self.category.value,
                    "date": self.trading_date.isoformat(),
                    "timestamp": ts,
                    "minute": minute,
                },
            )
        return minute

    def minute_timestamp_ms(self, index: int) -> int:
        """Epoch milliseconds at which minute *index* starts."""
        return (self.day_start + index * SECONDS_PER_MINUTE) * 1000

    def add_trade(self, trade: Trade) -> None:
        minute = self.minute_index(trade.timestamp)
        self.buckets[minute].apply(trade)
        if minute > 0:
            self._backfill(minute)

    def fill_trailing_gaps(self) -> None:
        """Carry the last filled minute through the end of the day."""
        self._backfill(MINUTES_PER_DAY)

    # ── Gap filling ───────────────────────────────────────────

    def _backfill(self, end: int) -> None:
        """Carry forward into the unfilled run of buckets just before *end*."""
        i = end - 1
        while i >= 0 and not self.buckets[i].is_filled:
            i -= 1
        if i == end - 1:
            return
        price = self.buckets[i].close if i >= 0 else self._previous_close()
        for j in range(i + 1, end):
            self.buckets[j].carry_from(price)

    def _previous_close(self) -> Decimal:
        if self._seed is None:
            prev_day = self.trading_date - timedelta(days=1)
            log.info(
                "previous_day_fallback",
                symbol=self.symbol,
                category=self.category.value,
                date=prev_day.isoformat(),
            )
            trade = self._lookup(self.symbol, self.category, prev_day)
            if trade is None:
                raise PrevDayLookupError(
                    "no previous-day trade",
                    {"symbol": self.symbol, "category": self.category.value, "date": prev_day.isoformat()},
                )
            self._seed = trade.price
        return self._seed
