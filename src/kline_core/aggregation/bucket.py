"""OHLCV accumulator for one instrument-minute."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from kline_core.models.trade import Trade

ZERO = Decimal(0)


@dataclass
class MinuteBucket:
    """OHLCV state for one minute.

    ``timestamp`` is the epoch second of the last trade applied directly to
    this bucket; ``None`` means no trade landed here.  A bucket can still hold
    prices without trades when it was carried forward from an earlier minute
    (``carried``), in which case all volumes are zero.
    """

    open: Decimal = ZERO
    high: Decimal = ZERO
    low: Decimal = ZERO
    close: Decimal = ZERO
    buy_volume: Decimal = ZERO
    sell_volume: Decimal = ZERO
    turnover: Decimal = ZERO
    timestamp: int | None = None
    carried: bool = False

    @property
    def is_empty(self) -> bool:
        """True until a trade is applied directly."""
        return self.timestamp is None

    @property
    def is_filled(self) -> bool:
        """True once the bucket holds prices, traded or carried."""
        return self.timestamp is not None or self.carried

    def apply(self, trade: Trade) -> MinuteBucket:
        """Merge one trade into the bucket and return it."""
        price = trade.price
        if self.timestamp is None:
            # First real trade replaces any carried prices; carried volumes are zero.
            self.open = self.high = self.low = price
            self.carried = False
        else:
            if price > self.high:
                self.high = price
            if price < self.low:
                self.low = price
        self.close = price
        if trade.is_sell:
            self.sell_volume += trade.volume
        else:
            self.buy_volume += trade.volume
        self.turnover += price * trade.volume
        self.timestamp = trade.timestamp
        return self

    def carry_from(self, price: Decimal) -> MinuteBucket:
        """Reset to a flat, zero-volume bar at *price*."""
        self.open = self.high = self.low = self.close = price
        self.buy_volume = self.sell_volume = self.turnover = ZERO
        self.timestamp = None
        self.carried = True
        return self
