"""Trade to per-minute OHLCV aggregation."""

from kline_core.aggregation.bucket import MinuteBucket
from kline_core.aggregation.dataset import DailyDataset
from kline_core.aggregation.series import MINUTES_PER_DAY, InstrumentSeries, PrevDayLookup
from kline_core.aggregation.session import check_day_length, day_start_for, day_start_of, trading_day_for

__all__ = [
    "DailyDataset",
    "InstrumentSeries",
    "MINUTES_PER_DAY",
    "MinuteBucket",
    "PrevDayLookup",
    "check_day_length",
    "day_start_for",
    "day_start_of",
    "trading_day_for",
]
