"""Render a finalized dataset into string tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from typing import TYPE_CHECKING

from kline_core.config.schema import Category

if TYPE_CHECKING:
    from kline_core.aggregation.dataset import DailyDataset
    from kline_core.aggregation.series import InstrumentSeries


@dataclass(frozen=True)
class Metric:
    """A bucket field exported as its own pivot table."""

    field: str
    suffix: str


METRICS = (
    Metric("open", "Open"),
    Metric("high", "High"),
    Metric("low", "Low"),
    Metric("close", "Close"),
    Metric("buy_volume", "BuyVol"),
    Metric("sell_volume", "SellVol"),
    Metric("turnover", "TurnOver"),
)

PIVOT_TIMESTAMP_COLUMN = "Timestamp"
INSTRUMENT_HEADER = ["timestamp", "open", "high", "low", "close", "buyvol", "sellvol", "turnover"]


@dataclass
class Table:
    header: list[str]
    rows: list[list[str]] = field(default_factory=list)


@dataclass
class ExportBundle:
    """All tables for one category-day, ready for the writer."""

    category: Category
    trading_date: date
    pivots: dict[str, Table]
    instruments: dict[str, Table]


def format_decimal(value: Decimal, places: int | None = None) -> str:
    """Plain decimal text, never scientific notation.

    With *places* the value is rounded half-even to that many decimals and
    printed with exactly that many; otherwise trailing zeros are stripped.
    """
    if places is not None:
        return f"{value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_EVEN):f}"
    if value == 0:
        return "0"
    return f"{value.normalize():f}"


def pivot_table(
    dataset: DailyDataset,
    metric: Metric,
    places: int | None = None,
) -> Table:
    """One row per minute, one column per instrument (sorted by symbol)."""
    symbols = sorted(dataset.series)
    columns = [dataset.series[s].buckets for s in symbols]
    first = dataset.series[symbols[0]]
    table = Table(header=[PIVOT_TIMESTAMP_COLUMN, *symbols])
    for i in range(len(first)):
        row = [str(first.minute_timestamp_ms(i))]
        row.extend(format_decimal(getattr(col[i], metric.field), places) for col in columns)
        table.rows.append(row)
    return table


def instrument_table(series: InstrumentSeries) -> Table:
    """One row per minute with every metric for a single instrument."""
    table = Table(header=list(INSTRUMENT_HEADER))
    for i, bucket in enumerate(series.buckets):
        table.rows.append(
            [
                str(series.minute_timestamp_ms(i)),
                format_decimal(bucket.open),
                format_decimal(bucket.high),
                format_decimal(bucket.low),
                format_decimal(bucket.close),
                format_decimal(bucket.buy_volume),
                format_decimal(bucket.sell_volume),
                format_decimal(bucket.turnover),
            ]
        )
    return table


def build_bundle(dataset: DailyDataset, turnover_decimals: int | None = 2) -> ExportBundle:
    pivots = {
        m.field: pivot_table(dataset, m, turnover_decimals if m.field == "turnover" else None)
        for m in METRICS
    }
    instruments = {symbol: instrument_table(dataset.series[symbol]) for symbol in sorted(dataset.series)}
    return ExportBundle(
        category=dataset.category,
        trading_date=dataset.trading_date,
        pivots=pivots,
        instruments=instruments,
    )
