"""Every instrument series of one category for one trading day."""

from __future__ import annotations

from datetime import date

import structlog

from kline_core.aggregation.series import InstrumentSeries, PrevDayLookup
from kline_core.aggregation.session import check_day_length, day_start_of, trading_day_for
from kline_core.config.schema import Category, SessionConfig
from kline_core.errors import DatasetStateError, ExportError
from kline_core.export.tables import ExportBundle, build_bundle
from kline_core.models.trade import Trade

log = structlog.get_logger("aggregation")


class DailyDataset:
    """Routes trades to lazily created per-instrument series.

    Lifecycle: ``add_trade`` any number of times, ``finalize`` exactly once,
    then ``export`` as often as needed.  When *trading_date* is omitted the
    day is taken from the first trade's timestamp.
    """

    def __init__(
        self,
        category: Category,
        session: SessionConfig,
        lookup: PrevDayLookup,
        trading_date: date | None = None,
    ) -> None:
        self.category = category
        self.session = session
        self.series: dict[str, InstrumentSeries] = {}
        self._lookup = lookup
        self._finalized = False
        self.trading_date: date | None = None
        self.day_start: int | None = None
        if trading_date is not None:
            self._set_day(trading_date)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _set_day(self, day: date) -> None:
        check_day_length(day, self.session)
        self.trading_date = day
        self.day_start = day_start_of(day, self.session)

    def add_trade(self, symbol: str, trade: Trade) -> None:
        if self._finalized:
            raise DatasetStateError("dataset already finalized", {"symbol": symbol})
        series = self.series.get(symbol)
        if series is None:
            if self.trading_date is None:
                self._set_day(trading_day_for(trade.timestamp, self.session))
                log.info(
                    "trading_day_derived",
                    category=self.category.value,
                    date=self.trading_date.isoformat(),
                    symbol=symbol,
                )
            series = InstrumentSeries(
                symbol=symbol,
                category=self.category,
                trading_date=self.trading_date,
                day_start=self.day_start,
                lookup=self._lookup,
                fold_boundary_minute=self.session.fold_boundary_minute,
            )
            self.series[symbol] = series
        series.add_trade(trade)

    def finalize(self) -> None:
        """Fill trailing gaps in every series."""
        if self._finalized:
            raise DatasetStateError("dataset already finalized", {"category": self.category.value})
        for series in self.series.values():
            series.fill_trailing_gaps()
        self._finalized = True
        log.debug("dataset_finalized", category=self.category.value, instruments=len(self.series))

    def export(self, turnover_decimals: int | None = 2) -> ExportBundle:
        """Render pivot and per-instrument tables.  Does not mutate the dataset."""
        if not self._finalized:
            raise DatasetStateError("export before finalize", {"category": self.category.value})
        if not self.series:
            raise ExportError(
                "no instruments to export",
                {
                    "category": self.category.value,
                    "date": self.trading_date.isoformat() if self.trading_date else None,
                },
            )
        return build_bundle(self, turnover_decimals)
