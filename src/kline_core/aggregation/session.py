"""Trading-day boundaries in a configured timezone."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from kline_core.config.schema import SessionConfig
from kline_core.errors import ConfigError

SECONDS_PER_DAY = 86400


def day_start_of(day: date, session: SessionConfig) -> int:
    """Epoch second at which *day* begins."""
    start = datetime.combine(day, time(hour=session.day_start_hour), tzinfo=ZoneInfo(session.timezone))
    return int(start.timestamp())


def check_day_length(day: date, session: SessionConfig) -> None:
    """Raise ConfigError unless *day* spans exactly 1440 minutes in the session zone.

    Catches historical offset changes that the config validator's sample
    years do not cover.
    """
    length = day_start_of(day + timedelta(days=1), session) - day_start_of(day, session)
    if length != SECONDS_PER_DAY:
        raise ConfigError(
            "trading day is not 24 hours in the session timezone",
            {"timezone": session.timezone, "date": day.isoformat(), "seconds": length},
        )


def trading_day_for(ts: int, session: SessionConfig) -> date:
    """The trading day an epoch second belongs to (latest boundary at or before *ts*)."""
    local = datetime.fromtimestamp(ts, tz=ZoneInfo(session.timezone))
    day = local.date()
    if local.hour < session.day_start_hour:
        day -= timedelta(days=1)
    return day


def day_start_for(ts: int, session: SessionConfig) -> int:
    """Epoch second of the daily boundary at or before *ts*."""
    return day_start_of(trading_day_for(ts, session), session)
