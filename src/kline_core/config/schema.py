"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class Category(str, Enum):
    """Market category; the value is the archive directory name."""

    SPOT = "spot"
    UM = "um"

    @property
    def output_dir(self) -> str:
        return "spotkdata" if self is Category.SPOT else "kdata"


class SourceConfig(BaseModel):
    agg_trade_dir: str = "/share/agg_database/bn"


class OutputConfig(BaseModel):
    dir: str = "/share"
    # Decimal places for the pivoted turnover table; None keeps full precision.
    turnover_decimals: int | None = Field(default=2, ge=0)


class SessionConfig(BaseModel):
    """Where a trading day starts, and how the boundary minute is treated.

    The zone must keep one UTC offset all year: a day is always 1440 minutes,
    so zones with daylight saving are rejected.
    """

    timezone: str = "UTC"
    day_start_hour: int = Field(default=0, ge=0, le=23)
    fold_boundary_minute: bool = True

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            zone = ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        # January and July offsets must agree in every sampled year.
        offsets = {
            datetime(year, month, 1, tzinfo=zone).utcoffset()
            for year in range(2000, 2038)
            for month in (1, 7)
        }
        if len(offsets) > 1:
            raise ValueError(f"timezone observes daylight saving: {value}")
        return value


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class AppConfig(BaseModel):
    categories: list[Category] = Field(default_factory=lambda: [Category.SPOT, Category.UM])
    source: SourceConfig = Field(default_factory=SourceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
