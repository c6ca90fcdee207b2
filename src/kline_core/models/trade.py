"""One parsed aggTrades line."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field

from kline_core.errors import ParseError

# Column positions in a Binance aggTrades line:
# agg_trade_id, price, quantity, first_trade_id, last_trade_id, transact_time, is_buyer_maker[, is_best_match]
ID_FIELD = 0
PRICE_FIELD = 1
VOLUME_FIELD = 2
TIMESTAMP_FIELD = 5
SIDE_FIELD = 6
MIN_FIELDS = 7

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


class Trade(BaseModel):
    """An immutable aggregated trade.  ``timestamp`` is whole epoch seconds."""

    model_config = ConfigDict(frozen=True)

    trade_id: int = Field(ge=0)
    price: Decimal = Field(ge=0)
    volume: Decimal = Field(ge=0)
    timestamp: int = Field(ge=0)
    is_sell: bool


def _field_error(name: str, raw: str) -> ParseError:
    return ParseError(f"malformed {name} field", {"field": name, "value": raw})


def _parse_decimal(name: str, raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise _field_error(name, raw) from None
    if not value.is_finite() or value < 0:
        raise _field_error(name, raw)
    return value


def _parse_uint(name: str, raw: str) -> int:
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise _field_error(name, raw)
    return int(text)


def _parse_bool(name: str, raw: str) -> bool:
    text = raw.strip()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise _field_error(name, raw)


def parse_trade_line(line: str) -> Trade:
    """Parse one comma-separated trade line.

    Millisecond timestamps are truncated to whole seconds.  Raises
    ParseError naming the offending field; there is no partial recovery.
    """
    fields = line.rstrip("\r\n").split(",")
    if len(fields) < MIN_FIELDS:
        raise ParseError(
            "too few fields in trade line",
            {"expected": MIN_FIELDS, "got": len(fields)},
        )
    return Trade(
        trade_id=_parse_uint("id", fields[ID_FIELD]),
        price=_parse_decimal("price", fields[PRICE_FIELD]),
        volume=_parse_decimal("volume", fields[VOLUME_FIELD]),
        timestamp=_parse_uint("timestamp", fields[TIMESTAMP_FIELD]) // 1000,
        is_sell=_parse_bool("is_sell", fields[SIDE_FIELD]),
    )
