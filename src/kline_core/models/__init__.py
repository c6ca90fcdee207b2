"""Pydantic domain models."""

from kline_core.models.trade import Trade, parse_trade_line

__all__ = ["Trade", "parse_trade_line"]
