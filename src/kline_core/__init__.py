"""Trade tick to per-minute OHLCV kline builder."""

__version__ = "0.1.0"
