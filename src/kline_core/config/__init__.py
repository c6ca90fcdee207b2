"""Configuration system."""

from kline_core.config.loader import load_config
from kline_core.config.schema import AppConfig, Category, SessionConfig

__all__ = ["AppConfig", "Category", "SessionConfig", "load_config"]
