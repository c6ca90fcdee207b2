"""Table rendering and CSV output."""

from kline_core.export.tables import (
    INSTRUMENT_HEADER,
    METRICS,
    ExportBundle,
    Metric,
    Table,
    format_decimal,
)
from kline_core.export.writer import write_bundle

__all__ = [
    "ExportBundle",
    "INSTRUMENT_HEADER",
    "METRICS",
    "Metric",
    "Table",
    "format_decimal",
    "write_bundle",
]
