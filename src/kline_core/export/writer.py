"""Write an ExportBundle to CSV files in the kdata directory layout.

    <root>/<spotkdata|kdata>/<metric>/<date>_<category>_<Suffix>.csv
    <root>/<spotkdata|kdata>/<date>/<SYMBOL>_<category>.csv
"""

from __future__ import annotations

import csv
from pathlib import Path

import structlog

from kline_core.export.tables import METRICS, ExportBundle, Table

log = structlog.get_logger("export")


def _write_table(path: Path, table: Table) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(table.header)
        writer.writerows(table.rows)


def pivot_path(root: Path, bundle: ExportBundle, suffix: str) -> Path:
    day = bundle.trading_date.isoformat()
    cat = bundle.category.value
    return root / bundle.category.output_dir / suffix.lower() / f"{day}_{cat}_{suffix}.csv"


def instrument_path(root: Path, bundle: ExportBundle, symbol: str) -> Path:
    day = bundle.trading_date.isoformat()
    return root / bundle.category.output_dir / day / f"{symbol}_{bundle.category.value}.csv"


def write_bundle(bundle: ExportBundle, root: str | Path) -> list[Path]:
    """Write every table in *bundle* under *root*; returns the paths written."""
    root = Path(root)
    written: list[Path] = []
    for metric in METRICS:
        path = pivot_path(root, bundle, metric.suffix)
        _write_table(path, bundle.pivots[metric.field])
        written.append(path)
    for symbol, table in bundle.instruments.items():
        path = instrument_path(root, bundle, symbol)
        _write_table(path, table)
        written.append(path)
    log.info(
        "bundle_written",
        category=bundle.category.value,
        date=bundle.trading_date.isoformat(),
        files=len(written),
        root=str(root),
    )
    return written
