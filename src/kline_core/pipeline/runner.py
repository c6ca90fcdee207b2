"""Run driver: one pipeline per market category, run concurrently.

Run: python -m kline_core.pipeline [--config config.yaml] [--date 2024-01-05]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading
from datetime import date
from pathlib import Path

import structlog

from kline_core.aggregation.dataset import DailyDataset
from kline_core.archive.source import ArchiveSource, symbol_from_archive
from kline_core.config.loader import load_config
from kline_core.config.schema import AppConfig, Category
from kline_core.errors import ConfigError, KlineError, RunAborted
from kline_core.export.writer import write_bundle
from kline_core.logging.setup import setup_from_config

log = structlog.get_logger("pipeline")


def _check_abort(abort: threading.Event | None, category: Category) -> None:
    if abort is not None and abort.is_set():
        raise RunAborted("aborted after failure elsewhere in the run", {"category": category.value})


def ingest_archive(source: ArchiveSource, dataset: DailyDataset, path: Path) -> int:
    """Feed every trade of one archive into *dataset*; returns the trade count."""
    symbol = symbol_from_archive(path)
    count = 0
    for trade in source.iter_trades(path):
        dataset.add_trade(symbol, trade)
        count += 1
    log.info("archive_ingested", category=dataset.category.value, symbol=symbol, trades=count, path=str(path))
    return count


def run_category(
    config: AppConfig,
    category: Category,
    day: date,
    abort: threading.Event | None = None,
) -> list[Path]:
    """Build, finalize, export and write one category's dataset for *day*."""
    plog = log.bind(category=category.value, date=day.isoformat())
    source = ArchiveSource(config.source.agg_trade_dir)
    dataset = DailyDataset(category, config.session, lookup=source.last_trade, trading_date=day)

    archives = source.list_archives(category, day)
    plog.info("pipeline_started", archives=len(archives), source=str(source.day_dir(category, day)))

    total = 0
    for path in archives:
        _check_abort(abort, category)
        total += ingest_archive(source, dataset, path)

    dataset.finalize()
    bundle = dataset.export(turnover_decimals=config.output.turnover_decimals)
    _check_abort(abort, category)
    written = write_bundle(bundle, config.output.dir)
    plog.info("pipeline_complete", instruments=len(dataset.series), trades=total, files=len(written))
    return written


async def run(config: AppConfig, day: date) -> dict[Category, list[Path]]:
    """Run every configured category concurrently and wait for all of them.

    The first failure flags the others to stop before writing output, then
    is re-raised once every pipeline has returned.
    """
    abort = threading.Event()

    async def _one(category: Category) -> list[Path]:
        try:
            return await asyncio.to_thread(run_category, config, category, day, abort)
        except Exception:
            abort.set()
            raise

    results = await asyncio.gather(*(_one(c) for c in config.categories), return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        raise next((f for f in failures if not isinstance(f, RunAborted)), failures[0])
    return dict(zip(config.categories, results))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build per-minute klines from daily aggTrades archives")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument(
        "--date",
        default=date.today().isoformat(),
        help="Trading day to build, YYYY-MM-DD (default: today)",
    )
    parser.add_argument("--dir", default=None, help="Output root (overrides output.dir)")
    parser.add_argument(
        "--agg-trade-dir",
        default=None,
        help="aggTrades archive root (overrides source.agg_trade_dir)",
    )
    parser.add_argument(
        "--category",
        action="append",
        choices=[c.value for c in Category],
        help="Only build this category; repeatable (default: all configured)",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    """Load config and layer CLI flags on top."""
    config = load_config(args.config)
    if args.dir:
        config.output = config.output.model_copy(update={"dir": args.dir})
    if args.agg_trade_dir:
        config.source = config.source.model_copy(update={"agg_trade_dir": args.agg_trade_dir})
    if args.category:
        config.categories = [Category(c) for c in dict.fromkeys(args.category)]
    return config


def main(argv: list[str] | None = None) -> int:
    """Entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        day = date.fromisoformat(args.date)
    except ValueError:
        print(f"invalid --date: {args.date!r} (expected YYYY-MM-DD)", file=sys.stderr)
        return 2

    try:
        config = resolve_config(args)
        setup_from_config(config.logging)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 1

    log.info("run_started", date=day.isoformat(), categories=[c.value for c in config.categories])
    try:
        results = asyncio.run(run(config, day))
    except KlineError as exc:
        log.error(
            "run_failed",
            error_type=type(exc).__name__,
            error=exc.message,
            exc_info=exc,
            **exc.details,
        )
        return 1
    except OSError:
        log.exception("run_failed")
        return 1

    log.info("run_complete", date=day.isoformat(), files=sum(len(p) for p in results.values()))
    return 0
