"""Tests for the per-category pipeline and run driver."""

import asyncio
import json
import threading

import pytest

from conftest import DAY, DAY_START, PREV_DAY, trade_line
from kline_core.aggregation import DailyDataset
from kline_core.archive import ArchiveSource
from kline_core.config import AppConfig, Category
from kline_core.errors import ParseError, PrevDayLookupError, RunAborted, StructuralError
from kline_core.pipeline import ingest_archive, main, run, run_category

MS = DAY_START * 1000


@pytest.fixture
def config(agg_dir, tmp_path) -> AppConfig:
    return AppConfig.model_validate(
        {
            "source": {"agg_trade_dir": str(agg_dir)},
            "output": {"dir": str(tmp_path / "out")},
        }
    )


def _seed_day(write_archive, category: Category) -> None:
    write_archive(
        "BTCUSDT",
        [trade_line(1, "100", "1", MS + 5000), trade_line(2, "101", "2", MS + 40000, True)],
        category=category,
    )
    # First ETH trade is at minute 2, so minutes 0-1 come from the previous day.
    write_archive("ETHUSDT", [trade_line(10, "20", "3", MS + 125_000)], category=category)
    write_archive("ETHUSDT", [trade_line(9, "18", "1", MS - 1000)], category=category, day=PREV_DAY)


class TestIngestArchive:
    def test_counts_and_routes(self, agg_dir, write_archive, lookup):
        path = write_archive("BTCUSDT", [trade_line(1, "1", "1", MS), trade_line(2, "2", "1", MS + 60000)])
        ds = DailyDataset(Category.SPOT, AppConfig().session, lookup=lookup, trading_date=DAY)
        assert ingest_archive(ArchiveSource(agg_dir), ds, path) == 2
        assert list(ds.series) == ["BTCUSDT"]


class TestRunCategory:
    def test_writes_all_tables(self, config, write_archive, tmp_path):
        _seed_day(write_archive, Category.SPOT)
        written = run_category(config, Category.SPOT, DAY)
        out = tmp_path / "out" / "spotkdata"
        assert out / "close" / "2024-01-05_spot_Close.csv" in written
        assert out / "2024-01-05" / "ETHUSDT_spot.csv" in written

        close = (out / "close" / "2024-01-05_spot_Close.csv").read_text().splitlines()
        assert close[0] == "Timestamp,BTCUSDT,ETHUSDT"
        assert close[1] == f"{MS},101,18"
        assert close[3] == f"{MS + 120000},101,20"
        assert close[-1] == f"{MS + 1439 * 60000},101,20"

    def test_missing_previous_day_is_fatal(self, config, write_archive):
        write_archive("BTCUSDT", [trade_line(1, "100", "1", MS + 300_000)])
        with pytest.raises(PrevDayLookupError):
            run_category(config, Category.SPOT, DAY)

    def test_bad_line_is_fatal(self, config, write_archive, tmp_path):
        write_archive("BTCUSDT", [trade_line(1, "100", "1", MS), "1,2,3"])
        with pytest.raises(ParseError):
            run_category(config, Category.SPOT, DAY)
        assert not (tmp_path / "out").exists()

    def test_abort_flag_stops_before_writing(self, config, write_archive, tmp_path):
        _seed_day(write_archive, Category.SPOT)
        abort = threading.Event()
        abort.set()
        with pytest.raises(RunAborted):
            run_category(config, Category.SPOT, DAY, abort)
        assert not (tmp_path / "out").exists()


class TestRun:
    def test_both_categories(self, config, write_archive, tmp_path):
        _seed_day(write_archive, Category.SPOT)
        _seed_day(write_archive, Category.UM)
        results = asyncio.run(run(config, DAY))
        assert set(results) == {Category.SPOT, Category.UM}
        assert (tmp_path / "out" / "kdata" / "open" / "2024-01-05_um_Open.csv").exists()
        assert (tmp_path / "out" / "spotkdata" / "open" / "2024-01-05_spot_Open.csv").exists()

    def test_failure_propagates(self, config, write_archive):
        _seed_day(write_archive, Category.SPOT)
        # No um directory at all.
        with pytest.raises(StructuralError):
            asyncio.run(run(config, DAY))


class TestMain:
    def test_success(self, agg_dir, write_archive, tmp_path):
        _seed_day(write_archive, Category.SPOT)
        out = tmp_path / "cli-out"
        status = main(
            [
                "--date", "2024-01-05",
                "--agg-trade-dir", str(agg_dir),
                "--dir", str(out),
                "--category", "spot",
            ]
        )
        assert status == 0
        assert (out / "spotkdata" / "2024-01-05" / "BTCUSDT_spot.csv").exists()
        assert not (out / "kdata").exists()

    def test_failure_exit_status(self, agg_dir, tmp_path):
        status = main(["--date", "2024-01-05", "--agg-trade-dir", str(agg_dir), "--dir", str(tmp_path)])
        assert status == 1

    def test_failure_logs_traceback_with_cause(self, agg_dir, write_archive, tmp_path, capsys):
        # Minute 5 needs a previous-day seed, and there is no previous-day archive.
        write_archive("BTCUSDT", [trade_line(1, "100", "1", MS + 300_000)])
        status = main(
            ["--date", "2024-01-05", "--agg-trade-dir", str(agg_dir), "--dir", str(tmp_path), "--category", "spot"]
        )
        assert status == 1

        records = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.strip()]
        failed = next(r for r in records if r["event"] == "run_failed")
        assert failed["error_type"] == "PrevDayLookupError"
        assert failed["symbol"] == "BTCUSDT"
        assert "PrevDayLookupError" in failed["exception"]
        assert "StructuralError" in failed["exception"]

    def test_bad_date(self, capsys):
        assert main(["--date", "05/01/2024"]) == 2
        assert "invalid --date" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        p = tmp_path / "bad.yaml"
        p.write_text("session:\n  day_start_hour: 30\n")
        assert main(["--config", str(p), "--date", "2024-01-05"]) == 1
        assert "configuration error" in capsys.readouterr().err
