"""Per-category pipelines and the run driver."""

from kline_core.pipeline.runner import ingest_archive, main, run, run_category

__all__ = ["ingest_archive", "main", "run", "run_category"]
