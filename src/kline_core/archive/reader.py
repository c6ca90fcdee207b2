"""Read trade lines out of single-entry zip archives."""

from __future__ import annotations

import io
import zipfile
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO

from kline_core.errors import ParseError, StructuralError
from kline_core.models.trade import Trade, parse_trade_line


@contextmanager
def open_entry(path: Path) -> Iterator[TextIO]:
    """Open the one file inside a zip archive as text."""
    if not path.is_file():
        raise StructuralError("archive not found", {"path": str(path)})
    try:
        zf = zipfile.ZipFile(path)
    except zipfile.BadZipFile as exc:
        raise ParseError("corrupt zip archive", {"path": str(path)}) from exc
    with zf:
        entries = zf.infolist()
        if len(entries) != 1:
            raise StructuralError(
                "unexpected zip entry count",
                {"path": str(path), "entries": len(entries)},
            )
        with zf.open(entries[0]) as raw:
            yield io.TextIOWrapper(raw, encoding="utf-8", newline="")


def _is_header(line: str) -> bool:
    return not line.split(",", 1)[0].strip().isdigit()


def _data_lines(f: TextIO, path: Path) -> Iterator[tuple[int, str]]:
    """(line number, text) for every non-blank line after the header."""
    lineno = 0
    try:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            if lineno == 1 and _is_header(line):
                continue
            yield lineno, line
    except UnicodeDecodeError as exc:
        raise ParseError("archive is not UTF-8 text", {"path": str(path), "line": lineno + 1}) from exc
    except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
        raise ParseError("corrupt archive content", {"path": str(path), "line": lineno + 1}) from exc


def _parse(line: str, path: Path, lineno: int) -> Trade:
    try:
        return parse_trade_line(line)
    except ParseError as exc:
        exc.details.update(path=str(path), line=lineno)
        raise


def iter_trades(path: Path) -> Iterator[Trade]:
    """Yield trades from an archive in file order, skipping the header line."""
    with open_entry(path) as f:
        for lineno, line in _data_lines(f, path):
            yield _parse(line, path, lineno)


def last_trade_in(path: Path) -> Trade | None:
    """The final trade in an archive, or None when it holds only a header."""
    last: tuple[int, str] | None = None
    with open_entry(path) as f:
        for last in _data_lines(f, path):
            pass
    if last is None:
        return None
    return _parse(last[1], path, last[0])
