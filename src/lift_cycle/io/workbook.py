"""
CSV-directory workbook storage.

A workbook is a directory holding one <Sheet>.csv per sheet, first line
headers.  Reads go through the QueryCache; every write invalidates the
written sheet before returning.

Writes are append-row (log entries, new progression rows) and
update-cells-in-place (existing progression rows).  lock(key) hands out a
per-key threading.Lock for callers that need a read-modify-write to be
atomic within the process; each write also holds its sheet's lock from the
read of the file to its rewrite.
"""

from __future__ import annotations

import csv
import logging
import math
import threading
from collections.abc import Hashable, Iterable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

from .cache import QueryCache
from .schema import ALL_SHEETS, HEADERS
from .tables import ConfigurationError, Table

logger = logging.getLogger(__name__)

CACHE_FILENAME = ".query_cache.json"


def format_cell(value: Any) -> str:
    """Render a Python value as CSV cell text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


class Workbook:
    """Tabular store backed by a directory of CSV files."""

    def __init__(self, root: str | Path, cache: QueryCache | None = None):
        """
        Initialize the workbook.

        Args:
            root: Directory holding the sheet CSV files
            cache: Query cache; a memory-only cache with the default TTL when None
        """
        self.root = Path(root)
        self.cache = cache if cache is not None else QueryCache()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def sheet_path(self, sheet: str) -> Path:
        return self.root / f"{sheet}.csv"

    def exists(self) -> bool:
        """Check if the workbook directory exists."""
        return self.root.is_dir()

    def init(self, sheets: Iterable[str] = ALL_SHEETS) -> list[str]:
        """
        Create the directory and any missing sheet files (headers only).

        Existing sheets are left untouched.

        Returns:
            Names of the sheets that were created
        """
        self.root.mkdir(parents=True, exist_ok=True)
        created = []
        for sheet in sheets:
            path = self.sheet_path(sheet)
            if path.exists():
                continue
            with open(path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(HEADERS[sheet])
            created.append(sheet)
        if created:
            logger.info("Created sheets %s in %s", ", ".join(created), self.root)
        return created

    def ensure_sheets(self, sheets: Iterable[str] = ALL_SHEETS) -> None:
        """
        Raises:
            ConfigurationError: a sheet file is missing
        """
        for sheet in sheets:
            if not self.sheet_path(sheet).exists():
                raise ConfigurationError(f'Sheet "{sheet}" not found in {self.root}')

    # -- reads ---------------------------------------------------------------

    def _read_file(self, sheet: str) -> Table:
        path = self.sheet_path(sheet)
        if not path.exists():
            raise ConfigurationError(f'Sheet "{sheet}" not found in {self.root}')
        with open(path, "r", newline="", encoding="utf-8") as f:
            lines = list(csv.reader(f))
        if not lines:
            return Table(name=sheet)
        headers = tuple(h.strip() for h in lines[0])
        rows = tuple(tuple(line) for line in lines[1:] if any(cell.strip() for cell in line))
        return Table(name=sheet, headers=headers, rows=rows)

    def read(self, sheet: str, use_cache: bool = True) -> Table:
        """
        Snapshot of a sheet.

        Args:
            sheet: Sheet name
            use_cache: False always reads the file (and refreshes the cache)

        Raises:
            ConfigurationError: the sheet file does not exist
        """
        if use_cache:
            cached = self.cache.get(sheet)
            if cached is not None:
                return cached
            logger.debug("Cache miss for %s", sheet)
        table = self._read_file(sheet)
        self.cache.put(table)
        return table

    # -- writes --------------------------------------------------------------

    def append_row(self, sheet: str, values: Mapping[str, Any]) -> int:
        """
        Append one row, placing values under their headers.

        Headers without a value get an empty cell; values for unknown
        headers are dropped.

        Returns:
            Index of the new row among the data rows
        """
        with self.sheet_lock(sheet):
            table = self._read_file(sheet)
            unknown = set(values) - set(table.header_map)
            if unknown:
                logger.debug("Dropping values for unknown %s columns: %s", sheet, sorted(unknown))
            row = [format_cell(values.get(header.strip())) for header in table.headers]
            path = self.sheet_path(sheet)
            with open(path, "a", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(row)
            self.cache.invalidate(sheet)
        return len(table.rows)

    def update_cells(self, sheet: str, row_index: int, updates: Mapping[str, Any]) -> None:
        """
        Overwrite cells of one data row in place.

        Args:
            sheet: Sheet name
            row_index: Zero-based data row index (header excluded)
            updates: Header -> new value

        Raises:
            ConfigurationError: the sheet or one of the headers is missing
            IndexError: row_index is out of range
        """
        with self.sheet_lock(sheet):
            table = self._read_file(sheet)
            table.require(*updates)
            if not 0 <= row_index < len(table.rows):
                raise IndexError(f"{sheet} row {row_index} out of range (0-{len(table.rows) - 1})")

            rows = [list(r) for r in table.rows]
            target = rows[row_index]
            width = len(table.headers)
            if len(target) < width:
                target.extend([""] * (width - len(target)))
            for header, value in updates.items():
                target[table.header_map[header]] = format_cell(value)

            path = self.sheet_path(sheet)
            tmp = path.with_suffix(".csv.tmp")
            with open(tmp, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(table.headers)
                writer.writerows(rows)
            tmp.replace(path)
            self.cache.invalidate(sheet)

    # -- concurrency ---------------------------------------------------------

    def lock(self, key: Hashable) -> threading.Lock:
        """The lock serialising read-modify-write cycles on key."""
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def sheet_lock(self, sheet: str) -> threading.Lock:
        """
        The lock held by every write to sheet.

        A row update rewrites the whole file, so writes to different keys of
        the same sheet must not interleave.  Callers holding a key lock may
        take this one inside it, never the other way round.
        """
        return self.lock(("sheet", sheet))


def open_workbook(root: str | Path, ttl_seconds: int, cache_to_disk: bool = True) -> Workbook:
    """Workbook at root with its query cache stored beside the sheets."""
    root = Path(root)
    path = root / CACHE_FILENAME if cache_to_disk else None
    return Workbook(root, QueryCache(ttl_seconds=ttl_seconds, path=path))
