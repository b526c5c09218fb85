"""
Read-through query cache for sheet snapshots.

Entries are keyed by sheet name and expire ttl_seconds after they were
stored.  With a path the cache is mirrored to a JSON file so that separate
CLI invocations share it:

    {"WorkoutLog": {"expires_at": 1718000000.0, "table": {...}}, ...}

Writers must call invalidate(sheet) after changing a sheet.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.config import CACHE_EXPIRATION_SECONDS
from .tables import Table

logger = logging.getLogger(__name__)


class QueryCache:
    """TTL cache of Table snapshots, optionally persisted to JSON."""

    def __init__(
        self,
        ttl_seconds: int = CACHE_EXPIRATION_SECONDS,
        path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            ttl_seconds: Lifetime of an entry; 0 disables caching
            path: JSON file to persist entries in, or None for memory only
            clock: Source of the current time in seconds
        """
        self.ttl_seconds = ttl_seconds
        self.path = Path(path) if path is not None else None
        self._clock = clock
        self._entries: dict[str, tuple[float, Table]] = {}
        self._loaded = self.path is None

    # -- persistence ---------------------------------------------------------

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if self.path is None or not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            for sheet, entry in raw.items():
                self._entries[sheet] = (float(entry["expires_at"]), Table.from_dict(entry["table"]))
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable query cache %s: %s", self.path, exc)
            self._entries.clear()

    def _save(self) -> None:
        if self.path is None:
            return
        data: dict[str, Any] = {
            sheet: {"expires_at": expires_at, "table": table.to_dict()}
            for sheet, (expires_at, table) in self._entries.items()
        }
        tmp = self.path.with_suffix(".json.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f)
            tmp.replace(self.path)
        except OSError as exc:
            logger.warning("Could not write query cache %s: %s", self.path, exc)

    # -- public API ----------------------------------------------------------

    def get(self, sheet: str) -> Table | None:
        """Cached table for sheet, or None when absent or expired."""
        self._load()
        entry = self._entries.get(sheet)
        if entry is None:
            return None
        expires_at, table = entry
        if self._clock() >= expires_at:
            del self._entries[sheet]
            return None
        return table

    def put(self, table: Table) -> None:
        if self.ttl_seconds <= 0:
            return
        self._load()
        self._entries[table.name] = (self._clock() + self.ttl_seconds, table)
        self._save()

    def invalidate(self, sheet: str) -> None:
        self._load()
        if self._entries.pop(sheet, None) is not None:
            logger.debug("Invalidated cached %s", sheet)
            self._save()

    def clear(self) -> None:
        """Drop every entry, including the persisted file."""
        self._entries.clear()
        self._loaded = True
        if self.path is not None and self.path.exists():
            self.path.unlink()
