"""
In-memory snapshot of one workbook sheet.

A Table is {headers, rows} plus a header -> column index map.  All access
goes through header names; the column order of the file is irrelevant.
Cell values are kept as the text read from the file.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any


class ConfigurationError(Exception):
    """Raised when a sheet or a required column is missing from the workbook."""

    pass


@dataclass(frozen=True)
class Table:
    """Immutable snapshot of a sheet."""

    name: str
    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = field(default=())

    @cached_property
    def header_map(self) -> dict[str, int]:
        """Header -> column index.  Blank headers are skipped; a repeated header maps to its last column."""
        mapping: dict[str, int] = {}
        for index, header in enumerate(self.headers):
            name = header.strip()
            if name:
                mapping[name] = index
        return mapping

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[tuple[str, ...]]:
        return iter(self.rows)

    def has(self, header: str) -> bool:
        return header in self.header_map

    def require(self, *headers: str) -> None:
        """
        Raises:
            ConfigurationError: any of headers is absent
        """
        missing = [h for h in headers if h not in self.header_map]
        if missing:
            raise ConfigurationError(
                f"{self.name} sheet is missing required header(s): {', '.join(missing)}"
            )

    def find_header(self, fragment: str) -> str | None:
        """First header containing fragment (case-insensitive), or None."""
        fragment = fragment.lower()
        for header in self.headers:
            if fragment in header.lower():
                return header.strip()
        return None

    def value(self, row: tuple[str, ...], header: str, default: str = "") -> str:
        """Cell of row under header; default when the column or cell is absent."""
        index = self.header_map.get(header)
        if index is None or index >= len(row):
            return default
        return row[index]

    def _matches(self, row: tuple[str, ...], criteria: Mapping[str, Any]) -> bool:
        for header, expected in criteria.items():
            index = self.header_map.get(header)
            if index is None or index >= len(row):
                return False
            if str(row[index]).strip() != str(expected).strip():
                return False
        return True

    def find_row_index(self, criteria: Mapping[str, Any]) -> int | None:
        """Index of the first row equal to criteria on every header (stripped text), or None."""
        for index, row in enumerate(self.rows):
            if self._matches(row, criteria):
                return index
        return None

    def index_by(self, *headers: str) -> dict[tuple[str, ...], int]:
        """
        Composite-key index: stripped values of headers -> first row index.

        Lookups through the index return the same row a linear find_row_index
        would, including when keys are duplicated.
        """
        index: dict[tuple[str, ...], int] = {}
        for position, row in enumerate(self.rows):
            key = tuple(self.value(row, h).strip() for h in headers)
            index.setdefault(key, position)
        return index

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "headers": list(self.headers), "rows": [list(r) for r in self.rows]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Table":
        return cls(
            name=str(data["name"]),
            headers=tuple(str(h) for h in data["headers"]),
            rows=tuple(tuple(str(v) for v in row) for row in data["rows"]),
        )
