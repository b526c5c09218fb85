"""
Lenient numeric parsing for sheet cells and formula fragments.

Sheet values arrive as loosely typed text ("8", " 7.5 ", "12 reps", "").
parse_int / parse_float read the leading number and ignore trailing text,
returning None when no number is present, so that a partially filled cell
degrades to "absent" rather than raising.
"""

from __future__ import annotations

import math
import re

_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INFINITY_RE = re.compile(r"^\s*([+-]?)Infinity")


def _coerce_number(value: object) -> float | None:
    """Return value as float if it is already numeric (bools excluded)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def parse_float(value: object) -> float | None:
    """
    Parse the leading decimal number of value.

    "0.8.5" -> 0.8, "185 lbs" -> 185.0, "abc" -> None, NaN -> None.
    """
    if value is None:
        return None
    direct = _coerce_number(value)
    if direct is not None:
        return None if math.isnan(direct) else direct
    text = str(value)
    m = _FLOAT_RE.match(text)
    if m:
        return float(m.group(1))
    m = _INFINITY_RE.match(text)
    if m:
        return -math.inf if m.group(1) == "-" else math.inf
    return None


def parse_int(value: object) -> int | None:
    """
    Parse the leading integer of value, truncating any fraction.

    "10.7" -> 10, "8 reps" -> 8, "AMRAP" -> None, 7.9 -> 7.
    """
    if value is None:
        return None
    direct = _coerce_number(value)
    if direct is not None:
        if not math.isfinite(direct):
            return None
        return int(direct)
    m = _INT_RE.match(str(value))
    return int(m.group(1)) if m else None


def is_numeric_literal(text: str) -> bool:
    """True when the whole (stripped) text is one finite number."""
    stripped = text.strip()
    if not stripped or "_" in stripped:
        return False
    try:
        value = float(stripped)
    except ValueError:
        return False
    return math.isfinite(value)


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves toward +infinity (10.5 -> 11, -2.5 -> -2)."""
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


def as_display_number(value: float) -> int | float:
    """Collapse integral floats to int so prescriptions print as "5", not "5.0"."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value
