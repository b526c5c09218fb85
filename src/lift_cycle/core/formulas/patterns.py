"""
Recognisers for the formula shapes used in progression-model sheets.

Each FormulaPattern turns one textual shape into an expression tree.  The
set is closed on purpose: formula cells are authored by hand in a
spreadsheet, and anything outside these shapes is shown to the user
verbatim rather than guessed at.

Patterns are tried in the order of LEGACY_PATTERNS; the first one that
matches and builds a tree wins.  Numeric captures are read with
leading-number semantics, so "0.8.5" means 0.8.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from ..parsing import parse_float, parse_int
from .nodes import (
    AMRAP_REPS,
    MIN_REPS,
    ONE_RM_ESTIMATE,
    USER_MAX_REPS,
    BinaryOp,
    Call,
    Node,
    Number,
    Variable,
)


@dataclass(frozen=True)
class FormulaPattern:
    """One recognised formula shape."""

    name: str
    regex: re.Pattern[str]
    build: Callable[[re.Match[str]], Node | None]
    anchored: bool = False  # True: must match from the start; False: anywhere

    def match(self, text: str) -> re.Match[str] | None:
        if self.anchored:
            return self.regex.match(text)
        return self.regex.search(text)


def _num(text: str, integer: bool = False) -> Number | None:
    value = parse_int(text) if integer else parse_float(text)
    return None if value is None else Number(float(value))


def _scaled(var: str, factor: str) -> Node | None:
    f = _num(factor)
    return None if f is None else BinaryOp("*", Variable(var), f)


def _build_max_of_scaled_max_reps(m: re.Match[str]) -> Node | None:
    floor = _num(m.group(1), integer=True)
    scaled = _scaled(USER_MAX_REPS, m.group(2))
    if floor is None or scaled is None:
        return None
    return Call("max", (floor, Call("round", (scaled,))))


def _build_scaled_max_reps(m: re.Match[str]) -> Node | None:
    scaled = _scaled(USER_MAX_REPS, m.group(1))
    return None if scaled is None else Call("round", (scaled,))


def _build_amrap_adjusted_1rm(m: re.Match[str]) -> Node | None:
    base = _scaled(ONE_RM_ESTIMATE, m.group(1))
    divisor = _num(m.group(3))
    if base is None or divisor is None:
        return None
    adjustment = BinaryOp(m.group(2), Number(1.0), BinaryOp("/", Variable(AMRAP_REPS), divisor))
    return BinaryOp("*", base, adjustment)


def _build_scaled_1rm(m: re.Match[str]) -> Node | None:
    return _scaled(ONE_RM_ESTIMATE, m.group(1))


def _build_base_weight_plus(m: re.Match[str]) -> Node | None:
    increment = _num(m.group(1))
    return None if increment is None else BinaryOp("+", Variable(ONE_RM_ESTIMATE), increment)


def _build_min_reps_plus(m: re.Match[str]) -> Node | None:
    extra = _num(m.group(1), integer=True)
    return None if extra is None else BinaryOp("+", Variable(MIN_REPS), extra)


def _build_min_reps(m: re.Match[str]) -> Node | None:
    return Variable(MIN_REPS)


_I = re.IGNORECASE

MAX_OF_SCALED_MAX_REPS = FormulaPattern(
    "max_of_scaled_max_reps",
    re.compile(r"max\s*\(\s*([0-9]+)\s*,\s*round\s*\(\s*UserMaxReps\s*\*\s*([0-9.]+)\s*\)\s*\)", _I),
    _build_max_of_scaled_max_reps,
)
SCALED_MAX_REPS = FormulaPattern(
    "scaled_max_reps",
    re.compile(r"round\s*\(\s*UserMaxReps\s*\*\s*([0-9.]+)\s*\)", _I),
    _build_scaled_max_reps,
)
AMRAP_ADJUSTED_1RM = FormulaPattern(
    "amrap_adjusted_1rm",
    re.compile(
        r"\(\s*\(\s*CurrentCycle1RMEstimate\s*\*\s*([0-9.]+)\s*\)\s*\*"
        r"\s*\(\s*1\s*([+-])\s*AMRAPRepsAtStep8\s*/\s*([0-9.]+)\s*\)\s*\)",
        _I,
    ),
    _build_amrap_adjusted_1rm,
)
SCALED_1RM_PARENTHESIZED = FormulaPattern(
    "scaled_1rm_parenthesized",
    re.compile(r"\(\s*CurrentCycle1RMEstimate\s*\*\s*([0-9.]+)\s*\)\Z", _I),
    _build_scaled_1rm,
    anchored=True,
)
SCALED_1RM = FormulaPattern(
    "scaled_1rm",
    re.compile(r"CurrentCycle1RMEstimate\s*\*\s*([0-9.]+)\Z", _I),
    _build_scaled_1rm,
    anchored=True,
)
BASE_WEIGHT_PLUS = FormulaPattern(
    "base_weight_plus",
    re.compile(r"currentCycleBaseWeight\s*\+\s*([0-9.]+)\s*(?:lbs|kg)?\Z", _I),
    _build_base_weight_plus,
    anchored=True,
)
MIN_REPS_PLUS = FormulaPattern(
    "min_reps_plus",
    re.compile(r"minReps\s*\+\s*([0-9]+)\Z", _I),
    _build_min_reps_plus,
    anchored=True,
)
BARE_MIN_REPS = FormulaPattern(
    "bare_min_reps",
    re.compile(r"minreps\Z", _I),
    _build_min_reps,
    anchored=True,
)

LEGACY_PATTERNS: tuple[FormulaPattern, ...] = (
    MAX_OF_SCALED_MAX_REPS,
    SCALED_MAX_REPS,
    AMRAP_ADJUSTED_1RM,
    SCALED_1RM_PARENTHESIZED,
    SCALED_1RM,
    BASE_WEIGHT_PLUS,
    MIN_REPS_PLUS,
    BARE_MIN_REPS,
)


def recognise(text: str) -> Iterator[tuple[FormulaPattern, re.Match[str]]]:
    """Yield every pattern that matches text, in priority order, with its match."""
    for pattern in LEGACY_PATTERNS:
        m = pattern.match(text)
        if m is not None:
            yield pattern, m
