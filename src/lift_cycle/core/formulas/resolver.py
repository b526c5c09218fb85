"""
Formula resolution: turn a prescription formula cell into a value.

resolve_formula() never raises.  A formula that cannot be evaluated with
the variables at hand degrades softly, in this order:

    1. missing formula                           -> ""
    2. "AMRAP" (any case)                        -> "AMRAP"
    3. plain number                              -> that number
    4. mentions the 1RM but no 1RM is known      -> 0
    5. mentions UserMaxReps but none is known    -> 1 for "max(1, ...)", else the text
    6. first recognised pattern that evaluates   -> its value
    7. otherwise                                 -> the text unchanged

The AMRAP-adjusted 1RM shape has two extra outcomes: without AMRAP reps it
yields a pending marker (when the text spells AMRAPRepsAtStep8 exactly) or
the plain scaled 1RM; with a zero divisor it is skipped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ..config import AMRAP, AMRAP_PENDING_TEXT
from ..parsing import as_display_number, is_numeric_literal, parse_float, parse_int
from .nodes import (
    AMRAP_REPS,
    MIN_REPS,
    ONE_RM_ESTIMATE,
    USER_MAX_REPS,
    EvaluationError,
    evaluate,
    render,
    variables,
)
from .patterns import AMRAP_ADJUSTED_1RM, recognise

logger = logging.getLogger(__name__)

FormulaValue = int | float | str


def _present_float(value: object) -> float | None:
    number = parse_float(value)
    if number is None or math.isnan(number):
        return None
    return number


@dataclass(frozen=True)
class FormulaContext:
    """
    Variables a formula may reference.

    None and NaN both mean "not known".  Rep counts are truncated to
    integers when bound.
    """

    current_cycle_1rm_estimate: float | str | None = None
    user_max_reps: int | float | str | None = None
    exercise_specific_min_reps: int | float | str | None = None
    amrap_reps_at_step8: int | float | str | None = None

    def bindings(self) -> dict[str, float]:
        """Known variables keyed by their formula names."""
        env: dict[str, float] = {}
        one_rm = _present_float(self.current_cycle_1rm_estimate)
        if one_rm is not None:
            env[ONE_RM_ESTIMATE] = one_rm
        for name, raw in (
            (USER_MAX_REPS, self.user_max_reps),
            (MIN_REPS, self.exercise_specific_min_reps),
            (AMRAP_REPS, self.amrap_reps_at_step8),
        ):
            reps = parse_int(raw)
            if reps is not None:
                env[name] = float(reps)
        return env


def resolve_formula(formula: object, context: FormulaContext | None = None) -> FormulaValue:
    """
    Resolve a sets / reps / weight formula against a context.

    Args:
        formula: Raw cell value (usually text, may be a number or None)
        context: Known variables; defaults to an empty context

    Returns:
        An int or float when the formula evaluates, "AMRAP", the AMRAP
        pending marker, or the original text when nothing applies
    """
    if formula is None:
        return ""
    original = formula if isinstance(formula, str) else str(formula)
    text = original.strip()

    if text.upper() == AMRAP:
        return AMRAP
    if is_numeric_literal(text):
        return as_display_number(float(text))

    env = (context or FormulaContext()).bindings()
    lowered = text.lower()

    if ONE_RM_ESTIMATE not in env and "currentcycle1rmestimate" in lowered:
        return 0
    if USER_MAX_REPS not in env and "usermaxreps" in lowered:
        if text.startswith("max(1,"):
            return 1
        return original

    for pattern, m in recognise(text):
        if pattern is AMRAP_ADJUSTED_1RM and AMRAP_REPS not in env:
            if "AMRAPRepsAtStep8" in text:
                return AMRAP_PENDING_TEXT
            factor = parse_float(m.group(1))
            if factor is None:
                continue
            return as_display_number(env[ONE_RM_ESTIMATE] * factor)

        node = pattern.build(m)
        if node is None:
            continue
        unbound = variables(node) - env.keys()
        if unbound:
            logger.debug("Pattern %s skipped for %r: unbound %s", pattern.name, text, sorted(unbound))
            continue
        try:
            value = evaluate(node, env)
        except EvaluationError as exc:
            logger.debug("Pattern %s skipped for %r: %s", pattern.name, text, exc)
            continue
        result = as_display_number(value)
        logger.debug("Resolved %r as %s = %s", text, render(node), result)
        return result

    logger.debug("No formula pattern matched %r; returning it unchanged", text)
    return original
