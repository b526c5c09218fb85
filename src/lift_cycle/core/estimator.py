"""
Baseline estimator used to bootstrap a cycle when no progression record exists.

Two independent estimates drawn from the workout log:

  1RM (loaded movements), Epley 1985:
    1RM = weight × (1 + reps / 30), taken from the most recent loaded set.
    A single rep is its own 1RM.

  Max reps (bodyweight movements):
    Highest rep count ever logged with no added load.  Defaults to 10 so a
    fresh max-reps cycle still has something to scale.

Entries logged as "AMRAP" carry their rep count in a separate field and
do not count as a rep number here.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .config import DEFAULT_MAX_REPS, EPLEY_DIVISOR
from .models import WorkoutLogEntry


def epley_1rm(weight: float, reps: int) -> float:
    """
    Estimate 1RM using the Epley formula, rounded to 2 decimals.

    Args:
        weight: Load lifted
        reps: Reps performed

    Returns:
        weight for a single, weight × (1 + reps/30) otherwise, 0 for reps <= 0
    """
    if reps <= 0:
        return 0.0
    if reps == 1:
        return float(weight)
    return round(weight * (1 + reps / EPLEY_DIVISOR), 2)


def _timestamp_key(entry: WorkoutLogEntry) -> datetime:
    # Undated rows sort as oldest
    return entry.timestamp if entry.timestamp is not None else datetime.min


def estimate_one_rep_max(exercise_id: str, log: Iterable[WorkoutLogEntry]) -> float:
    """
    Estimate the current 1RM from the most recent loaded set of an exercise.

    Only entries with weight > 0 and a numeric rep count > 0 qualify.

    Returns:
        Estimated 1RM, or 0 when there is no qualifying entry
    """
    exercise_id = str(exercise_id).strip()
    qualifying = [
        e for e in log
        if e.exercise_id == exercise_id
        and e.weight_used is not None and e.weight_used > 0
        and e.reps is not None and e.reps > 0
    ]
    if not qualifying:
        return 0.0

    # sorted() is stable: on equal timestamps the earlier row wins
    latest = sorted(qualifying, key=_timestamp_key, reverse=True)[0]
    return epley_1rm(latest.weight_used, latest.reps)  # type: ignore[arg-type]


def estimate_max_reps(exercise_id: str, log: Iterable[WorkoutLogEntry]) -> int:
    """
    Estimate bodyweight max reps as the best unloaded rep count ever logged.

    Returns:
        Max reps found, or DEFAULT_MAX_REPS when none is logged
    """
    exercise_id = str(exercise_id).strip()
    best = 0
    for e in log:
        if e.exercise_id != exercise_id:
            continue
        if e.weight_used is not None and e.weight_used != 0:
            continue
        if e.reps is not None and e.reps > best:
            best = e.reps
    return best if best > 0 else DEFAULT_MAX_REPS
