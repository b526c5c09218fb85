"""
Progression state machine.

Decides, after each logged set, where a user's cycle stands for one
(user, template, exercise, model) key:

    trigger not met                -> retry the performed step
    trigger met, step < total      -> advance to step + 1
    trigger met, step == total:
        cycle completion met       -> reset to step 1, recompute baseline
        otherwise                  -> hold on the final step

A model is a max-reps model when any of its step formulas references
UserMaxReps; its baseline is a rep count.  Every other model carries a
1RM estimate.  The two baselines are never set together.

All functions here are pure.  Persisting the result is the caller's job
(see service.ProgressionRecorder).
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime

from .config import (
    CYCLE_COMPLETION_MAX_RPE,
    TRIGGER_RPE_AT_MOST_8,
    TRIGGER_RPE_BELOW_9,
)
from .estimator import estimate_max_reps, estimate_one_rep_max
from .formulas import FormulaContext, resolve_formula
from .formulas.nodes import USER_MAX_REPS
from .models import (
    PerformedSet,
    ProgressionModel,
    ProgressionModelStep,
    ProgressionOutcome,
    UserExerciseProgression,
    WorkoutLogEntry,
)
from .parsing import parse_float, round_half_up

logger = logging.getLogger(__name__)


class ProgressionError(Exception):
    """Raised when a model is too incomplete to run the state machine."""

    pass


@dataclass(frozen=True)
class ProgressionUpdate:
    state: UserExerciseProgression
    outcome: ProgressionOutcome


def model_steps(model_id: str, steps: Iterable[ProgressionModelStep]) -> list[ProgressionModelStep]:
    """Steps belonging to model_id, ordered by step number (stable on duplicates)."""
    return sorted((s for s in steps if s.model_id == model_id), key=lambda s: s.step_number)


def is_max_reps_model(steps: Iterable[ProgressionModelStep]) -> bool:
    """True when any sets/reps/weight formula of the steps mentions UserMaxReps."""
    for step in steps:
        for formula in step.formulas():
            if formula and USER_MAX_REPS in formula:
                return True
    return False


def total_steps(model: ProgressionModel, steps: Sequence[ProgressionModelStep]) -> int:
    """
    Number of steps in one cycle of the model.

    DefaultTotalSteps wins when it is a positive integer; otherwise the
    highest step number defined for the model is used.

    Raises:
        ProgressionError: neither source gives a step count
    """
    if model.default_total_steps is not None and model.default_total_steps >= 1:
        return model.default_total_steps
    numbers = [s.step_number for s in steps if s.model_id == model.model_id]
    if not numbers:
        raise ProgressionError(
            f"Progression model {model.model_id} has no DefaultTotalSteps and no steps"
        )
    return max(numbers)


def amrap_step(model: ProgressionModel, steps: Sequence[ProgressionModelStep]) -> int:
    """The first step prescribing AMRAP reps, or the final step if none does."""
    for step in model_steps(model.model_id, steps):
        if step.reps_formula and step.reps_formula.strip().upper() == "AMRAP":
            return step.step_number
    return total_steps(model, steps)


def trigger_met(trigger_condition: str | None, rpe: int) -> bool:
    """
    Evaluate a model's trigger condition against the logged RPE.

    Only "loggedRPE <= 8" and "loggedRPE < 9" (any case) are understood;
    any other condition never triggers.
    """
    condition = (trigger_condition or "").strip().lower()
    if condition == TRIGGER_RPE_AT_MOST_8:
        return rpe <= 8
    if condition == TRIGGER_RPE_BELOW_9:
        return rpe < 9
    return False


def cycle_complete(
    performed: PerformedSet,
    model: ProgressionModel,
    steps: Sequence[ProgressionModelStep],
) -> bool:
    """
    Whether a set logged on the final step closes the cycle.

    1RM models: the performed step is the AMRAP step and the final step,
    RPE <= 8 and at least one AMRAP rep.  Max-reps models: the final step
    at RPE <= 8.
    """
    final = total_steps(model, steps)
    if performed.rpe > CYCLE_COMPLETION_MAX_RPE:
        return False
    if is_max_reps_model(model_steps(model.model_id, steps)):
        return performed.step_number == final
    return (
        performed.step_number == final
        and amrap_step(model, steps) == final
        and performed.amrap_reps is not None
        and performed.amrap_reps > 0
    )


def _clamp_step(step_number: int, final: int) -> int:
    return min(max(step_number, 1), final)


def _next_baseline(
    state: UserExerciseProgression,
    model: ProgressionModel,
    max_reps_model: bool,
    amrap_reps: int | None,
) -> float | int | None:
    """Resolve the new-cycle formula; None when it gives no positive number."""
    formula = model.new_cycle_base_formula
    if not formula or not formula.strip():
        logger.warning(
            "Model %s has no NewCycleBaseWeightFormula; baseline for %s unchanged",
            model.model_id, state.exercise_id,
        )
        return None

    if max_reps_model:
        context = FormulaContext(user_max_reps=state.user_max_reps, amrap_reps_at_step8=amrap_reps)
    else:
        context = FormulaContext(
            current_cycle_1rm_estimate=state.current_cycle_1rm_estimate,
            amrap_reps_at_step8=amrap_reps,
        )
    resolved = resolve_formula(formula, context)
    value = parse_float(resolved)
    if value is None or not math.isfinite(value) or value <= 0:
        logger.warning(
            "NewCycleBaseWeightFormula %r for model %s resolved to %r; baseline for %s unchanged",
            formula, model.model_id, resolved, state.exercise_id,
        )
        return None
    if max_reps_model:
        return int(round_half_up(value))
    return round(value, 2)


def advance_progression(
    state: UserExerciseProgression,
    model: ProgressionModel,
    steps: Sequence[ProgressionModelStep],
    performed: PerformedSet,
    now: datetime,
) -> ProgressionUpdate:
    """
    Apply one logged set to the cycle state.

    Args:
        state: Current state for the key (not modified)
        model: The key's progression model
        steps: Step rows (may include other models' steps)
        performed: Performed step, RPE and AMRAP result
        now: Timestamp recorded as the attempt (and cycle start on reset)

    Returns:
        ProgressionUpdate with the new state and which branch was taken

    Raises:
        ProgressionError: the model's step count cannot be determined
    """
    final = total_steps(model, steps)
    performed_step = _clamp_step(performed.step_number, final)
    if performed_step != performed.step_number:
        logger.warning(
            "Performed step %s outside 1..%s for %s; clamped to %s",
            performed.step_number, final, state.exercise_id, performed_step,
        )
        performed = replace(performed, step_number=performed_step)

    new_state = replace(state, last_workout_rpe=performed.rpe, date_of_last_attempt=now)

    if not trigger_met(model.trigger_condition, performed.rpe):
        new_state.current_step_number = performed_step
        outcome: ProgressionOutcome = "retry"
    elif performed_step < final:
        new_state.current_step_number = performed_step + 1
        outcome = "advanced"
    elif cycle_complete(performed, model, steps):
        max_reps_model = is_max_reps_model(model_steps(model.model_id, steps))
        new_state.current_step_number = 1
        new_state.amrap_reps_at_step8 = performed.amrap_reps
        new_state.cycle_start_date = now
        baseline = _next_baseline(state, model, max_reps_model, performed.amrap_reps)
        if baseline is not None:
            if max_reps_model:
                new_state.user_max_reps = int(baseline)
                new_state.current_cycle_1rm_estimate = None
            else:
                new_state.current_cycle_1rm_estimate = float(baseline)
                new_state.user_max_reps = None
            logger.info(
                "Cycle complete for %s/%s: baseline %s -> %s",
                state.exercise_id, model.model_id, state.baseline, baseline,
            )
        outcome = "cycle_complete"
    else:
        # Trigger held on the final step without completing the cycle
        new_state.current_step_number = final
        outcome = "hold_final"

    logger.debug(
        "Progression %s: step %s -> %s (%s, RPE %s)",
        state.exercise_id, state.current_step_number, new_state.current_step_number,
        outcome, performed.rpe,
    )
    return ProgressionUpdate(state=new_state, outcome=outcome)


def bootstrap_progression(
    user_id: str,
    template_id: str,
    exercise_id: str,
    model: ProgressionModel,
    steps: Sequence[ProgressionModelStep],
    log: Iterable[WorkoutLogEntry],
    now: datetime,
    progression_id: str | None = None,
) -> UserExerciseProgression:
    """
    Build the step-1 state for a key that has never been logged.

    Max-reps models start from the best unloaded rep count in the log,
    every other model from the latest loaded set's Epley 1RM.
    """
    progression_id = progression_id or f"UEP_{uuid.uuid4()}"
    state = UserExerciseProgression(
        progression_id=progression_id,
        user_id=user_id,
        template_id=template_id,
        exercise_id=exercise_id,
        progression_model_id=model.model_id,
        current_step_number=1,
        cycle_start_date=now,
        date_of_last_attempt=now,
    )
    if is_max_reps_model(model_steps(model.model_id, steps)):
        state.user_max_reps = estimate_max_reps(exercise_id, log)
        logger.info("New progression for %s: max reps estimated at %s", exercise_id, state.user_max_reps)
    else:
        state.current_cycle_1rm_estimate = estimate_one_rep_max(exercise_id, log)
        logger.info("New progression for %s: 1RM estimated at %s", exercise_id, state.current_cycle_1rm_estimate)
    return state
