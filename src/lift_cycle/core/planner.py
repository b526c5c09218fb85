"""
Plan assembly: join a template's exercise list with each exercise's cycle
state and resolve the current step's formulas into a prescription.

Per-exercise gaps never abort the plan.  An assignment with no exercise or
model, or a cycle position with no matching step row, becomes a
placeholder entry whose notes say what is missing.

Also home to simulate_cycle(), a dry run of every step of a model at a
fixed baseline.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import date

from .config import (
    AMRAP,
    DEFAULT_WEIGHT_UNIT,
    MAX_REPS_PROJECTION_FACTOR,
    NOTES_MISSING_ASSIGNMENT,
    NOTES_MISSING_STEP,
    PLACEHOLDER_RAW_WEIGHT,
    PLACEHOLDER_VALUE,
)
from .equipment import DEFAULT_CATALOG, EquipmentCatalog, round_weight
from .estimator import estimate_max_reps, estimate_one_rep_max
from .formulas import FormulaContext, FormulaValue, resolve_formula
from .models import (
    Exercise,
    PlanEntry,
    ProgressionKey,
    ProgressionModel,
    ProgressionModelStep,
    SimulatedStep,
    TemplateExerciseAssignment,
    UserExerciseProgression,
    WorkoutLogEntry,
)
from .parsing import parse_float, parse_int
from .progression import is_max_reps_model, model_steps

logger = logging.getLogger(__name__)


def format_weight(
    resolved: FormulaValue,
    equipment_type: str,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
) -> tuple[str, str]:
    """
    Turn a resolved weight formula into (display weight, raw weight).

    Text that does not start with a number is shown as-is in both slots.
    Numbers are rounded for the equipment; both values get two decimals.
    """
    value = parse_float(resolved)
    if value is None:
        if isinstance(resolved, str):
            return resolved, resolved
        return PLACEHOLDER_RAW_WEIGHT, PLACEHOLDER_RAW_WEIGHT
    adjustment = round_weight(value, equipment_type, catalog)
    return f"{adjustment.adjusted_weight:.2f}", f"{value:.2f}"


def is_logged_today(
    log: Iterable[WorkoutLogEntry],
    exercise_id: str,
    template_id: str,
    today: date,
) -> bool:
    """True when the log has an entry for this exercise and template dated today."""
    for entry in log:
        if entry.timestamp is None:
            continue
        if (
            entry.exercise_id == exercise_id
            and entry.template_id == template_id
            and entry.timestamp.date() == today
        ):
            return True
    return False


def _placeholder(
    assignment: TemplateExerciseAssignment,
    exercise: Exercise | None,
    step_number: int,
    equipment_type: str,
    notes: str,
) -> PlanEntry:
    exercise_id = assignment.exercise_id or "N/A"
    return PlanEntry(
        exercise_id=exercise_id,
        exercise_name=exercise.name if exercise else f"Exercise {assignment.exercise_id or 'Unknown'}",
        exercise_alias=exercise.alias if exercise else None,
        calculated_sets=PLACEHOLDER_VALUE,
        calculated_reps=PLACEHOLDER_VALUE,
        calculated_weight=PLACEHOLDER_VALUE,
        raw_calculated_weight=PLACEHOLDER_RAW_WEIGHT,
        weight_unit=DEFAULT_WEIGHT_UNIT,
        current_step_number=step_number,
        equipment_type=equipment_type,
        step_notes=notes,
        notes_for_exercise_in_template=assignment.notes,
        is_logged_today=False,
        order_in_workout=assignment.order_in_workout,
        progression_model_id=assignment.progression_model_id,
    )


def index_steps(
    steps: Iterable[ProgressionModelStep],
) -> dict[tuple[str, int], ProgressionModelStep]:
    """Index steps by (model id, step number); the first duplicate wins."""
    index: dict[tuple[str, int], ProgressionModelStep] = {}
    for step in steps:
        index.setdefault((step.model_id, step.step_number), step)
    return index


def assemble_plan(
    template_id: str,
    user_id: str,
    *,
    assignments: Sequence[TemplateExerciseAssignment],
    exercises: Mapping[str, Exercise],
    steps: Sequence[ProgressionModelStep],
    progressions: Mapping[ProgressionKey, UserExerciseProgression],
    log: Sequence[WorkoutLogEntry],
    today: date,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
) -> list[PlanEntry]:
    """
    Build the display-ready prescription list for a template.

    Args:
        template_id: Template to plan
        user_id: Whose cycle state to use
        assignments: All template/exercise assignment rows
        exercises: Exercise library keyed by exercise id
        steps: All progression-model step rows
        progressions: Cycle state keyed by (user, template, exercise, model)
        log: Workout log, for estimates and the logged-today flag
        today: Local date used for the logged-today flag
        catalog: Equipment available for weight rounding

    Returns:
        One PlanEntry per assignment, in OrderInWorkout order
    """
    in_template = [a for a in assignments if a.template_id == template_id]
    in_template.sort(key=lambda a: a.sort_order)
    step_index = index_steps(steps)

    plan: list[PlanEntry] = []
    for assignment in in_template:
        exercise_id = assignment.exercise_id
        model_id = assignment.progression_model_id
        exercise = exercises.get(exercise_id)
        equipment_type = (exercise.equipment_type if exercise else "") or "Other"

        progression = progressions.get((user_id, template_id, exercise_id, model_id))
        if progression is not None:
            step_number = progression.current_step_number or 1
            one_rm = progression.current_cycle_1rm_estimate or 0.0
        else:
            logger.debug("No progression for %s/%s/%s; using step 1", user_id, template_id, exercise_id)
            step_number = 1
            one_rm = estimate_one_rep_max(exercise_id, log)

        if not exercise_id or not model_id:
            logger.warning("Template %s has an assignment without exercise or model: %r", template_id, assignment)
            plan.append(_placeholder(assignment, exercise, step_number, equipment_type, NOTES_MISSING_ASSIGNMENT))
            continue

        max_reps_model = is_max_reps_model(model_steps(model_id, steps))
        max_reps: int | None = None
        if max_reps_model:
            if progression is not None and progression.user_max_reps:
                max_reps = progression.user_max_reps
            else:
                max_reps = estimate_max_reps(exercise_id, log)
            context = FormulaContext(current_cycle_1rm_estimate=0, user_max_reps=max_reps)
        else:
            context = FormulaContext(current_cycle_1rm_estimate=one_rm)
        if assignment.min_reps_override:
            context = replace(context, exercise_specific_min_reps=assignment.min_reps_override)

        step = step_index.get((model_id, step_number))
        if step is None:
            logger.warning(
                "No step %s defined for model %s (exercise %s)", step_number, model_id, exercise_id
            )
            plan.append(_placeholder(assignment, exercise, step_number, equipment_type, NOTES_MISSING_STEP))
            continue

        weight, raw_weight = format_weight(resolve_formula(step.weight_formula, context), equipment_type, catalog)
        plan.append(
            PlanEntry(
                exercise_id=exercise_id,
                exercise_name=exercise.name if exercise else "Unknown Exercise",
                exercise_alias=exercise.alias if exercise else None,
                calculated_sets=resolve_formula(step.sets_formula, context),
                calculated_reps=resolve_formula(step.reps_formula, context),
                calculated_weight=weight,
                raw_calculated_weight=raw_weight,
                weight_unit=(exercise.unit if exercise else "") or DEFAULT_WEIGHT_UNIT,
                current_step_number=step_number,
                equipment_type=equipment_type,
                step_notes=step.notes,
                notes_for_exercise_in_template=assignment.notes,
                is_logged_today=is_logged_today(log, exercise_id, template_id, today),
                base_weight=float(max_reps) if max_reps_model else one_rm,
                is_bodyweight_max_reps_model=max_reps_model,
                order_in_workout=assignment.order_in_workout,
                progression_model_id=model_id,
            )
        )
    return plan


def simulate_cycle(
    model: ProgressionModel,
    steps: Sequence[ProgressionModelStep],
    initial_estimate: float,
    exercise: Exercise | None = None,
    simulated_amrap_reps: int = 5,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
) -> list[SimulatedStep]:
    """
    Walk every step of a model at a fixed baseline.

    Args:
        model: Model to walk
        steps: Step rows (other models' rows are ignored)
        initial_estimate: 1RM, or max reps for a max-reps model
        exercise: Used for equipment rounding; None rounds as "Other"
        simulated_amrap_reps: AMRAP result assumed when projecting the next baseline
        catalog: Equipment available for weight rounding

    Returns:
        One SimulatedStep per step, with projected_next_baseline on AMRAP steps
    """
    own_steps = model_steps(model.model_id, steps)
    max_reps_model = is_max_reps_model(own_steps)
    equipment_type = (exercise.equipment_type if exercise else "") or "Other"

    if max_reps_model:
        context = FormulaContext(current_cycle_1rm_estimate=0, user_max_reps=parse_int(initial_estimate))
    else:
        context = FormulaContext(current_cycle_1rm_estimate=initial_estimate)

    simulated: list[SimulatedStep] = []
    for step in own_steps:
        sets = resolve_formula(step.sets_formula, context)
        reps = resolve_formula(step.reps_formula, context)
        weight, raw_weight = format_weight(resolve_formula(step.weight_formula, context), equipment_type, catalog)

        projected: float | None = None
        if str(reps).upper() == AMRAP:
            if max_reps_model:
                projected = float(math.ceil(initial_estimate * MAX_REPS_PROJECTION_FACTOR))
            elif model.new_cycle_base_formula:
                next_value = parse_float(
                    resolve_formula(
                        model.new_cycle_base_formula,
                        FormulaContext(
                            current_cycle_1rm_estimate=initial_estimate,
                            amrap_reps_at_step8=simulated_amrap_reps,
                        ),
                    )
                )
                if next_value is not None and math.isfinite(next_value) and next_value > 0:
                    projected = round(next_value, 2)
                else:
                    logger.warning(
                        "NewCycleBaseWeightFormula of %s does not resolve to a positive number",
                        model.model_id,
                    )

        simulated.append(
            SimulatedStep(
                step_number=step.step_number,
                sets=sets,
                reps=reps,
                weight=weight,
                raw_weight=raw_weight,
                notes=step.notes,
                baseline=float(initial_estimate),
                projected_next_baseline=projected,
            )
        )
    return simulated
