"""
Row serialization for workbook sheets.

Handles conversion between Table rows and the core dataclasses, plus
validation of log-form submissions.  Cells are read leniently: a number
cell that does not parse becomes None rather than an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..core.config import AMRAP, DEFAULT_WEIGHT_UNIT, RPE_MAX, RPE_MIN
from ..core.estimator import epley_1rm
from ..core.models import (
    Exercise,
    LastLogged,
    ProgressionKey,
    ProgressionModel,
    ProgressionModelStep,
    TemplateExerciseAssignment,
    UserExerciseProgression,
    WorkoutLogEntry,
    WorkoutTemplate,
)
from ..core.parsing import parse_float, parse_int
from .schema import REPS_PERFORMED
from .tables import ConfigurationError, Table

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def parse_timestamp(text: str | None) -> datetime | None:
    """
    Parse an ISO timestamp or date cell.

    Cells carrying an offset (e.g. "2026-03-01T10:00:00Z") are converted to
    naive local time, the form the log writer stores.

    Returns:
        datetime, or None for blank or unparseable text
    """
    if not text or not text.strip():
        return None
    stripped = text.strip()
    if stripped.endswith(("Z", "z")):
        stripped = stripped[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(stripped)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _optional_text(text: str) -> str | None:
    stripped = text.strip()
    return stripped or None


def _non_negative_int(text: str) -> int | None:
    value = parse_int(text)
    return value if value is not None and value >= 0 else None


# ---------------------------------------------------------------------------
# Reference sheets
# ---------------------------------------------------------------------------


def table_to_templates(table: Table) -> list[WorkoutTemplate]:
    """
    Templates with both an id and a name.

    Raises:
        ConfigurationError: TemplateID or TemplateName column is missing
    """
    if not table.has("TemplateID") or not table.has("TemplateName"):
        raise ConfigurationError("WorkoutTemplates sheet is missing TemplateID or TemplateName header.")
    templates = []
    for row in table:
        template_id = table.value(row, "TemplateID").strip()
        name = table.value(row, "TemplateName").strip()
        if template_id and name:
            templates.append(WorkoutTemplate(template_id=template_id, template_name=name))
    return templates


def row_to_exercise(table: Table, row: tuple[str, ...]) -> Exercise:
    return Exercise(
        exercise_id=table.value(row, "ExerciseID").strip(),
        name=table.value(row, "ExerciseName").strip(),
        alias=_optional_text(table.value(row, "ExerciseAlias")),
        equipment_type=table.value(row, "EquipmentType").strip() or "Other",
        unit=table.value(row, "UnitOfMeasurement").strip() or DEFAULT_WEIGHT_UNIT,
        category=table.value(row, "Category").strip(),
    )


def table_to_exercises(table: Table) -> dict[str, Exercise]:
    """Exercise library keyed by id; on duplicate ids the first row wins."""
    table.require("ExerciseID")
    exercises: dict[str, Exercise] = {}
    for row in table:
        exercise = row_to_exercise(table, row)
        if exercise.exercise_id:
            exercises.setdefault(exercise.exercise_id, exercise)
    return exercises


def table_to_models(table: Table) -> dict[str, ProgressionModel]:
    """Progression models keyed by id; on duplicate ids the first row wins."""
    table.require("ProgressionModelID")
    models: dict[str, ProgressionModel] = {}
    for row in table:
        model_id = table.value(row, "ProgressionModelID").strip()
        if not model_id or model_id in models:
            continue
        models[model_id] = ProgressionModel(
            model_id=model_id,
            name=table.value(row, "ModelName").strip(),
            trigger_condition=table.value(row, "TriggerConditionLogic").strip(),
            cycle_completion_condition=table.value(row, "CycleCompletionConditionLogic").strip(),
            default_total_steps=parse_int(table.value(row, "DefaultTotalSteps")),
            new_cycle_base_formula=_optional_text(table.value(row, "NewCycleBaseWeightFormula")),
        )
    return models


def table_to_steps(table: Table) -> list[ProgressionModelStep]:
    """Step rows in sheet order; rows without a usable step number are skipped."""
    table.require("ProgressionModelID", "StepNumber")
    steps = []
    for row in table:
        model_id = table.value(row, "ProgressionModelID").strip()
        step_number = parse_int(table.value(row, "StepNumber"))
        if not model_id or step_number is None or step_number < 1:
            logger.warning("Skipping %s row with unusable step: %r", table.name, row)
            continue
        steps.append(
            ProgressionModelStep(
                model_id=model_id,
                step_number=step_number,
                sets_formula=_optional_text(table.value(row, "TargetSetsFormula")),
                reps_formula=_optional_text(table.value(row, "TargetRepsFormula")),
                weight_formula=_optional_text(table.value(row, "TargetWeightFormula")),
                notes=table.value(row, "StepNotes").strip(),
            )
        )
    return steps


def table_to_assignments(table: Table) -> list[TemplateExerciseAssignment]:
    table.require("TemplateID", "ExerciseID", "ProgressionModelID")
    return [
        TemplateExerciseAssignment(
            template_id=table.value(row, "TemplateID").strip(),
            exercise_id=table.value(row, "ExerciseID").strip(),
            progression_model_id=table.value(row, "ProgressionModelID").strip(),
            order_in_workout=table.value(row, "OrderInWorkout").strip(),
            min_reps_override=parse_int(table.value(row, "ExerciseSpecificMinReps")),
            notes=table.value(row, "NotesForExerciseInTemplate").strip(),
        )
        for row in table
    ]


# ---------------------------------------------------------------------------
# Progression state
# ---------------------------------------------------------------------------

PROGRESSION_KEY_HEADERS = ("UserID", "TemplateID", "ExerciseID", "ProgressionModelID")


def row_to_progression(table: Table, row: tuple[str, ...]) -> UserExerciseProgression:
    step = parse_int(table.value(row, "CurrentStepNumber"))
    return UserExerciseProgression(
        progression_id=table.value(row, "UserExerciseProgressionID").strip(),
        user_id=table.value(row, "UserID").strip(),
        template_id=table.value(row, "TemplateID").strip(),
        exercise_id=table.value(row, "ExerciseID").strip(),
        progression_model_id=table.value(row, "ProgressionModelID").strip(),
        current_step_number=step if step is not None and step >= 1 else 1,
        current_cycle_1rm_estimate=parse_float(table.value(row, "CurrentCycle1RMEstimate")),
        user_max_reps=parse_int(table.value(row, "UserMaxReps")),
        last_workout_rpe=parse_int(table.value(row, "LastWorkoutRPE")),
        amrap_reps_at_step8=parse_int(table.value(row, "AMRAPRepsAtStep8")),
        cycle_start_date=parse_timestamp(table.value(row, "CycleStartDate")),
        date_of_last_attempt=parse_timestamp(table.value(row, "DateOfLastAttempt")),
    )


def index_progressions(table: Table) -> dict[ProgressionKey, UserExerciseProgression]:
    """
    Cycle state keyed by (user, template, exercise, model).

    Duplicate keys resolve to the first row, as a top-down scan would.
    """
    table.require(*PROGRESSION_KEY_HEADERS)
    index: dict[ProgressionKey, UserExerciseProgression] = {}
    for key, position in table.index_by(*PROGRESSION_KEY_HEADERS).items():
        index[key] = row_to_progression(table, table.rows[position])  # type: ignore[index]
    return index


def progression_to_row(state: UserExerciseProgression) -> dict[str, Any]:
    return {
        "UserExerciseProgressionID": state.progression_id,
        "UserID": state.user_id,
        "TemplateID": state.template_id,
        "ExerciseID": state.exercise_id,
        "ProgressionModelID": state.progression_model_id,
        "CurrentStepNumber": state.current_step_number,
        "CurrentCycle1RMEstimate": state.current_cycle_1rm_estimate,
        "UserMaxReps": state.user_max_reps,
        "LastWorkoutRPE": state.last_workout_rpe,
        "AMRAPRepsAtStep8": state.amrap_reps_at_step8,
        "CycleStartDate": state.cycle_start_date,
        "DateOfLastAttempt": state.date_of_last_attempt,
    }


# ---------------------------------------------------------------------------
# Workout log
# ---------------------------------------------------------------------------


def reps_header(table: Table) -> str:
    """The reps column: "RepsPerformed (per set)" or any header containing "repsperformed"."""
    if table.has(REPS_PERFORMED):
        return REPS_PERFORMED
    return table.find_header("repsperformed") or REPS_PERFORMED


def row_to_log_entry(table: Table, row: tuple[str, ...], reps_column: str | None = None) -> WorkoutLogEntry:
    reps_column = reps_column or reps_header(table)
    return WorkoutLogEntry(
        exercise_id=table.value(row, "ExerciseID").strip(),
        timestamp=parse_timestamp(table.value(row, "ExerciseTimestamp")),
        reps_performed=table.value(row, reps_column).strip(),
        weight_used=parse_float(table.value(row, "WeightUsed")),
        sets_performed=parse_int(table.value(row, "TotalSetsPerformed")),
        weight_unit=table.value(row, "WeightUnit").strip() or DEFAULT_WEIGHT_UNIT,
        rpe=parse_int(table.value(row, "RPE_Recorded")),
        notes=table.value(row, "WorkoutNotes").strip(),
        template_id=table.value(row, "LinkedTemplateID").strip(),
        progression_model_id=table.value(row, "LinkedProgressionModelID").strip(),
        performed_step=parse_int(table.value(row, "PerformedAtStepNumber")),
        log_id=table.value(row, "LogID").strip(),
        estimated_1rm=parse_float(table.value(row, "Estimated 1RM")),
    )


def table_to_log(table: Table) -> list[WorkoutLogEntry]:
    """Log entries in sheet order; an empty list when the sheet has no ExerciseID column."""
    if not table.has("ExerciseID"):
        return []
    column = reps_header(table)
    return [row_to_log_entry(table, row, column) for row in table]


def log_entry_to_row(entry: WorkoutLogEntry, last_modified: datetime) -> dict[str, Any]:
    return {
        "LogID": entry.log_id,
        "ExerciseTimestamp": entry.timestamp,
        "ExerciseID": entry.exercise_id,
        "TotalSetsPerformed": entry.sets_performed,
        REPS_PERFORMED: entry.reps_performed,
        "WeightUsed": entry.weight_used,
        "Estimated 1RM": entry.estimated_1rm,
        "WeightUnit": entry.weight_unit,
        "RPE_Recorded": entry.rpe,
        "WorkoutNotes": entry.notes or None,
        "LinkedTemplateID": entry.template_id,
        "LinkedProgressionModelID": entry.progression_model_id,
        "PerformedAtStepNumber": entry.performed_step,
        "LastModified": last_modified,
    }


def log_entry_to_last_logged(entry: WorkoutLogEntry) -> LastLogged:
    return LastLogged(
        exercise_timestamp=entry.timestamp,
        sets_performed=entry.sets_performed,
        reps_performed=entry.reps_performed,
        weight_used=entry.weight_used,
        weight_unit=entry.weight_unit or DEFAULT_WEIGHT_UNIT,
        rpe_recorded=entry.rpe,
        workout_notes=entry.notes or "",
    )


# ---------------------------------------------------------------------------
# Log form
# ---------------------------------------------------------------------------

REQUIRED_FORM_FIELDS = (
    "templateId",
    "exerciseId",
    "progressionModelId",
    "performedStepNumber",
    "setsPerformed",
    "repsPerformed",
    "weightUsed",
    "rpe",
)


@dataclass(frozen=True)
class LogForm:
    """A validated log submission."""

    template_id: str
    exercise_id: str
    progression_model_id: str
    performed_step: int
    sets_performed: int
    reps_display: str  # "AMRAP" or the rep text as entered
    reps_for_estimate: int
    weight_used: float
    rpe: int
    actual_amrap_reps: int | None = None
    weight_unit: str = DEFAULT_WEIGHT_UNIT
    notes: str = ""
    exercise_name: str = ""

    @property
    def display_name(self) -> str:
        return self.exercise_name or self.exercise_id

    def estimated_1rm(self) -> float:
        return epley_1rm(self.weight_used, self.reps_for_estimate)


def _blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def parse_log_form(form: Mapping[str, Any]) -> LogForm:
    """
    Validate a log submission.

    Args:
        form: Raw form fields (camelCase keys as submitted)

    Returns:
        LogForm with parsed numbers

    Raises:
        ValidationError: a required field is missing or a number is invalid
    """
    for name in REQUIRED_FORM_FIELDS:
        if _blank(form.get(name)):
            raise ValidationError(f"Missing required form data field: {name}.")

    reps_display = str(form["repsPerformed"]).strip().upper()
    actual_amrap_reps: int | None = None
    if reps_display == AMRAP:
        if _blank(form.get("actualAmrapReps")):
            raise ValidationError("Missing required form data field: actualAmrapReps.")
        actual_amrap_reps = _non_negative_int(str(form["actualAmrapReps"]))
        if actual_amrap_reps is None:
            raise ValidationError("Invalid 'Actual AMRAP Reps'.")
        reps_for_estimate = actual_amrap_reps
    else:
        parsed_reps = _non_negative_int(str(form["repsPerformed"]))
        if parsed_reps is None:
            raise ValidationError("Invalid 'Reps Performed'.")
        reps_for_estimate = parsed_reps

    sets = parse_int(form["setsPerformed"])
    if sets is None or sets <= 0:
        raise ValidationError("Invalid 'Sets Performed'.")

    weight = parse_float(form["weightUsed"])
    if weight is None or weight < 0:
        raise ValidationError("Invalid 'Weight Used'.")

    rpe = parse_int(form["rpe"])
    if rpe is None or rpe < RPE_MIN or rpe > RPE_MAX:
        raise ValidationError("Invalid 'RPE'.")

    performed_step = parse_int(form["performedStepNumber"])
    if performed_step is None or performed_step < 1:
        raise ValidationError("Invalid 'Performed Step Number'.")

    return LogForm(
        template_id=str(form["templateId"]).strip(),
        exercise_id=str(form["exerciseId"]).strip(),
        progression_model_id=str(form["progressionModelId"]).strip(),
        performed_step=performed_step,
        sets_performed=sets,
        reps_display=reps_display,
        reps_for_estimate=reps_for_estimate,
        weight_used=weight,
        rpe=rpe,
        actual_amrap_reps=actual_amrap_reps,
        weight_unit=str(form.get("weightUnit") or DEFAULT_WEIGHT_UNIT).strip(),
        notes=str(form.get("notes") or "").strip(),
        exercise_name=str(form.get("exerciseName") or "").strip(),
    )


def find_last_logged(
    log: Iterable[WorkoutLogEntry],
    exercise_id: str,
    template_id: str | None = None,
) -> WorkoutLogEntry | None:
    """Newest entry for the exercise (and template, when given); earlier rows win ties."""
    exercise_id = str(exercise_id).strip()
    template = str(template_id).strip() if template_id else ""
    matches = [
        e for e in log
        if e.exercise_id == exercise_id and (not template or e.template_id == template)
    ]
    if not matches:
        return None
    return sorted(matches, key=lambda e: e.timestamp or datetime.min, reverse=True)[0]
