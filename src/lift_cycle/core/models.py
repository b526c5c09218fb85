"""
Data models for lift-cycle.

All core dataclasses representing reference data (exercises, templates,
progression models), the mutable per-exercise cycle state, the append-only
workout log, and the composed plan.

Reference entities are read-only to the engine.  UserExerciseProgression is
owned by core.progression; WorkoutLogEntry rows are written once by the
logging path and never mutated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from .parsing import parse_int

EquipmentType = Literal[
    "Dumbbell",
    "Barbell",
    "EZBar",
    "WeightedPullup",
    "Machine - Plate Loaded",
    "Machine - Stack",
    "Bodyweight",
    "Other",
]

ProgressionOutcome = Literal["advanced", "retry", "hold_final", "cycle_complete"]

# Composite identity of a UserExerciseProgression row:
# (user_id, template_id, exercise_id, progression_model_id)
ProgressionKey = tuple[str, str, str, str]


@dataclass(frozen=True)
class Exercise:
    """One row of the exercise library."""

    exercise_id: str
    name: str
    alias: str | None = None
    equipment_type: str = "Other"
    unit: str = "lbs"
    category: str = ""

    @property
    def display_name(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class WorkoutTemplate:
    template_id: str
    template_name: str


@dataclass(frozen=True)
class ProgressionModel:
    """
    A named, reusable progression rule set.

    trigger_condition is an RPE comparison (e.g. "loggedRPE <= 8");
    new_cycle_base_formula is resolved at cycle completion to produce the
    next cycle's baseline.  default_total_steps may be None when the sheet
    value is missing or unparseable.
    """

    model_id: str
    name: str = ""
    trigger_condition: str = ""
    cycle_completion_condition: str = ""
    default_total_steps: int | None = None
    new_cycle_base_formula: str | None = None


@dataclass(frozen=True)
class ProgressionModelStep:
    """Prescription formulas for one step of a progression model."""

    model_id: str
    step_number: int
    sets_formula: str | None = None
    reps_formula: str | None = None
    weight_formula: str | None = None
    notes: str = ""

    def __post_init__(self) -> None:
        if self.step_number < 1:
            raise ValueError("step_number must be >= 1")

    def formulas(self) -> tuple[str | None, str | None, str | None]:
        return (self.sets_formula, self.reps_formula, self.weight_formula)


@dataclass(frozen=True)
class TemplateExerciseAssignment:
    """One exercise slot in a workout template."""

    template_id: str
    exercise_id: str
    progression_model_id: str
    order_in_workout: str = ""
    min_reps_override: int | None = None
    notes: str = ""

    @property
    def sort_order(self) -> float:
        """Numeric order; unparseable values sort as 0."""
        try:
            return float(self.order_in_workout)
        except (TypeError, ValueError):
            return 0.0


@dataclass
class UserExerciseProgression:
    """
    Mutable cycle state for one (user, template, exercise, model) key.

    Exactly one of current_cycle_1rm_estimate / user_max_reps carries the
    baseline, depending on whether the model is a max-reps model.
    """

    progression_id: str
    user_id: str
    template_id: str
    exercise_id: str
    progression_model_id: str
    current_step_number: int = 1
    current_cycle_1rm_estimate: float | None = None
    user_max_reps: int | None = None
    last_workout_rpe: int | None = None
    amrap_reps_at_step8: int | None = None
    cycle_start_date: datetime | None = None
    date_of_last_attempt: datetime | None = None

    def __post_init__(self) -> None:
        if self.current_step_number < 1:
            raise ValueError("current_step_number must be >= 1")

    @property
    def key(self) -> ProgressionKey:
        return (self.user_id, self.template_id, self.exercise_id, self.progression_model_id)

    @property
    def baseline(self) -> float:
        """The active baseline (max reps or 1RM), 0 when unset."""
        if self.user_max_reps is not None:
            return float(self.user_max_reps)
        return self.current_cycle_1rm_estimate or 0.0


@dataclass(frozen=True)
class WorkoutLogEntry:
    """
    One performed set/exercise, as stored in the workout log.

    reps_performed holds the raw text ("5", "AMRAP"); reps is its integer
    value or None when the text is not a number.
    """

    exercise_id: str
    timestamp: datetime | None
    reps_performed: str = ""
    weight_used: float | None = None
    sets_performed: int | None = None
    weight_unit: str = "lbs"
    rpe: int | None = None
    notes: str = ""
    template_id: str = ""
    progression_model_id: str = ""
    performed_step: int | None = None
    log_id: str = ""
    estimated_1rm: float | None = None

    @property
    def reps(self) -> int | None:
        return parse_int(self.reps_performed)


@dataclass(frozen=True)
class PerformedSet:
    """What the user reported for one logged exercise, as fed to the state machine."""

    step_number: int
    rpe: int
    amrap_reps: int | None = None


@dataclass
class PlanEntry:
    """One display-ready exercise prescription within a template's plan."""

    exercise_id: str
    exercise_name: str
    exercise_alias: str | None
    calculated_sets: int | float | str
    calculated_reps: int | float | str
    calculated_weight: str
    raw_calculated_weight: str
    weight_unit: str
    current_step_number: int
    equipment_type: str
    step_notes: str
    notes_for_exercise_in_template: str
    is_logged_today: bool = False
    base_weight: float | None = None
    is_bodyweight_max_reps_model: bool = False
    order_in_workout: str = ""
    progression_model_id: str = ""


@dataclass(frozen=True)
class LastLogged:
    """Summary of the most recent log entry for an exercise."""

    exercise_timestamp: datetime | None
    sets_performed: int | None
    reps_performed: str
    weight_used: float | None
    weight_unit: str
    rpe_recorded: int | None
    workout_notes: str


@dataclass
class LogResult:
    """Outcome of a successful log submission."""

    message: str
    logged_data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SimulatedStep:
    """One step of a dry-run walk through a progression model."""

    step_number: int
    sets: int | float | str
    reps: int | float | str
    weight: str
    raw_weight: str
    notes: str = ""
    baseline: float = 0.0
    projected_next_baseline: float | None = None
