"""
Sheet names and column headers of the workbook.

Each sheet is one CSV file named <sheet>.csv.  Code never relies on column
order, only on these header names.
"""

from typing import Final

WORKOUT_LOG: Final = "WorkoutLog"
EXERCISE_LIBRARY: Final = "ExerciseLibrary"
WORKOUT_TEMPLATES: Final = "WorkoutTemplates"
TEMPLATE_EXERCISE_LIST: Final = "TemplateExerciseList"
PROGRESSION_MODELS: Final = "ProgressionModels"
PROGRESSION_MODEL_STEPS: Final = "ProgressionModelSteps"
USER_EXERCISE_PROGRESSION: Final = "UserExerciseProgression"

REPS_PERFORMED: Final = "RepsPerformed (per set)"

HEADERS: Final[dict[str, tuple[str, ...]]] = {
    WORKOUT_LOG: (
        "LogID",
        "ExerciseTimestamp",
        "ExerciseID",
        "TotalSetsPerformed",
        REPS_PERFORMED,
        "WeightUsed",
        "Estimated 1RM",
        "WeightUnit",
        "RPE_Recorded",
        "WorkoutNotes",
        "LinkedTemplateID",
        "LinkedProgressionModelID",
        "PerformedAtStepNumber",
        "LastModified",
    ),
    EXERCISE_LIBRARY: (
        "ExerciseID",
        "ExerciseName",
        "ExerciseAlias",
        "EquipmentType",
        "UnitOfMeasurement",
        "Category",
    ),
    WORKOUT_TEMPLATES: (
        "TemplateID",
        "TemplateName",
    ),
    TEMPLATE_EXERCISE_LIST: (
        "TemplateID",
        "OrderInWorkout",
        "ExerciseID",
        "ProgressionModelID",
        "ExerciseSpecificMinReps",
        "NotesForExerciseInTemplate",
    ),
    PROGRESSION_MODELS: (
        "ProgressionModelID",
        "ModelName",
        "TriggerConditionLogic",
        "CycleCompletionConditionLogic",
        "DefaultTotalSteps",
        "NewCycleBaseWeightFormula",
    ),
    PROGRESSION_MODEL_STEPS: (
        "ProgressionModelID",
        "StepNumber",
        "TargetSetsFormula",
        "TargetRepsFormula",
        "TargetWeightFormula",
        "StepNotes",
    ),
    USER_EXERCISE_PROGRESSION: (
        "UserExerciseProgressionID",
        "UserID",
        "TemplateID",
        "ExerciseID",
        "ProgressionModelID",
        "CurrentStepNumber",
        "CurrentCycle1RMEstimate",
        "UserMaxReps",
        "LastWorkoutRPE",
        "AMRAPRepsAtStep8",
        "CycleStartDate",
        "DateOfLastAttempt",
    ),
}

ALL_SHEETS: Final[tuple[str, ...]] = tuple(HEADERS)

# Columns a reader cannot do without, per sheet
REQUIRED_HEADERS: Final[dict[str, tuple[str, ...]]] = {
    WORKOUT_TEMPLATES: ("TemplateID", "TemplateName"),
    TEMPLATE_EXERCISE_LIST: ("TemplateID", "ExerciseID", "ProgressionModelID"),
    PROGRESSION_MODELS: ("ProgressionModelID",),
    PROGRESSION_MODEL_STEPS: ("ProgressionModelID", "StepNumber"),
    EXERCISE_LIBRARY: ("ExerciseID",),
    USER_EXERCISE_PROGRESSION: ("UserID", "TemplateID", "ExerciseID", "ProgressionModelID"),
    WORKOUT_LOG: ("ExerciseID",),
}

# get_last_logged refuses to answer without these
LAST_LOGGED_HEADERS: Final[tuple[str, ...]] = (
    "ExerciseID",
    "ExerciseTimestamp",
    "TotalSetsPerformed",
    REPS_PERFORMED,
    "WeightUsed",
    "RPE_Recorded",
)
