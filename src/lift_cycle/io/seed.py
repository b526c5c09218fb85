"""
Sample reference data for `lift-cycle init --sample`.

One full-body template using the three kinds of model the engine knows:
an 8-step RPE model ending in an AMRAP test, a bodyweight max-reps
percentage model, and a short min-reps model.
"""

from __future__ import annotations

import logging
from typing import Any

from . import schema
from .workbook import Workbook

logger = logging.getLogger(__name__)

RPE_8_STEP = "PM_8StepRPE_001"
BW_MAX_REPS = "PM_BW_MaxRepsPct_001"
MIN_REPS_LINEAR = "PM_MinRepsLinear_001"

SAMPLE_TEMPLATE = "TPL_FullBody_A"

_EIGHT_STEP_SCHEME = [
    # (sets, reps, %1RM, notes)
    ("3", "8", "0.65", "Technique focus"),
    ("3", "8", "0.675", ""),
    ("3", "6", "0.7", ""),
    ("3", "6", "0.725", ""),
    ("4", "5", "0.75", ""),
    ("4", "4", "0.775", ""),
    ("3", "3", "0.8", "Heavy triples"),
    ("1", "AMRAP", "0.85", "As many reps as possible, stop at RPE 8"),
]

SAMPLE_ROWS: dict[str, list[dict[str, Any]]] = {
    schema.WORKOUT_TEMPLATES: [
        {"TemplateID": SAMPLE_TEMPLATE, "TemplateName": "Full Body A"},
    ],
    schema.EXERCISE_LIBRARY: [
        {
            "ExerciseID": "EX_BenchPress",
            "ExerciseName": "Barbell Bench Press",
            "ExerciseAlias": "Bench",
            "EquipmentType": "Barbell",
            "UnitOfMeasurement": "lbs",
            "Category": "Push",
        },
        {
            "ExerciseID": "EX_DBRow",
            "ExerciseName": "Dumbbell Row",
            "EquipmentType": "Dumbbell",
            "UnitOfMeasurement": "lbs",
            "Category": "Pull",
        },
        {
            "ExerciseID": "EX_PullUp",
            "ExerciseName": "Pull-Up",
            "EquipmentType": "Bodyweight",
            "UnitOfMeasurement": "lbs",
            "Category": "Bodyweight Pull",
        },
        {
            "ExerciseID": "EX_LegPress",
            "ExerciseName": "Leg Press",
            "EquipmentType": "Machine - Plate Loaded",
            "UnitOfMeasurement": "lbs",
            "Category": "Legs",
        },
    ],
    schema.TEMPLATE_EXERCISE_LIST: [
        {"TemplateID": SAMPLE_TEMPLATE, "OrderInWorkout": "1", "ExerciseID": "EX_BenchPress",
         "ProgressionModelID": RPE_8_STEP},
        {"TemplateID": SAMPLE_TEMPLATE, "OrderInWorkout": "2", "ExerciseID": "EX_PullUp",
         "ProgressionModelID": BW_MAX_REPS},
        {"TemplateID": SAMPLE_TEMPLATE, "OrderInWorkout": "3", "ExerciseID": "EX_DBRow",
         "ProgressionModelID": RPE_8_STEP, "NotesForExerciseInTemplate": "Weight is per pair"},
        {"TemplateID": SAMPLE_TEMPLATE, "OrderInWorkout": "4", "ExerciseID": "EX_LegPress",
         "ProgressionModelID": MIN_REPS_LINEAR, "ExerciseSpecificMinReps": "10"},
    ],
    schema.PROGRESSION_MODELS: [
        {
            "ProgressionModelID": RPE_8_STEP,
            "ModelName": "8-Step RPE Wave",
            "TriggerConditionLogic": "loggedRPE <= 8",
            "CycleCompletionConditionLogic": "Step 8 AMRAP completed at RPE <= 8",
            "DefaultTotalSteps": "8",
            "NewCycleBaseWeightFormula": "((CurrentCycle1RMEstimate * 1) * (1 + AMRAPRepsAtStep8 / 30))",
        },
        {
            "ProgressionModelID": BW_MAX_REPS,
            "ModelName": "Bodyweight Max Reps %",
            "TriggerConditionLogic": "loggedRPE <= 8",
            "CycleCompletionConditionLogic": "Final step completed at RPE <= 8",
            "DefaultTotalSteps": "3",
            "NewCycleBaseWeightFormula": "round(UserMaxReps * 1.1)",
        },
        {
            "ProgressionModelID": MIN_REPS_LINEAR,
            "ModelName": "Min Reps Linear",
            "TriggerConditionLogic": "loggedRPE < 9",
            "CycleCompletionConditionLogic": "Final step AMRAP",
            "DefaultTotalSteps": "3",
            "NewCycleBaseWeightFormula": "CurrentCycle1RMEstimate * 1.025",
        },
    ],
    schema.PROGRESSION_MODEL_STEPS: [
        *[
            {
                "ProgressionModelID": RPE_8_STEP,
                "StepNumber": str(number),
                "TargetSetsFormula": sets,
                "TargetRepsFormula": reps,
                "TargetWeightFormula": f"(CurrentCycle1RMEstimate * {pct})",
                "StepNotes": notes,
            }
            for number, (sets, reps, pct, notes) in enumerate(_EIGHT_STEP_SCHEME, start=1)
        ],
        {"ProgressionModelID": BW_MAX_REPS, "StepNumber": "1", "TargetSetsFormula": "3",
         "TargetRepsFormula": "max(1, round(UserMaxReps * 0.5))", "TargetWeightFormula": "0"},
        {"ProgressionModelID": BW_MAX_REPS, "StepNumber": "2", "TargetSetsFormula": "4",
         "TargetRepsFormula": "max(1, round(UserMaxReps * 0.6))", "TargetWeightFormula": "0"},
        {"ProgressionModelID": BW_MAX_REPS, "StepNumber": "3", "TargetSetsFormula": "1",
         "TargetRepsFormula": "AMRAP", "TargetWeightFormula": "0", "StepNotes": "Max reps test"},
        {"ProgressionModelID": MIN_REPS_LINEAR, "StepNumber": "1", "TargetSetsFormula": "3",
         "TargetRepsFormula": "minReps", "TargetWeightFormula": "CurrentCycle1RMEstimate * 0.6"},
        {"ProgressionModelID": MIN_REPS_LINEAR, "StepNumber": "2", "TargetSetsFormula": "3",
         "TargetRepsFormula": "minReps + 2", "TargetWeightFormula": "CurrentCycle1RMEstimate * 0.6"},
        {"ProgressionModelID": MIN_REPS_LINEAR, "StepNumber": "3", "TargetSetsFormula": "1",
         "TargetRepsFormula": "AMRAP", "TargetWeightFormula": "CurrentCycle1RMEstimate * 0.65"},
    ],
}


def seed_workbook(workbook: Workbook) -> list[str]:
    """
    Fill empty reference sheets with the sample rows.

    Sheets that already hold data are left alone.

    Returns:
        Names of the sheets that were seeded
    """
    workbook.init()
    seeded = []
    for sheet, rows in SAMPLE_ROWS.items():
        if len(workbook.read(sheet, use_cache=False)) > 0:
            logger.info("Sheet %s already has data; not seeding", sheet)
            continue
        for row in rows:
            workbook.append_row(sheet, row)
        seeded.append(sheet)
    return seeded
