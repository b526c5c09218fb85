"""
Configuration constants for the progression engine.

All adjustable parameters are centralized here for easy tuning.
Values can be overridden per installation via ~/.lift-cycle/config.yaml
(see core/engine/config_loader.py).
"""

from typing import Final

# =============================================================================
# EQUIPMENT (weight rounding)
# =============================================================================

AVAILABLE_SINGLE_DUMBBELL_WEIGHTS: Final[tuple[float, ...]] = (
    1, 2.5, 5, 7.5, 10, 12.5, 15, 17.5, 20, 22.5, 25, 27.5, 30, 32.5, 35, 37.5,
    40, 42.5, 45, 47.5, 50, 52.5, 55, 57.5, 60, 62.5, 65, 67.5, 70, 72.5, 75,
    77.5, 80, 82.5, 85,
)

OLYMPIC_BARBELL_WEIGHT: Final[float] = 45.0
AVAILABLE_TOTAL_BARBELL_WEIGHTS: Final[tuple[float, ...]] = tuple(
    float(w) for w in range(int(OLYMPIC_BARBELL_WEIGHT), 320, 5)
)
EZ_BAR_WEIGHT: Final[float] = 20.0
EZ_BAR_PLATE_INCREMENT: Final[float] = 5.0  # smallest pair of plates on the EZ bar
FINE_INCREMENT: Final[float] = 2.5  # machines and weighted pull-up belts

DEFAULT_WEIGHT_UNIT: Final[str] = "lbs"

# =============================================================================
# FORMULAS
# =============================================================================

AMRAP: Final[str] = "AMRAP"
AMRAP_PENDING_TEXT: Final[str] = "Calculated based on AMRAP performance"

# =============================================================================
# ESTIMATION
# =============================================================================

EPLEY_DIVISOR: Final[float] = 30.0  # 1RM = w * (1 + reps / 30)
DEFAULT_MAX_REPS: Final[int] = 10  # bodyweight baseline when nothing is logged

# =============================================================================
# PROGRESSION
# =============================================================================

# Recognised trigger conditions (compared lower-cased and stripped).
# Anything else never triggers an advance.
TRIGGER_RPE_AT_MOST_8: Final[str] = "loggedrpe <= 8"
TRIGGER_RPE_BELOW_9: Final[str] = "loggedrpe < 9"

CYCLE_COMPLETION_MAX_RPE: Final[int] = 8
MAX_REPS_PROJECTION_FACTOR: Final[float] = 1.1  # simulate: next-cycle max reps

RPE_MIN: Final[int] = 0
RPE_MAX: Final[int] = 10

# =============================================================================
# PLAN PLACEHOLDERS
# =============================================================================

PLACEHOLDER_VALUE: Final[str] = "-"
PLACEHOLDER_RAW_WEIGHT: Final[str] = "0.00"
NOTES_MISSING_ASSIGNMENT: Final[str] = "Missing ExerciseID or Progression Model assignment."
NOTES_MISSING_STEP: Final[str] = (
    "Progression step details undefined for this model and user's current step."
)

# =============================================================================
# STORE / CACHE
# =============================================================================

CACHE_EXPIRATION_SECONDS: Final[int] = 300
DEFAULT_USER_ID: Final[str] = "default"
