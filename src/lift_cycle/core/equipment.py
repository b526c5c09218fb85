"""
Equipment-aware weight rounding.

A formula produces a continuous target load; the gym only has discrete
weights.  round_weight() maps the target to the nearest load that can
actually be set up on the exercise's equipment.

Rounding rules
--------------
  Dumbbell        :  halve (per-hand), nearest single dumbbell, double
  Barbell         :  nearest achievable total (clamped to the empty bar)
  EZBar           :  bar + plates rounded to 5, never below the bar
  WeightedPullup  :  nearest 2.5, floor 0
  Machine         :  nearest 2.5, floor 0 (plate loaded and stack)
  Bodyweight      :  0
  anything else   :  unchanged

Nearest-value lookups keep the first (lowest) candidate on ties.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .config import (
    AVAILABLE_SINGLE_DUMBBELL_WEIGHTS,
    AVAILABLE_TOTAL_BARBELL_WEIGHTS,
    EZ_BAR_PLATE_INCREMENT,
    EZ_BAR_WEIGHT,
    FINE_INCREMENT,
)
from .parsing import round_half_up


@dataclass(frozen=True)
class EquipmentCatalog:
    """Available loads for each equipment family."""

    dumbbell_singles: tuple[float, ...] = AVAILABLE_SINGLE_DUMBBELL_WEIGHTS
    barbell_totals: tuple[float, ...] = AVAILABLE_TOTAL_BARBELL_WEIGHTS
    ez_bar_weight: float = EZ_BAR_WEIGHT
    ez_bar_increment: float = EZ_BAR_PLATE_INCREMENT
    fine_increment: float = FINE_INCREMENT

    def __post_init__(self) -> None:
        if list(self.dumbbell_singles) != sorted(self.dumbbell_singles):
            raise ValueError("dumbbell_singles must be ascending")
        if list(self.barbell_totals) != sorted(self.barbell_totals):
            raise ValueError("barbell_totals must be ascending")
        if self.ez_bar_weight < 0:
            raise ValueError("ez_bar_weight must be non-negative")
        if self.ez_bar_increment <= 0 or self.fine_increment <= 0:
            raise ValueError("increments must be positive")


DEFAULT_CATALOG = EquipmentCatalog()


@dataclass(frozen=True)
class WeightAdjustment:
    adjusted_weight: float
    original_weight: object


# Sheet spellings and compact enum spellings both map to one family name.
_EQUIPMENT_ALIASES: dict[str, str] = {
    "dumbbell": "Dumbbell",
    "barbell": "Barbell",
    "ezbar": "EZBar",
    "weightedpullup": "WeightedPullup",
    "machine-plateloaded": "Machine - Plate Loaded",
    "machineplateloaded": "Machine - Plate Loaded",
    "machine-stack": "Machine - Stack",
    "machinestack": "Machine - Stack",
    "bodyweight": "Bodyweight",
}


def normalize_equipment_type(equipment_type: object) -> str:
    """
    Return the canonical equipment name, or "Other" for unknown values.

    "Machine - Plate Loaded", "Machine-PlateLoaded" and "MachinePlateLoaded"
    all normalise to "Machine - Plate Loaded".
    """
    if equipment_type is None:
        return "Other"
    compact = str(equipment_type).strip().lower().replace(" ", "")
    return _EQUIPMENT_ALIASES.get(compact, "Other")


def _closest(candidates: tuple[float, ...], target: float) -> float:
    """Closest candidate to target; first seen wins ties."""
    best = candidates[0]
    for candidate in candidates[1:]:
        if abs(candidate - target) < abs(best - target):
            best = candidate
    return best


def _round_to_increment(value: float, increment: float) -> float:
    return round_half_up(value / increment) * increment


def round_weight(
    target_weight: object,
    equipment_type: object,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
) -> WeightAdjustment:
    """
    Adjust a target weight to the nearest load available on the equipment.

    Args:
        target_weight: Continuous target load (may be non-numeric or non-finite)
        equipment_type: Equipment family from the exercise library
        catalog: Available weights

    Returns:
        WeightAdjustment with adjusted_weight >= 0 and the untouched input
    """
    if isinstance(target_weight, bool) or not isinstance(target_weight, (int, float)):
        return WeightAdjustment(adjusted_weight=0.0, original_weight=target_weight)
    if math.isnan(target_weight):
        return WeightAdjustment(adjusted_weight=0.0, original_weight=target_weight)

    target = float(target_weight)
    if target <= 0:
        return WeightAdjustment(adjusted_weight=max(0.0, target), original_weight=target_weight)

    adjusted = target
    family = normalize_equipment_type(equipment_type)

    if family == "Dumbbell":
        if catalog.dumbbell_singles:
            adjusted = _closest(catalog.dumbbell_singles, target / 2) * 2
    elif family == "Barbell":
        totals = catalog.barbell_totals
        if totals:
            adjusted = totals[0] if target < totals[0] else _closest(totals, target)
    elif family == "EZBar":
        on_bar = max(0.0, target - catalog.ez_bar_weight)
        adjusted = catalog.ez_bar_weight + _round_to_increment(on_bar, catalog.ez_bar_increment)
        adjusted = max(adjusted, catalog.ez_bar_weight)
    elif family in ("WeightedPullup", "Machine - Plate Loaded", "Machine - Stack"):
        adjusted = max(0.0, _round_to_increment(target, catalog.fine_increment))
    elif family == "Bodyweight":
        adjusted = 0.0

    return WeightAdjustment(adjusted_weight=max(0.0, float(adjusted)), original_weight=target_weight)
