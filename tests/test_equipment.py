"""Tests for equipment-aware weight rounding."""

import math

import pytest

from lift_cycle.core.config import AVAILABLE_SINGLE_DUMBBELL_WEIGHTS, AVAILABLE_TOTAL_BARBELL_WEIGHTS
from lift_cycle.core.equipment import EquipmentCatalog, normalize_equipment_type, round_weight

# -10 .. 400 in quarter steps
SWEEP = [i / 4 for i in range(-40, 1601)]

EQUIPMENT_TYPES = [
    "Dumbbell",
    "Barbell",
    "EZBar",
    "WeightedPullup",
    "Machine - Plate Loaded",
    "Machine - Stack",
    "Bodyweight",
    "Other",
]


class TestNormalizeEquipmentType:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Barbell", "Barbell"),
            (" barbell ", "Barbell"),
            ("Machine - Plate Loaded", "Machine - Plate Loaded"),
            ("Machine-PlateLoaded", "Machine - Plate Loaded"),
            ("MachinePlateLoaded", "Machine - Plate Loaded"),
            ("Machine-Stack", "Machine - Stack"),
            ("EZ Bar", "EZBar"),
            ("Kettlebell", "Other"),
            (None, "Other"),
        ],
    )
    def test_aliases(self, raw, expected):
        assert normalize_equipment_type(raw) == expected


class TestRoundWeight:
    def test_dumbbell_rounds_per_hand(self):
        assert round_weight(50, "Dumbbell").adjusted_weight == 50
        assert round_weight(51, "Dumbbell").adjusted_weight == 50

    def test_dumbbell_capped_at_heaviest_pair(self):
        assert round_weight(200, "Dumbbell").adjusted_weight == 170

    def test_barbell_never_below_empty_bar(self):
        assert round_weight(30, "Barbell").adjusted_weight == 45

    def test_barbell_nearest_total(self):
        assert round_weight(137, "Barbell").adjusted_weight == 135

    def test_barbell_tie_keeps_lower(self):
        assert round_weight(137.5, "Barbell").adjusted_weight == 135

    def test_ez_bar(self):
        assert round_weight(47, "EZBar").adjusted_weight == 45
        assert round_weight(10, "EZBar").adjusted_weight == 20

    def test_weighted_pullup_fine_increment(self):
        assert round_weight(11.2, "WeightedPullup").adjusted_weight == 10
        assert round_weight(11.25, "WeightedPullup").adjusted_weight == 12.5

    def test_machine_stack(self):
        assert round_weight(101, "Machine - Stack").adjusted_weight == 100

    def test_bodyweight_is_zero(self):
        assert round_weight(80, "Bodyweight").adjusted_weight == 0

    def test_other_unchanged(self):
        assert round_weight(123.4, "Other").adjusted_weight == 123.4

    @pytest.mark.parametrize("target", ["abc", None, math.nan, -5, True])
    def test_unusable_targets_give_zero(self, target):
        assert round_weight(target, "Barbell").adjusted_weight == 0

    def test_original_weight_is_kept(self):
        assert round_weight(137, "Barbell").original_weight == 137

    def test_custom_catalog(self):
        catalog = EquipmentCatalog(barbell_totals=(35.0, 40.0, 45.0))
        assert round_weight(20, "Barbell", catalog).adjusted_weight == 35


class TestRoundWeightSweep:
    """Properties that hold for every target, not just the worked examples above."""

    @pytest.mark.parametrize("equipment", EQUIPMENT_TYPES)
    def test_never_negative(self, equipment):
        for target in SWEEP:
            assert round_weight(target, equipment).adjusted_weight >= 0, target

    def test_barbell_always_an_achievable_total(self):
        for target in SWEEP:
            if target > 0:
                assert round_weight(target, "Barbell").adjusted_weight in AVAILABLE_TOTAL_BARBELL_WEIGHTS, target

    def test_dumbbell_always_a_listed_pair(self):
        for target in SWEEP:
            if target > 0:
                adjusted = round_weight(target, "Dumbbell").adjusted_weight
                assert adjusted / 2 in AVAILABLE_SINGLE_DUMBBELL_WEIGHTS, target

    def test_bodyweight_always_zero(self):
        assert all(round_weight(t, "Bodyweight").adjusted_weight == 0 for t in SWEEP)

    @pytest.mark.parametrize("equipment", ["WeightedPullup", "Machine - Stack"])
    def test_fine_increment_multiples(self, equipment):
        for target in SWEEP:
            adjusted = round_weight(target, equipment).adjusted_weight
            assert (adjusted / 2.5).is_integer(), target


class TestEquipmentCatalog:
    def test_rejects_unsorted_weights(self):
        with pytest.raises(ValueError):
            EquipmentCatalog(dumbbell_singles=(10.0, 5.0))

    def test_rejects_zero_increment(self):
        with pytest.raises(ValueError):
            EquipmentCatalog(fine_increment=0)
