"""
Tests for the prescription formula language.

Covers the expression tree evaluator, each recognised formula shape, and
the soft-failure order of resolve_formula.  The formula strings are the
ones found in real progression-model sheets.
"""

import logging
import math

import pytest

from lift_cycle.core.config import AMRAP_PENDING_TEXT
from lift_cycle.core.formulas import (
    BinaryOp,
    Call,
    EvaluationError,
    FormulaContext,
    Number,
    Variable,
    evaluate,
    recognise,
    render,
    resolve_formula,
    variables,
)
from lift_cycle.core.formulas.patterns import (
    AMRAP_ADJUSTED_1RM,
    BARE_MIN_REPS,
    BASE_WEIGHT_PLUS,
    MAX_OF_SCALED_MAX_REPS,
    MIN_REPS_PLUS,
    SCALED_1RM,
    SCALED_1RM_PARENTHESIZED,
    SCALED_MAX_REPS,
)


def ctx(**kwargs) -> FormulaContext:
    return FormulaContext(**kwargs)


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------


class TestEvaluate:
    def test_arithmetic(self):
        tree = BinaryOp("+", Number(2), BinaryOp("*", Number(3), Number(4)))
        assert evaluate(tree, {}) == 14

    def test_variable_lookup(self):
        assert evaluate(Variable("UserMaxReps"), {"UserMaxReps": 12.0}) == 12.0

    def test_unbound_variable_raises(self):
        with pytest.raises(EvaluationError):
            evaluate(Variable("UserMaxReps"), {})

    def test_division_by_zero_raises(self):
        with pytest.raises(EvaluationError):
            evaluate(BinaryOp("/", Number(1), Number(0)), {})

    def test_round_is_half_up(self):
        assert evaluate(Call("round", (Number(10.5),)), {}) == 11
        assert evaluate(Call("round", (Number(-2.5),)), {}) == -2

    def test_max(self):
        assert evaluate(Call("max", (Number(1), Number(0.4))), {}) == 1

    def test_unknown_function_raises(self):
        with pytest.raises(EvaluationError):
            evaluate(Call("floor", (Number(1.5),)), {})

    def test_variables_and_render(self):
        tree = Call("max", (Number(1), Call("round", (BinaryOp("*", Variable("UserMaxReps"), Number(0.5)),))))
        assert variables(tree) == {"UserMaxReps"}
        assert render(tree) == "max(1, round((UserMaxReps * 0.5)))"


# ---------------------------------------------------------------------------
# Pattern recognition
# ---------------------------------------------------------------------------


class TestRecognise:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("max(1, round(UserMaxReps * 0.5))", MAX_OF_SCALED_MAX_REPS),
            ("round(UserMaxReps * 0.6)", SCALED_MAX_REPS),
            ("((CurrentCycle1RMEstimate * 1) * (1 + AMRAPRepsAtStep8 / 30))", AMRAP_ADJUSTED_1RM),
            ("(CurrentCycle1RMEstimate * 0.85)", SCALED_1RM_PARENTHESIZED),
            ("CurrentCycle1RMEstimate * 0.8", SCALED_1RM),
            ("currentCycleBaseWeight + 5 lbs", BASE_WEIGHT_PLUS),
            ("minReps + 2", MIN_REPS_PLUS),
            ("minReps", BARE_MIN_REPS),
        ],
    )
    def test_first_matching_shape(self, text, expected):
        pattern, _ = next(recognise(text))
        assert pattern is expected

    def test_unknown_shape(self):
        assert list(recognise("Bodyweight only")) == []

    def test_scaled_1rm_is_anchored(self):
        assert list(recognise("about CurrentCycle1RMEstimate * 0.8")) == []

    def test_patterns_are_case_insensitive(self):
        pattern, _ = next(recognise("ROUND(usermaxreps * 0.5)"))
        assert pattern is SCALED_MAX_REPS

    def test_later_shapes_are_yielded_too(self):
        # the inner round(...) also matches the unclamped shape
        found = [p for p, _ in recognise("max(1, round(UserMaxReps * 0.5))")]
        assert found == [MAX_OF_SCALED_MAX_REPS, SCALED_MAX_REPS]


# ---------------------------------------------------------------------------
# resolve_formula
# ---------------------------------------------------------------------------


class TestResolveBasics:
    def test_none_is_empty_string(self):
        assert resolve_formula(None) == ""

    @pytest.mark.parametrize("text", ["AMRAP", "amrap", "  Amrap "])
    def test_amrap(self, text):
        assert resolve_formula(text) == "AMRAP"

    def test_integer_literal(self):
        assert resolve_formula("135") == 135
        assert isinstance(resolve_formula("135"), int)

    def test_decimal_literal(self):
        assert resolve_formula(" 7.5 ") == 7.5

    def test_numeric_cell_value(self):
        assert resolve_formula(3) == 3

    def test_unknown_text_is_returned_unchanged(self):
        assert resolve_formula("Bodyweight only", ctx(current_cycle_1rm_estimate=200)) == "Bodyweight only"

    def test_unknown_text_is_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="lift_cycle"):
            resolve_formula("Bodyweight only")
        assert "No formula pattern matched" in caplog.text


class TestResolveOneRepMax:
    def test_scaled(self):
        assert resolve_formula("CurrentCycle1RMEstimate * 0.8", ctx(current_cycle_1rm_estimate=200)) == 160

    def test_scaled_parenthesized(self):
        assert resolve_formula("(CurrentCycle1RMEstimate * 0.85)", ctx(current_cycle_1rm_estimate=200)) == 170

    def test_leading_number_factor(self):
        # "0.8.5" reads as 0.8
        assert resolve_formula("CurrentCycle1RMEstimate * 0.8.5", ctx(current_cycle_1rm_estimate=100)) == 80

    def test_missing_1rm_gives_zero(self):
        assert resolve_formula("CurrentCycle1RMEstimate * 0.8", ctx()) == 0

    def test_nan_1rm_counts_as_missing(self):
        assert resolve_formula("CurrentCycle1RMEstimate * 0.8", ctx(current_cycle_1rm_estimate=math.nan)) == 0

    def test_zero_1rm_is_known(self):
        assert resolve_formula("CurrentCycle1RMEstimate * 0.8", ctx(current_cycle_1rm_estimate=0)) == 0

    def test_base_weight_plus(self):
        assert resolve_formula("currentCycleBaseWeight + 5", ctx(current_cycle_1rm_estimate=100)) == 105

    def test_base_weight_plus_with_unit(self):
        assert resolve_formula("currentCycleBaseWeight + 2.5 kg", ctx(current_cycle_1rm_estimate=60)) == 62.5


class TestResolveAmrapAdjusted:
    FORMULA = "((CurrentCycle1RMEstimate * 1) * (1 + AMRAPRepsAtStep8 / 30))"

    def test_with_amrap_reps(self):
        value = resolve_formula(self.FORMULA, ctx(current_cycle_1rm_estimate=200, amrap_reps_at_step8=6))
        assert value == pytest.approx(240)

    def test_minus_variant(self):
        value = resolve_formula(
            "((CurrentCycle1RMEstimate * 1) * (1 - AMRAPRepsAtStep8 / 10))",
            ctx(current_cycle_1rm_estimate=100, amrap_reps_at_step8=2),
        )
        assert value == pytest.approx(80)

    def test_pending_without_amrap_reps(self):
        assert resolve_formula(self.FORMULA, ctx(current_cycle_1rm_estimate=200)) == AMRAP_PENDING_TEXT

    def test_scaled_1rm_when_name_spelled_differently(self):
        formula = "((CurrentCycle1RMEstimate * 0.9) * (1 + amrapRepsAtStep8 / 30))"
        assert resolve_formula(formula, ctx(current_cycle_1rm_estimate=200)) == 180

    def test_zero_divisor_falls_through_to_text(self):
        formula = "((CurrentCycle1RMEstimate * 1) * (1 + AMRAPRepsAtStep8 / 0))"
        value = resolve_formula(formula, ctx(current_cycle_1rm_estimate=200, amrap_reps_at_step8=5))
        assert value == formula

    def test_missing_1rm_wins_over_pending(self):
        assert resolve_formula(self.FORMULA, ctx(amrap_reps_at_step8=5)) == 0


class TestResolveMaxReps:
    def test_round_scaled(self):
        assert resolve_formula("round(UserMaxReps * 0.5)", ctx(user_max_reps=21)) == 11

    def test_max_floor(self):
        assert resolve_formula("max(1, round(UserMaxReps * 0.5))", ctx(user_max_reps=1)) == 1

    def test_max_scaled(self):
        assert resolve_formula("max(1, round(UserMaxReps * 0.6))", ctx(user_max_reps=20)) == 12

    def test_fractional_max_reps_truncated(self):
        assert resolve_formula("round(UserMaxReps * 0.5)", ctx(user_max_reps="21.9")) == 11

    def test_missing_max_reps_in_max_formula(self):
        assert resolve_formula("max(1, round(UserMaxReps * 0.5))", ctx()) == 1

    def test_missing_max_reps_otherwise_returns_text(self):
        assert resolve_formula("round(UserMaxReps * 0.5)", ctx()) == "round(UserMaxReps * 0.5)"

    def test_resolved_tree_is_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="lift_cycle")
        resolve_formula("max(1, round(UserMaxReps * 0.5))", ctx(user_max_reps=21))
        assert "max(1, round((UserMaxReps * 0.5))) = 11" in caplog.text


class TestResolveMinReps:
    def test_min_reps_plus(self):
        assert resolve_formula("minReps + 2", ctx(exercise_specific_min_reps=5)) == 7

    def test_bare_min_reps(self):
        assert resolve_formula("minReps", ctx(exercise_specific_min_reps=8)) == 8

    def test_unbound_min_reps_skips_pattern(self, caplog):
        caplog.set_level(logging.DEBUG, logger="lift_cycle")
        assert resolve_formula("minReps + 2", ctx()) == "minReps + 2"
        assert "unbound ['ExerciseSpecificMinReps']" in caplog.text

    def test_missing_min_reps_returns_text(self):
        assert resolve_formula("minReps + 2", ctx()) == "minReps + 2"
