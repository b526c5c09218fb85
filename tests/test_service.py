"""
End-to-end tests of WorkoutService over a seeded CSV workbook.

The sample template (io/seed.py) provides:
    EX_BenchPress  PM_8StepRPE_001      8 steps, step 8 is 1 x AMRAP @ 85%
    EX_PullUp      PM_BW_MaxRepsPct_001 3 steps, max-reps percentages
    EX_DBRow       PM_8StepRPE_001
    EX_LegPress    PM_MinRepsLinear_001 min reps 10
"""

import itertools
from datetime import timedelta

import pytest

from lift_cycle.core.config import AMRAP_PENDING_TEXT
from lift_cycle.io import schema
from lift_cycle.io.seed import BW_MAX_REPS, RPE_8_STEP, SAMPLE_TEMPLATE
from lift_cycle.io.serializers import ValidationError, index_progressions, table_to_log
from lift_cycle.io.tables import ConfigurationError
from lift_cycle.io.workbook import Workbook
from lift_cycle.service import WorkoutService


def form(**overrides):
    data = {
        "templateId": SAMPLE_TEMPLATE,
        "exerciseId": "EX_BenchPress",
        "progressionModelId": RPE_8_STEP,
        "performedStepNumber": 1,
        "setsPerformed": 3,
        "repsPerformed": "8",
        "weightUsed": 130,
        "rpe": 7,
    }
    data.update(overrides)
    return data


def seed_progression(workbook, exercise_id="EX_BenchPress", model_id=RPE_8_STEP, template_id=SAMPLE_TEMPLATE, **cells):
    row = {
        "UserExerciseProgressionID": f"UEP_{exercise_id}",
        "UserID": "alex",
        "TemplateID": template_id,
        "ExerciseID": exercise_id,
        "ProgressionModelID": model_id,
    }
    row.update(cells)
    workbook.append_row(schema.USER_EXERCISE_PROGRESSION, row)


def stored_state(workbook, exercise_id="EX_BenchPress", model_id=RPE_8_STEP, user="alex"):
    index = index_progressions(workbook.read(schema.USER_EXERCISE_PROGRESSION, use_cache=False))
    return index.get((user, SAMPLE_TEMPLATE, exercise_id, model_id))


class TestListTemplates:
    def test_sample_template(self, service):
        templates = service.list_templates()
        assert [(t.template_id, t.template_name) for t in templates] == [(SAMPLE_TEMPLATE, "Full Body A")]

    def test_missing_headers(self, tmp_path):
        root = tmp_path / "wb"
        root.mkdir()
        (root / f"{schema.WORKOUT_TEMPLATES}.csv").write_text("ID,Name\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="TemplateID or TemplateName"):
            WorkoutService(Workbook(root)).list_templates()


class TestGetPlan:
    def test_fresh_user(self, service):
        plan = service.get_plan(SAMPLE_TEMPLATE)
        assert [e.exercise_id for e in plan] == ["EX_BenchPress", "EX_PullUp", "EX_DBRow", "EX_LegPress"]
        bench = plan[0]
        assert bench.current_step_number == 1
        assert bench.exercise_alias == "Bench"
        assert bench.step_notes == "Technique focus"
        pullup = plan[1]
        assert pullup.is_bodyweight_max_reps_model
        assert pullup.calculated_reps == 5
        assert plan[3].calculated_reps == 10

    def test_stored_progression(self, service, sample_workbook):
        seed_progression(sample_workbook, CurrentStepNumber=8, CurrentCycle1RMEstimate=200)
        bench = service.get_plan(SAMPLE_TEMPLATE)[0]
        assert bench.current_step_number == 8
        assert bench.calculated_reps == "AMRAP"
        assert bench.calculated_weight == "170.00"

    def test_progression_of_other_user_ignored(self, service, sample_workbook):
        seed_progression(sample_workbook, CurrentStepNumber=8, CurrentCycle1RMEstimate=200)
        assert service.get_plan(SAMPLE_TEMPLATE, user_id="sam")[0].current_step_number == 1

    def test_unknown_template(self, service):
        assert service.get_plan("TPL_Nope") == []

    def test_missing_sheet(self, service, sample_workbook):
        sample_workbook.sheet_path(schema.WORKOUT_LOG).unlink()
        with pytest.raises(ConfigurationError, match="WorkoutLog"):
            service.get_plan(SAMPLE_TEMPLATE)


class TestSubmitLog:
    def test_writes_log_row(self, service, sample_workbook, now):
        result = service.submit_log(form(exerciseName="Bench", notes="felt good"))
        assert result.message == "Bench logged successfully!"
        assert result.logged_data["sets"] == 3
        assert result.logged_data["weight_unit"] == "lbs"

        log = table_to_log(sample_workbook.read(schema.WORKOUT_LOG))
        assert len(log) == 1
        entry = log[0]
        assert entry.exercise_id == "EX_BenchPress"
        assert entry.timestamp == now
        assert entry.reps == 8
        assert entry.weight_used == 130
        assert entry.notes == "felt good"
        assert entry.performed_step == 1
        assert entry.log_id.startswith("WLOG_")
        assert entry.estimated_1rm == pytest.approx(164.67)

    def test_first_log_creates_progression(self, service, sample_workbook):
        result = service.submit_log(form())
        assert result.logged_data["outcome"] == "advanced"
        state = stored_state(sample_workbook)
        assert state.current_step_number == 2
        assert state.current_cycle_1rm_estimate == pytest.approx(164.67)
        assert state.last_workout_rpe == 7

    def test_retry_keeps_step(self, service, sample_workbook):
        seed_progression(sample_workbook, CurrentStepNumber=3, CurrentCycle1RMEstimate=200)
        result = service.submit_log(form(performedStepNumber=3, rpe=9))
        assert result.logged_data["outcome"] == "retry"
        assert stored_state(sample_workbook).current_step_number == 3

    def test_amrap_completes_cycle(self, service, sample_workbook, now):
        seed_progression(sample_workbook, CurrentStepNumber=8, CurrentCycle1RMEstimate=200)
        result = service.submit_log(
            form(performedStepNumber=8, setsPerformed=1, repsPerformed="AMRAP", actualAmrapReps=6, weightUsed=185)
        )
        assert result.logged_data["outcome"] == "cycle_complete"
        assert result.logged_data["next_step"] == 1

        state = stored_state(sample_workbook)
        assert state.current_step_number == 1
        assert state.current_cycle_1rm_estimate == 240
        assert state.amrap_reps_at_step8 == 6
        assert state.cycle_start_date == now

        log = table_to_log(sample_workbook.read(schema.WORKOUT_LOG))
        assert log[0].reps_performed == "AMRAP"
        assert log[0].estimated_1rm == 222.0

        # only one progression row for the key
        assert len(sample_workbook.read(schema.USER_EXERCISE_PROGRESSION)) == 1

    def test_new_cycle_plan_is_heavier(self, service, sample_workbook):
        seed_progression(sample_workbook, CurrentStepNumber=8, CurrentCycle1RMEstimate=200)
        service.submit_log(
            form(performedStepNumber=8, setsPerformed=1, repsPerformed="AMRAP", actualAmrapReps=6, weightUsed=185)
        )
        bench = service.get_plan(SAMPLE_TEMPLATE)[0]
        assert bench.current_step_number == 1
        assert bench.base_weight == 240
        assert bench.is_logged_today

    def test_max_reps_cycle(self, service, sample_workbook):
        seed_progression(sample_workbook, "EX_PullUp", BW_MAX_REPS, CurrentStepNumber=3, UserMaxReps=10)
        service.submit_log(
            form(
                exerciseId="EX_PullUp", progressionModelId=BW_MAX_REPS, performedStepNumber=3,
                setsPerformed=1, repsPerformed="AMRAP", actualAmrapReps=13, weightUsed=0, rpe=8,
            )
        )
        state = stored_state(sample_workbook, "EX_PullUp", BW_MAX_REPS)
        assert state.current_step_number == 1
        assert state.user_max_reps == 11
        assert state.current_cycle_1rm_estimate is None

    def test_explicit_user(self, service, sample_workbook):
        service.submit_log(form(), user_id="sam")
        assert stored_state(sample_workbook, user="sam") is not None
        assert stored_state(sample_workbook, user="alex") is None

    def test_unknown_model_still_logs(self, service, sample_workbook):
        result = service.submit_log(form(progressionModelId="PM_Missing"))
        assert "outcome" not in result.logged_data
        assert len(sample_workbook.read(schema.WORKOUT_LOG)) == 1
        assert len(sample_workbook.read(schema.USER_EXERCISE_PROGRESSION)) == 0

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"templateId": ""}, "Missing required form data field: templateId."),
            ({"rpe": None}, "Missing required form data field: rpe."),
            ({"repsPerformed": "AMRAP"}, "Missing required form data field: actualAmrapReps."),
            ({"repsPerformed": "AMRAP", "actualAmrapReps": "lots"}, "Invalid 'Actual AMRAP Reps'."),
            ({"repsPerformed": "-1"}, "Invalid 'Reps Performed'."),
            ({"setsPerformed": 0}, "Invalid 'Sets Performed'."),
            ({"weightUsed": "heavy"}, "Invalid 'Weight Used'."),
            ({"rpe": 11}, "Invalid 'RPE'."),
            ({"performedStepNumber": 0}, "Invalid 'Performed Step Number'."),
        ],
    )
    def test_validation(self, service, sample_workbook, overrides, message):
        with pytest.raises(ValidationError) as excinfo:
            service.submit_log(form(**overrides))
        assert str(excinfo.value) == message
        assert len(sample_workbook.read(schema.WORKOUT_LOG)) == 0


class TestGetLastLogged:
    def test_none_logged(self, service):
        assert service.get_last_logged("EX_BenchPress") is None

    def test_most_recent(self, sample_workbook, now):
        ticks = itertools.count()
        svc = WorkoutService(sample_workbook, user_id="alex", clock=lambda: now + timedelta(minutes=next(ticks)))
        svc.submit_log(form(weightUsed=120))
        svc.submit_log(form(weightUsed=125, notes="second"))
        last = svc.get_last_logged("EX_BenchPress")
        assert last.weight_used == 125
        assert last.workout_notes == "second"
        assert last.rpe_recorded == 7
        assert last.reps_performed == "8"

    def test_filtered_by_template(self, service):
        service.submit_log(form())
        assert service.get_last_logged("EX_BenchPress", template_id="TPL_Other") is None
        assert service.get_last_logged("EX_BenchPress", template_id=SAMPLE_TEMPLATE) is not None

    def test_incomplete_log_sheet(self, tmp_path):
        root = tmp_path / "wb"
        root.mkdir()
        (root / f"{schema.WORKOUT_LOG}.csv").write_text("ExerciseID,ExerciseTimestamp\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Missing: TotalSetsPerformed"):
            WorkoutService(Workbook(root)).get_last_logged("EX_BenchPress")


class TestSimulateCycle:
    def test_eight_step_model(self, service):
        steps = service.simulate_cycle(SAMPLE_TEMPLATE, "EX_BenchPress", 200)
        assert len(steps) == 8
        assert steps[0].weight == "130.00"
        assert steps[7].reps == "AMRAP"
        assert steps[7].weight == "170.00"
        assert steps[7].projected_next_baseline == pytest.approx(233.33)

    def test_does_not_write(self, service, sample_workbook):
        service.simulate_cycle(SAMPLE_TEMPLATE, "EX_BenchPress", 200)
        assert len(sample_workbook.read(schema.USER_EXERCISE_PROGRESSION, use_cache=False)) == 0

    def test_exercise_not_in_template(self, service):
        with pytest.raises(ConfigurationError, match="Exercise EX_Squat not found in Template"):
            service.simulate_cycle(SAMPLE_TEMPLATE, "EX_Squat", 200)

    def test_model_without_steps(self, service, sample_workbook):
        sample_workbook.append_row(
            schema.TEMPLATE_EXERCISE_LIST,
            {"TemplateID": "TPL_B", "ExerciseID": "EX_BenchPress", "ProgressionModelID": "PM_Empty"},
        )
        with pytest.raises(ConfigurationError, match="No steps found for ProgressionModelID: PM_Empty"):
            service.simulate_cycle("TPL_B", "EX_BenchPress", 200)


class TestPendingWeight:
    def test_amrap_formula_without_result_shows_pending(self, service, sample_workbook):
        sample_workbook.append_row(
            schema.PROGRESSION_MODEL_STEPS,
            {
                "ProgressionModelID": "PM_Pending",
                "StepNumber": "1",
                "TargetSetsFormula": "1",
                "TargetRepsFormula": "5",
                "TargetWeightFormula": "((CurrentCycle1RMEstimate * 1) * (1 + AMRAPRepsAtStep8 / 30))",
            },
        )
        sample_workbook.append_row(
            schema.TEMPLATE_EXERCISE_LIST,
            {"TemplateID": "TPL_P", "ExerciseID": "EX_BenchPress", "ProgressionModelID": "PM_Pending"},
        )
        seed_progression(sample_workbook, model_id="PM_Pending", template_id="TPL_P", CurrentCycle1RMEstimate=200)
        bench = service.get_plan("TPL_P")[0]
        assert bench.calculated_weight == AMRAP_PENDING_TEXT
        assert bench.raw_calculated_weight == AMRAP_PENDING_TEXT
