"""
Smoke tests for the lift-cycle CLI.

Tests basic functionality:
- App runs without errors
- Workbook initialises (with sample data)
- Plans print, as tables and as JSON
- Exercises can be logged from options or interactively
- Simulation and cache commands run
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lift_cycle.cli.main import app
from lift_cycle.io.workbook import CACHE_FILENAME

runner = CliRunner()


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated config/log home so tests never touch ~/.lift-cycle."""
    path = tmp_path / "home"
    monkeypatch.setenv("LIFT_CYCLE_HOME", str(path))
    monkeypatch.delenv("LIFT_CYCLE_WORKBOOK", raising=False)
    monkeypatch.delenv("LIFT_CYCLE_USER", raising=False)
    return path


@pytest.fixture
def wb(tmp_path, home):
    """Initialised workbook with sample data; returns its path as a string."""
    path = tmp_path / "workbook"
    result = runner.invoke(app, ["init", "--workbook", str(path), "--sample"])
    assert result.exit_code == 0, result.output
    return str(path)


def log_args(wb, *extra):
    return [
        "log", "--workbook", wb,
        "-t", "TPL_FullBody_A", "-e", "EX_BenchPress",
        "--sets", "3", "--reps", "8", "--weight", "130", "--rpe", "7",
        *extra,
    ]


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self, home):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "lift-cycle" in result.output or "Periodized" in result.output

    def test_init_creates_sheets(self, tmp_path, home):
        path = tmp_path / "workbook"
        result = runner.invoke(app, ["init", "--workbook", str(path)])
        assert result.exit_code == 0
        assert (path / "WorkoutLog.csv").exists()
        assert (path / "UserExerciseProgression.csv").exists()

    def test_init_is_repeatable(self, wb):
        result = runner.invoke(app, ["init", "--workbook", wb, "--sample"])
        assert result.exit_code == 0
        assert "sample not added" in result.output

    def test_templates_json(self, wb):
        result = runner.invoke(app, ["templates", "--workbook", wb, "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == [{"template_id": "TPL_FullBody_A", "template_name": "Full Body A"}]

    def test_templates_table(self, wb):
        result = runner.invoke(app, ["templates", "--workbook", wb])
        assert result.exit_code == 0
        assert "TPL_FullBody_A" in result.output

    def test_templates_without_workbook(self, tmp_path, home):
        result = runner.invoke(app, ["templates", "--workbook", str(tmp_path / "nowhere")])
        assert result.exit_code == 1
        assert "init" in result.output

    def test_plan_table(self, wb):
        result = runner.invoke(app, ["plan", "TPL_FullBody_A", "--workbook", wb])
        assert result.exit_code == 0

    def test_plan_json(self, wb):
        result = runner.invoke(app, ["plan", "TPL_FullBody_A", "--workbook", wb, "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [e["exercise_id"] for e in data] == ["EX_BenchPress", "EX_PullUp", "EX_DBRow", "EX_LegPress"]
        assert data[0]["current_step_number"] == 1

    def test_log_advances_plan(self, wb):
        result = runner.invoke(app, log_args(wb))
        assert result.exit_code == 0, result.output
        assert "logged successfully" in result.output
        assert "step 2" in result.output

        plan = json.loads(runner.invoke(app, ["plan", "TPL_FullBody_A", "--workbook", wb, "--json"]).output)
        assert plan[0]["current_step_number"] == 2
        assert plan[0]["is_logged_today"] is True

    def test_log_json(self, wb):
        result = runner.invoke(app, log_args(wb, "--json"))
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["logged"]["outcome"] == "advanced"
        assert data["logged"]["next_step"] == 2

    def test_log_interactive(self, wb):
        # template, exercise, then accept the plan's sets/reps/weight, then RPE
        result = runner.invoke(app, ["log", "--workbook", wb], input="TPL_FullBody_A\nEX_BenchPress\n\n\n\n7\n")
        assert result.exit_code == 0, result.output
        assert "Bench logged successfully!" in result.output

    def test_log_invalid_rpe(self, wb):
        result = runner.invoke(app, log_args(wb)[:-2] + ["--rpe", "11"])
        assert result.exit_code == 1
        assert "Invalid 'RPE'" in result.output

    def test_last(self, wb):
        runner.invoke(app, log_args(wb, "--notes", "smooth"))
        result = runner.invoke(app, ["last", "EX_BenchPress", "--workbook", wb, "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["reps_performed"] == "8"
        assert data["workout_notes"] == "smooth"

    def test_last_nothing_logged(self, wb):
        result = runner.invoke(app, ["last", "EX_PullUp", "--workbook", wb])
        assert result.exit_code == 0
        assert "No log entries" in result.output

    def test_simulate_json(self, wb):
        result = runner.invoke(
            app, ["simulate", "TPL_FullBody_A", "EX_BenchPress", "--baseline", "200", "--workbook", wb, "--json"]
        )
        assert result.exit_code == 0
        steps = json.loads(result.output)
        assert len(steps) == 8
        assert steps[-1]["projected_next_baseline"] == pytest.approx(233.33)

    def test_simulate_table(self, wb):
        result = runner.invoke(app, ["simulate", "TPL_FullBody_A", "EX_PullUp", "-b", "12", "--workbook", wb])
        assert result.exit_code == 0

    def test_simulate_rejects_negative_baseline(self, wb):
        result = runner.invoke(app, ["simulate", "TPL_FullBody_A", "EX_BenchPress", "--baseline=-5", "--workbook", wb])
        assert result.exit_code == 1

    def test_simulate_unknown_exercise(self, wb):
        result = runner.invoke(app, ["simulate", "TPL_FullBody_A", "EX_Nope", "-b", "100", "--workbook", wb])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_clear_cache(self, wb):
        runner.invoke(app, ["plan", "TPL_FullBody_A", "--workbook", wb])
        result = runner.invoke(app, ["clear-cache", "--workbook", wb])
        assert result.exit_code == 0
        assert not (Path(wb) / CACHE_FILENAME).exists()

    def test_log_file_written(self, wb, home):
        runner.invoke(app, log_args(wb))
        assert (home / "logs" / "lift_cycle.log").exists()
