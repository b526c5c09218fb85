"""Log command: record a performed exercise and advance its cycle."""

import json
from collections.abc import Callable
from typing import Annotated, Any, Optional

import typer
from rich.markup import escape

from ...core.models import PlanEntry
from ...io.serializers import ValidationError
from ...io.tables import ConfigurationError
from .. import views
from ..app import JsonOption, WorkbookOption, app, get_service


def _ask(label: str, default: Any = None, convert: Callable[[str], Any] = str) -> Any:
    """Prompt until a usable value is given; Enter accepts the default when there is one."""
    hint = f" [{default}]" if default not in (None, "", "-") else ""
    while True:
        raw = views.console.input(escape(f"{label}{hint}: ")).strip() or (str(default) if hint else "")
        if not raw:
            views.print_error(f"{label} is required")
            continue
        try:
            return convert(raw)
        except ValueError:
            views.print_error(f"Invalid {label.lower()}: {raw}")


def _plan_entry(service, template_id: str, exercise_id: str, user: str | None) -> PlanEntry | None:
    """The exercise's current prescription, used for prompt defaults."""
    try:
        entries = service.get_plan(template_id, user_id=user)
    except ConfigurationError:
        return None
    return next((e for e in entries if e.exercise_id == exercise_id), None)


@app.command("log")
def log_exercise(
    template_id: Annotated[
        Optional[str], typer.Option("--template", "-t", help="Template the exercise was done in")
    ] = None,
    exercise_id: Annotated[
        Optional[str], typer.Option("--exercise", "-e", help="Exercise ID")
    ] = None,
    model_id: Annotated[
        Optional[str], typer.Option("--model", "-m", help="Progression model ID (default: from the template)")
    ] = None,
    step: Annotated[
        Optional[int], typer.Option("--step", help="Step performed (default: current step)")
    ] = None,
    sets: Annotated[Optional[int], typer.Option("--sets", "-s", help="Sets performed")] = None,
    reps: Annotated[
        Optional[str], typer.Option("--reps", "-r", help="Reps per set, or AMRAP")
    ] = None,
    amrap_reps: Annotated[
        Optional[int], typer.Option("--amrap-reps", "-a", help="Reps achieved when --reps is AMRAP")
    ] = None,
    weight: Annotated[Optional[float], typer.Option("--weight", help="Weight used")] = None,
    unit: Annotated[Optional[str], typer.Option("--unit", help="Weight unit (default: lbs)")] = None,
    rpe: Annotated[Optional[int], typer.Option("--rpe", help="Perceived exertion, 0-10")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", "-n", help="Workout notes")] = None,
    user: Annotated[
        Optional[str], typer.Option("--user", "-u", help="User to log for (default: configured user)")
    ] = None,
    workbook: WorkbookOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Log a performed exercise and advance its progression.

    Run without options for interactive entry; defaults come from today's plan.
    Or supply all options for one-liner use:

      lift-cycle log -t TPL_FullBody_A -e EX_BenchPress --step 8 \\
        --sets 1 --reps AMRAP --amrap-reps 6 --weight 170 --rpe 8
    """
    service = get_service(workbook)

    # ── Interactive prompts for missing values ──────────────────────────────

    if template_id is None:
        template_id = _ask("Template")
    if exercise_id is None:
        exercise_id = _ask("Exercise")

    current = _plan_entry(service, template_id, exercise_id, user)
    if model_id is None:
        model_id = current.progression_model_id if current and current.progression_model_id else _ask("Model")
    if step is None:
        step = current.current_step_number if current else _ask("Step", 1, int)
    if sets is None:
        sets = _ask("Sets", current.calculated_sets if current else None, int)
    if reps is None:
        reps = _ask("Reps (number or AMRAP)", current.calculated_reps if current else None)
    if reps.strip().upper() == "AMRAP" and amrap_reps is None:
        amrap_reps = _ask("Reps achieved", convert=int)
    if weight is None:
        weight = _ask("Weight", current.raw_calculated_weight if current else None, float)
    if rpe is None:
        rpe = _ask("RPE (0-10)", convert=int)

    form = {
        "templateId": template_id,
        "exerciseId": exercise_id,
        "exerciseName": (current.exercise_alias or current.exercise_name) if current else "",
        "progressionModelId": model_id,
        "performedStepNumber": step,
        "setsPerformed": sets,
        "repsPerformed": reps,
        "actualAmrapReps": amrap_reps,
        "weightUsed": weight,
        "weightUnit": unit or (current.weight_unit if current else None),
        "rpe": rpe,
        "notes": notes,
    }

    try:
        result = service.submit_log(form, user_id=user)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({"message": result.message, "logged": result.logged_data}, indent=2))
        return
    views.print_log_result(result)
