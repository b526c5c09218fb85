"""Workout commands: templates, plan, last, simulate."""

import json
from typing import Annotated, Optional

import typer

from ...io.tables import ConfigurationError
from .. import views
from ..app import JsonOption, WorkbookOption, app, get_service


@app.command()
def templates(
    workbook: WorkbookOption = None,
    json_out: JsonOption = False,
) -> None:
    """List the workout templates in the workbook."""
    service = get_service(workbook)
    try:
        found = service.list_templates()
    except ConfigurationError as e:
        views.print_error(str(e))
        views.print_info("Run 'init' first to create the workbook.")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(views.to_json_obj(found), indent=2))
        return
    views.print_templates(found)


@app.command()
def plan(
    template_id: Annotated[str, typer.Argument(help="Template to plan, e.g. TPL_FullBody_A")],
    user: Annotated[
        Optional[str],
        typer.Option("--user", "-u", help="User whose cycle state to use (default: configured user)"),
    ] = None,
    workbook: WorkbookOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show today's prescription for every exercise of a template.

    Weights are rounded to what the exercise's equipment can load.
    Exercises already logged today are ticked.
    """
    service = get_service(workbook)
    try:
        entries = service.get_plan(template_id, user_id=user)
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(views.to_json_obj(entries), indent=2))
        return
    views.print_plan(template_id, entries)


@app.command()
def last(
    exercise_id: Annotated[str, typer.Argument(help="Exercise to look up")],
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Only consider entries logged under this template"),
    ] = None,
    workbook: WorkbookOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show the most recent log entry for an exercise."""
    service = get_service(workbook)
    try:
        entry = service.get_last_logged(exercise_id, template_id=template)
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(views.to_json_obj(entry), indent=2))
        return
    views.print_last_logged(exercise_id, entry)


@app.command()
def simulate(
    template_id: Annotated[str, typer.Argument(help="Template containing the exercise")],
    exercise_id: Annotated[str, typer.Argument(help="Exercise to simulate")],
    baseline: Annotated[
        float,
        typer.Option("--baseline", "-b", help="1RM estimate, or max reps for a max-reps model"),
    ],
    amrap_reps: Annotated[
        int,
        typer.Option("--amrap-reps", "-a", help="AMRAP result assumed for the next-cycle projection"),
    ] = 5,
    workbook: WorkbookOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Dry-run every step of the exercise's progression model at a fixed baseline.

    Nothing is written.  AMRAP steps show the baseline the next cycle would
    start from.
    """
    if baseline < 0:
        views.print_error("Baseline must be non-negative")
        raise typer.Exit(1)

    service = get_service(workbook)
    try:
        steps = service.simulate_cycle(template_id, exercise_id, baseline, simulated_amrap_reps=amrap_reps)
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(views.to_json_obj(steps), indent=2))
        return
    views.print_simulation(template_id, exercise_id, steps)
