"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of plans, templates, log entries and
cycle simulations, plus the JSON shapes printed by --json.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.table import Table

from ..core.models import LastLogged, LogResult, PlanEntry, SimulatedStep, WorkoutTemplate

console = Console()


# ---------------------------------------------------------------------------
# JSON shapes
# ---------------------------------------------------------------------------


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def to_json_obj(item: Any) -> Any:
    """Dataclass (or list of them) as a JSON-compatible structure."""
    if isinstance(item, list):
        return [to_json_obj(i) for i in item]
    if item is None:
        return None
    return _jsonable(asdict(item))


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def _fmt_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _fmt_weight(weight: str, unit: str) -> str:
    if weight in ("-", "") or weight == "0.00":
        return weight if weight else "-"
    try:
        float(weight)
    except ValueError:
        return weight  # unresolved formula or pending text
    return f"{weight} {unit}"


def format_templates_table(templates: list[WorkoutTemplate]) -> Table:
    """
    Create a Rich table listing workout templates.

    Args:
        templates: Templates to display

    Returns:
        Rich Table object
    """
    table = Table(title="Workout Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    for template in templates:
        table.add_row(template.template_id, template.template_name)
    return table


def format_plan_table(template_id: str, plan: list[PlanEntry]) -> Table:
    """
    Create a Rich table for a template's prescription.

    Args:
        template_id: Template shown in the title
        plan: Plan entries in workout order

    Returns:
        Rich Table object
    """
    table = Table(title=f"Plan: {template_id}")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Step", justify="right", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right", style="bold")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Base", justify="right", style="dim")
    table.add_column("Notes")
    table.add_column("Done", justify="center")

    for i, entry in enumerate(plan, 1):
        if entry.base_weight is None:
            base = "-"
        elif entry.is_bodyweight_max_reps_model:
            base = f"{_fmt_number(entry.base_weight)} reps"
        else:
            base = f"{_fmt_number(entry.base_weight)} {entry.weight_unit}"
        notes = " / ".join(n for n in (entry.step_notes, entry.notes_for_exercise_in_template) if n)
        table.add_row(
            str(i),
            entry.exercise_alias or entry.exercise_name,
            str(entry.current_step_number),
            _fmt_number(entry.calculated_sets),
            _fmt_number(entry.calculated_reps),
            _fmt_weight(entry.calculated_weight, entry.weight_unit),
            base,
            notes,
            "[green]✓[/green]" if entry.is_logged_today else "",
        )

    return table


def format_simulation_table(template_id: str, exercise_id: str, steps: list[SimulatedStep]) -> Table:
    """
    Create a Rich table for a dry-run cycle.

    Args:
        template_id: Template the exercise belongs to
        exercise_id: Simulated exercise
        steps: One row per model step

    Returns:
        Rich Table object
    """
    baseline = _fmt_number(steps[0].baseline) if steps else "-"
    table = Table(title=f"Cycle simulation: {exercise_id} in {template_id} (baseline {baseline})")

    table.add_column("Step", justify="right", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right", style="bold")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Raw", justify="right", style="dim")
    table.add_column("Next baseline", justify="right", style="green")
    table.add_column("Notes")

    for step in steps:
        table.add_row(
            str(step.step_number),
            _fmt_number(step.sets),
            _fmt_number(step.reps),
            step.weight,
            step.raw_weight,
            _fmt_number(step.projected_next_baseline) if step.projected_next_baseline is not None else "",
            step.notes,
        )

    return table


# ---------------------------------------------------------------------------
# Printers
# ---------------------------------------------------------------------------


def print_templates(templates: list[WorkoutTemplate]) -> None:
    if not templates:
        console.print("[yellow]No workout templates defined.[/yellow]")
        return
    console.print(format_templates_table(templates))


def print_plan(template_id: str, plan: list[PlanEntry]) -> None:
    """
    Print a template's plan to console.

    Args:
        template_id: Template planned
        plan: Entries to display
    """
    if not plan:
        console.print(f"[yellow]Template {template_id} has no exercises.[/yellow]")
        return
    console.print(format_plan_table(template_id, plan))


def print_last_logged(exercise_id: str, last: LastLogged | None) -> None:
    """Print the most recent log entry for an exercise."""
    if last is None:
        console.print(f"[yellow]No log entries for {exercise_id}.[/yellow]")
        return
    when = last.exercise_timestamp.strftime("%Y-%m-%d %H:%M") if last.exercise_timestamp else "?"
    weight = _fmt_number(last.weight_used) if last.weight_used is not None else "-"
    console.print(f"[bold]{exercise_id}[/bold]  last logged [cyan]{when}[/cyan]")
    console.print(
        f"  {last.sets_performed if last.sets_performed is not None else '-'} x "
        f"{last.reps_performed or '-'} @ {weight} {last.weight_unit}"
        f"  RPE {last.rpe_recorded if last.rpe_recorded is not None else '-'}"
    )
    if last.workout_notes:
        console.print(f"  [dim]{last.workout_notes}[/dim]")


def print_log_result(result: LogResult) -> None:
    """Print the confirmation for a logged exercise and where the cycle moved."""
    print_success(result.message)
    data = result.logged_data
    outcome = data.get("outcome")
    if outcome == "cycle_complete":
        print_info(f"Cycle complete! Back to step {data.get('next_step')} with a new baseline.")
    elif outcome == "advanced":
        print_info(f"Next time: step {data.get('next_step')}.")
    elif outcome == "retry":
        print_info(f"RPE above target: repeat step {data.get('next_step')} next time.")
    elif outcome == "hold_final":
        print_info(f"Final step not completed: stay on step {data.get('next_step')}.")


def print_simulation(template_id: str, exercise_id: str, steps: list[SimulatedStep]) -> None:
    console.print(format_simulation_table(template_id, exercise_id, steps))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
