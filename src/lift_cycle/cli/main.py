"""
CLI entry point using Typer.

Provides commands for running training cycles:
- init: Create the workbook (optionally with sample data)
- templates: List workout templates
- plan: Show today's prescription for a template
- log: Log a performed exercise and advance its cycle
- last: Show the last logged entry for an exercise
- simulate: Dry-run a progression model at a fixed baseline
- clear-cache: Drop cached sheet snapshots
"""

from pathlib import Path
from typing import Annotated, Optional

import typer

from .app import app, set_config_path
from .commands import admin, logging_cmd, workouts  # noqa: F401  (registers commands)


@app.callback()
def main_callback(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="YAML settings file (default: ~/.lift-cycle/config.yaml)"),
    ] = None,
) -> None:
    """
    Periodized strength-training planner: RPE-driven cycles, AMRAP tests,
    equipment-aware loads.
    """
    set_config_path(config)


__all__ = ["app"]


if __name__ == "__main__":
    app()
