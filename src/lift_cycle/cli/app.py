"""Shared Typer app object, shared option types, and service factory."""

from dataclasses import replace
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import AppSettings, load_app_config
from ..io.workbook import open_workbook
from ..logging_setup import configure_logging
from ..service import WorkoutService

# Shared --workbook option type used across all commands
WorkbookOption = Annotated[
    Optional[Path],
    typer.Option("--workbook", "-w", help="Workbook directory (default: ~/.lift-cycle/workbook)"),
]

# Shared --json option type used by every data command
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="lift-cycle",
    help="Periodized strength-training planner: RPE-driven cycles, AMRAP tests, equipment-aware loads.",
    no_args_is_help=True,
)

# Set by the main callback from --config
_config_path: Path | None = None


def set_config_path(path: Path | None) -> None:
    global _config_path
    _config_path = path


def get_settings(workbook_path: Path | None = None) -> AppSettings:
    """Load settings, configure logging, and apply a --workbook override."""
    settings = load_app_config(_config_path)
    configure_logging(
        log_path=settings.log_path,
        level=settings.log_level,
        to_console=settings.log_to_console,
    )
    if workbook_path is not None:
        settings = replace(settings, workbook_dir=workbook_path)
    return settings


def get_service(workbook_path: Path | None = None) -> WorkoutService:
    """Get a service over the workbook at the given path or the configured location."""
    settings = get_settings(workbook_path)
    workbook = open_workbook(
        settings.workbook_dir,
        ttl_seconds=settings.cache_ttl_seconds,
        cache_to_disk=settings.cache_to_disk,
    )
    return WorkoutService(workbook, user_id=settings.user_id, catalog=settings.catalog)
