"""Workbook administration: init, clear-cache."""

from typing import Annotated

import typer

from ...io.seed import seed_workbook
from .. import views
from ..app import WorkbookOption, app, get_service


@app.command()
def init(
    workbook: WorkbookOption = None,
    sample: Annotated[
        bool,
        typer.Option("--sample", help="Fill empty reference sheets with a sample template"),
    ] = False,
) -> None:
    """
    Create the workbook directory and any missing sheets.

    Existing sheets are never overwritten.
    """
    service = get_service(workbook)
    store = service.workbook
    created = store.init()

    if created:
        views.print_success(f"Created {len(created)} sheet(s) in {store.root}")
    else:
        views.print_info(f"Workbook already complete: {store.root}")

    if sample:
        seeded = seed_workbook(store)
        if seeded:
            views.print_success(f"Sample data added to: {', '.join(seeded)}")
        else:
            views.print_warning("Reference sheets already hold data; sample not added.")
    service.clear_cache()


@app.command("clear-cache")
def clear_cache(workbook: WorkbookOption = None) -> None:
    """Drop cached sheet snapshots so the next command rereads every file."""
    service = get_service(workbook)
    service.clear_cache()
    views.print_success("Cache cleared.")
