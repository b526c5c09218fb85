"""
Public operations of lift-cycle.

WorkoutService is what a calling surface (the CLI, a web handler) talks
to.  It reads sheets from a Workbook, hands entities to the core, and
writes log rows and progression state back.

The user id is an explicit parameter of every per-user operation and
defaults to the service's configured user.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from .core.config import DEFAULT_USER_ID
from .core.equipment import DEFAULT_CATALOG, EquipmentCatalog
from .core.models import (
    LastLogged,
    LogResult,
    PerformedSet,
    PlanEntry,
    ProgressionKey,
    ProgressionModel,
    SimulatedStep,
    WorkoutLogEntry,
    WorkoutTemplate,
)
from .core.planner import assemble_plan
from .core.planner import simulate_cycle as simulate_model_cycle
from .core.progression import ProgressionUpdate, advance_progression, bootstrap_progression, model_steps
from .io import schema
from .io.serializers import (
    PROGRESSION_KEY_HEADERS,
    LogForm,
    find_last_logged,
    index_progressions,
    log_entry_to_last_logged,
    log_entry_to_row,
    parse_log_form,
    progression_to_row,
    reps_header,
    row_to_progression,
    table_to_assignments,
    table_to_exercises,
    table_to_log,
    table_to_models,
    table_to_steps,
    table_to_templates,
)
from .io.tables import ConfigurationError
from .io.workbook import Workbook

logger = logging.getLogger(__name__)


class ProgressionRecorder:
    """
    Applies a logged set to the stored cycle state.

    The read-modify-write of one progression row runs under the workbook's
    lock for that row's key, and reads the sheet fresh inside the lock.
    """

    def __init__(self, workbook: Workbook, clock: Callable[[], datetime] = datetime.now):
        self.workbook = workbook
        self._now = clock

    def record(self, user_id: str, form: LogForm) -> ProgressionUpdate | None:
        """
        Advance the cycle for the form's key and persist the result.

        Returns:
            The update applied, or None when the model does not exist
        """
        key: ProgressionKey = (user_id, form.template_id, form.exercise_id, form.progression_model_id)
        with self.workbook.lock(key):
            models = table_to_models(self.workbook.read(schema.PROGRESSION_MODELS))
            model = models.get(form.progression_model_id)
            if model is None:
                logger.warning("Progression model %s not found; progression not updated", form.progression_model_id)
                return None
            steps = table_to_steps(self.workbook.read(schema.PROGRESSION_MODEL_STEPS))

            table = self.workbook.read(schema.USER_EXERCISE_PROGRESSION, use_cache=False)
            table.require(*PROGRESSION_KEY_HEADERS)
            row_index = table.find_row_index(dict(zip(PROGRESSION_KEY_HEADERS, key)))
            now = self._now()

            if row_index is None:
                log = table_to_log(self.workbook.read(schema.WORKOUT_LOG))
                state = bootstrap_progression(
                    user_id, form.template_id, form.exercise_id, model, steps, log, now
                )
            else:
                state = row_to_progression(table, table.rows[row_index])

            performed = PerformedSet(
                step_number=form.performed_step,
                rpe=form.rpe,
                amrap_reps=form.actual_amrap_reps,
            )
            update = advance_progression(state, model, steps, performed, now)
            row = progression_to_row(update.state)

            if row_index is None:
                self.workbook.append_row(schema.USER_EXERCISE_PROGRESSION, row)
                logger.info("Created progression %s at step %s", key, update.state.current_step_number)
            else:
                self.workbook.update_cells(
                    schema.USER_EXERCISE_PROGRESSION,
                    row_index,
                    {h: v for h, v in row.items() if table.has(h)},
                )
                logger.info(
                    "Updated progression %s: %s, step %s", key, update.outcome, update.state.current_step_number
                )
            return update


class WorkoutService:
    """Entry point for every user-facing operation."""

    def __init__(
        self,
        workbook: Workbook,
        user_id: str = DEFAULT_USER_ID,
        catalog: EquipmentCatalog = DEFAULT_CATALOG,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            workbook: Backing store
            user_id: User for operations that are not given one explicitly
            catalog: Available equipment for weight rounding
            clock: Source of "now" (local time)
        """
        self.workbook = workbook
        self.user_id = user_id
        self.catalog = catalog
        self._now = clock
        self.recorder = ProgressionRecorder(workbook, clock)

    def list_templates(self) -> list[WorkoutTemplate]:
        """
        Raises:
            ConfigurationError: the templates sheet or its headers are missing
        """
        return table_to_templates(self.workbook.read(schema.WORKOUT_TEMPLATES))

    def get_plan(self, template_id: str, user_id: str | None = None) -> list[PlanEntry]:
        """
        Today's prescription for every exercise of a template.

        Raises:
            ConfigurationError: a sheet or a required header is missing
        """
        self.workbook.ensure_sheets()
        user = user_id or self.user_id
        return assemble_plan(
            template_id,
            user,
            assignments=table_to_assignments(self.workbook.read(schema.TEMPLATE_EXERCISE_LIST)),
            exercises=table_to_exercises(self.workbook.read(schema.EXERCISE_LIBRARY)),
            steps=table_to_steps(self.workbook.read(schema.PROGRESSION_MODEL_STEPS)),
            progressions=index_progressions(self.workbook.read(schema.USER_EXERCISE_PROGRESSION)),
            log=table_to_log(self.workbook.read(schema.WORKOUT_LOG)),
            today=self._now().date(),
            catalog=self.catalog,
        )

    def submit_log(self, form: Mapping[str, Any], user_id: str | None = None) -> LogResult:
        """
        Validate and store one logged exercise, then advance its cycle.

        The log row is written before the progression update.  A failing
        progression update is logged and does not undo the log row.

        Raises:
            ValidationError: the form is incomplete or a number is invalid
            ConfigurationError: a sheet is missing
        """
        parsed = parse_log_form(form)
        self.workbook.ensure_sheets()
        user = user_id or self.user_id
        now = self._now()

        entry = WorkoutLogEntry(
            exercise_id=parsed.exercise_id,
            timestamp=now,
            reps_performed=parsed.reps_display,
            weight_used=parsed.weight_used,
            sets_performed=parsed.sets_performed,
            weight_unit=parsed.weight_unit,
            rpe=parsed.rpe,
            notes=parsed.notes,
            template_id=parsed.template_id,
            progression_model_id=parsed.progression_model_id,
            performed_step=parsed.performed_step,
            log_id=f"WLOG_{uuid.uuid4()}",
            estimated_1rm=parsed.estimated_1rm(),
        )
        self.workbook.append_row(schema.WORKOUT_LOG, log_entry_to_row(entry, last_modified=now))
        logger.info("Logged %s (%s) for %s", parsed.exercise_id, entry.log_id, user)

        logged_data: dict[str, Any] = {
            "name": parsed.display_name,
            "sets": parsed.sets_performed,
            "reps": parsed.reps_display,
            "weight": parsed.weight_used,
            "rpe": parsed.rpe,
            "weight_unit": parsed.weight_unit,
            "notes": parsed.notes,
        }

        try:
            update = self.recorder.record(user, parsed)
        except Exception:
            logger.exception("Progression update failed for %s/%s", parsed.template_id, parsed.exercise_id)
            update = None
        if update is not None:
            logged_data["outcome"] = update.outcome
            logged_data["next_step"] = update.state.current_step_number

        return LogResult(message=f"{parsed.display_name} logged successfully!", logged_data=logged_data)

    def get_last_logged(self, exercise_id: str, template_id: str | None = None) -> LastLogged | None:
        """
        Most recent log entry for an exercise, optionally within a template.

        Raises:
            ConfigurationError: the log sheet lacks a column this needs
        """
        table = self.workbook.read(schema.WORKOUT_LOG)
        reps_column = reps_header(table)
        for header in schema.LAST_LOGGED_HEADERS:
            column = reps_column if header == schema.REPS_PERFORMED else header
            if not table.has(column):
                raise ConfigurationError(f"Log sheet data is incomplete. Missing: {header}")

        entry = find_last_logged(table_to_log(table), exercise_id, template_id)
        return log_entry_to_last_logged(entry) if entry is not None else None

    def simulate_cycle(
        self,
        template_id: str,
        exercise_id: str,
        initial_estimate: float,
        simulated_amrap_reps: int = 5,
    ) -> list[SimulatedStep]:
        """
        Dry-run the model assigned to an exercise in a template.

        Raises:
            ConfigurationError: the exercise is not in the template, has no
                model, or the model has no steps
        """
        assignment = next(
            (
                a for a in table_to_assignments(self.workbook.read(schema.TEMPLATE_EXERCISE_LIST))
                if a.template_id == template_id and a.exercise_id == exercise_id
            ),
            None,
        )
        if assignment is None:
            raise ConfigurationError(f"Exercise {exercise_id} not found in Template {template_id}.")
        model_id = assignment.progression_model_id
        if not model_id:
            raise ConfigurationError(
                f"ProgressionModelID not assigned to {exercise_id} in Template {template_id}."
            )

        steps = table_to_steps(self.workbook.read(schema.PROGRESSION_MODEL_STEPS))
        if not model_steps(model_id, steps):
            raise ConfigurationError(f"No steps found for ProgressionModelID: {model_id}")
        model = table_to_models(self.workbook.read(schema.PROGRESSION_MODELS)).get(
            model_id, ProgressionModel(model_id=model_id)
        )
        exercise = table_to_exercises(self.workbook.read(schema.EXERCISE_LIBRARY)).get(exercise_id)

        return simulate_model_cycle(
            model,
            steps,
            initial_estimate,
            exercise=exercise,
            simulated_amrap_reps=simulated_amrap_reps,
            catalog=self.catalog,
        )

    def clear_cache(self) -> None:
        """Drop every cached sheet snapshot."""
        self.workbook.cache.clear()
        logger.info("Query cache cleared")
