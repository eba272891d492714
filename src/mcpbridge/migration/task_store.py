"""Migration task lifecycle and persistence.

State machine::

    PENDING ──execute──▶ IN_PROGRESS ──success──▶ COMPLETED
       │                     ├────────error────▶ FAILED
       └──────cancel─────────┴───────cancel────▶ CANCELLED

The three terminal states have no outgoing edges. Reaching one moves the
task out of the active set into the append-only history in the same
``transition`` call: history is written first, then the active set. If the
process dies between the two writes the task appears in both, and the next
load drops it from the active set, so a task is never lost and never
reported twice.

History entries are stored as plain records; every read rebuilds fresh
objects, so callers cannot mutate recorded history.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from mcpbridge.capabilities import KeyedStore
from mcpbridge.exceptions import ExportError, InvalidTransitionError, ParseError, StorageError
from mcpbridge.migration.models import (
    CANCELLABLE_STATUSES,
    MigrationStats,
    MigrationStatus,
    MigrationTask,
)
from mcpbridge.model.canonical import generate_id, utc_now
from mcpbridge.model.models import MCPCollection

logger = logging.getLogger(__name__)

ACTIVE_KEY = "active_migration_tasks"
HISTORY_KEY = "migration_history"

TRANSITIONS: dict[MigrationStatus, frozenset[MigrationStatus]] = {
    MigrationStatus.PENDING: frozenset({MigrationStatus.IN_PROGRESS, MigrationStatus.CANCELLED}),
    MigrationStatus.IN_PROGRESS: frozenset(
        {MigrationStatus.COMPLETED, MigrationStatus.FAILED, MigrationStatus.CANCELLED}
    ),
    MigrationStatus.COMPLETED: frozenset(),
    MigrationStatus.FAILED: frozenset(),
    MigrationStatus.CANCELLED: frozenset(),
}


class MigrationTaskStore:
    """Owns active migration tasks and the history of finished ones.

    Active tasks are live objects: the instance returned by ``create`` is
    the one the store updates, so an engine watching it sees cancellation.
    """

    def __init__(self, store: KeyedStore) -> None:
        self._store = store
        self._active: dict[str, MigrationTask] | None = None

    # -- Queries -----------------------------------------------------------

    def active(self) -> list[MigrationTask]:
        return list(self._load_active().values())

    def history(self) -> list[MigrationTask]:
        """Finished tasks, oldest first, as fresh copies."""
        return [MigrationTask.from_dict(raw) for raw in self._history_records()]

    def get(self, task_id: str) -> MigrationTask | None:
        """Return the live active task, or a copy from history."""
        task = self._load_active().get(task_id)
        if task is not None:
            return task
        for raw in self._history_records():
            if raw.get("id") == task_id:
                return MigrationTask.from_dict(raw)
        return None

    def stats(self) -> MigrationStats:
        return MigrationStats.from_tasks(self.active() + self.history())

    # -- Lifecycle ---------------------------------------------------------

    def create(
        self,
        source_tool: str,
        target_tool: str,
        items: Sequence[MCPCollection],
        parent_id: str | None = None,
    ) -> MigrationTask:
        """Register a new ``PENDING`` task."""
        task = MigrationTask(
            id=generate_id("migration"),
            source_tool=source_tool,
            target_tool=target_tool,
            items=list(items),
            parent_id=parent_id,
        )
        active = self._load_active()
        active[task.id] = task
        self._save_active(active)
        logger.debug("Created migration task %s (%s -> %s)", task.id, source_tool, target_tool)
        return task

    def transition(
        self,
        task_id: str,
        status: MigrationStatus,
        error: str | None = None,
    ) -> MigrationTask:
        """Move an active task to ``status``.

        Terminal statuses stamp ``completed_at`` and move the task to
        history. ``COMPLETED`` and ``FAILED`` set progress to 100.
        The live task only changes once the new state has been stored, so a
        rejected write leaves it as it was.

        Raises:
            InvalidTransitionError: If the task is not active or the edge
                is not in the transition table.
            StorageError: If the store rejects the write.
        """
        active = self._load_active()
        task = active.get(task_id)
        if task is None:
            raise InvalidTransitionError(f"Task {task_id} is not active")
        if status not in TRANSITIONS[task.status]:
            raise InvalidTransitionError(
                f"Task {task_id} cannot move from {task.status.value} to {status.value}"
            )
        if not status.is_terminal:
            previous = task.status, task.error
            task.status = status
            if error is not None:
                task.error = error
            try:
                self._save_active(active)
            except StorageError:
                task.status, task.error = previous
                raise
            return task

        finished = replace(
            task,
            status=status,
            error=error if error is not None else task.error,
            progress=task.progress if status is MigrationStatus.CANCELLED else 100,
            completed_at=utc_now(),
        )
        self._append_history([finished])
        task.status, task.error = finished.status, finished.error
        task.progress, task.completed_at = finished.progress, finished.completed_at
        del active[task_id]
        self._save_active(active)
        logger.info("Migration task %s finished: %s", task_id, status.value)
        return task

    def record_progress(self, task_id: str, progress: int) -> None:
        active = self._load_active()
        task = active.get(task_id)
        if task is None or task.status.is_terminal:
            return
        task.progress = max(task.progress, min(100, progress))
        self._save_active(active)

    def cancel(self, task_id: str) -> bool:
        """Cancel an active task. Returns False if it is not cancellable."""
        task = self._load_active().get(task_id)
        if task is None or task.status not in CANCELLABLE_STATUSES:
            return False
        self.transition(task_id, MigrationStatus.CANCELLED, error="Migration cancelled")
        return True

    def settle(self, task: MigrationTask) -> None:
        """Persist a live task whose status was changed outside ``transition``.

        The engine marks tasks ``CANCELLED`` in place. If such a task is
        still in the active set it is moved to history here.
        """
        active = self._load_active()
        if task.id not in active or not task.status.is_terminal:
            return
        if task.completed_at is None:
            task.completed_at = utc_now()
        self._append_history([task])
        del active[task.id]
        self._save_active(active)

    def cleanup_terminal(self) -> int:
        """Move any terminal tasks still in the active set to history."""
        active = self._load_active()
        finished = [t for t in active.values() if t.status.is_terminal]
        if not finished:
            return 0
        self._append_history(finished)
        for task in finished:
            del active[task.id]
        self._save_active(active)
        return len(finished)

    def clear_history(self) -> None:
        self._write(HISTORY_KEY, [])

    # -- Interchange -------------------------------------------------------

    def export_history(self) -> str:
        return json.dumps(
            {
                "exportedAt": datetime.now(timezone.utc).isoformat(),
                "tasks": self._history_records(),
            },
            indent=2,
            sort_keys=True,
        )

    def import_history(self, text: str) -> int:
        """Append finished tasks from ``export_history`` output.

        Tasks already in history, and non-terminal tasks, are skipped.

        Raises:
            ExportError: If ``text`` is not a history export.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ExportError(f"History import is not valid JSON: {exc}") from exc
        raw_tasks = data.get("tasks") if isinstance(data, dict) else data
        if not isinstance(raw_tasks, list):
            raise ExportError("History import must contain a task list")
        known = {raw.get("id") for raw in self._history_records()}
        incoming: list[MigrationTask] = []
        for raw in raw_tasks:
            try:
                task = MigrationTask.from_dict(raw)
            except ParseError as exc:
                logger.warning("Skipping history record: %s", exc)
                continue
            if task.id in known or not task.status.is_terminal:
                continue
            known.add(task.id)
            incoming.append(task)
        if incoming:
            self._append_history(incoming)
        return len(incoming)

    # -- Persistence -------------------------------------------------------

    def _load_active(self) -> dict[str, MigrationTask]:
        if self._active is None:
            raw = self._store.read_json(ACTIVE_KEY) or []
            if not isinstance(raw, list):
                raise StorageError("Active task list is corrupt", ACTIVE_KEY)
            finished = {r.get("id") for r in self._history_records()}
            active: dict[str, MigrationTask] = {}
            for record in raw:
                try:
                    task = MigrationTask.from_dict(record)
                except ParseError as exc:
                    raise StorageError(f"Active task list is corrupt ({exc})", ACTIVE_KEY) from exc
                if task.id in finished:
                    logger.warning("Dropping task %s already recorded in history", task.id)
                    continue
                active[task.id] = task
            self._active = active
        return self._active

    def _save_active(self, active: dict[str, MigrationTask]) -> None:
        self._write(ACTIVE_KEY, [t.to_dict() for t in active.values()])
        self._active = active

    def _history_records(self) -> list[dict[str, Any]]:
        raw = self._store.read_json(HISTORY_KEY) or []
        if not isinstance(raw, list):
            raise StorageError("Migration history is corrupt", HISTORY_KEY)
        return [r for r in raw if isinstance(r, dict)]

    def _append_history(self, tasks: Sequence[MigrationTask]) -> None:
        records = self._history_records()
        records.extend(t.to_dict() for t in tasks)
        self._write(HISTORY_KEY, records)

    def _write(self, key: str, value: Any) -> None:
        if not self._store.write_json(key, value):
            raise StorageError("Store rejected write", key)
