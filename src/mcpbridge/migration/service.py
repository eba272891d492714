"""Orchestrates migration tasks: task store bookkeeping around the engine."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from mcpbridge.exceptions import MCPBridgeError, PreconditionError, StorageError
from mcpbridge.migration.engine import MigrationEngine, ProgressCallback
from mcpbridge.migration.models import (
    MigrationProgress,
    MigrationResult,
    MigrationStats,
    MigrationStatus,
    MigrationTask,
)
from mcpbridge.migration.task_store import MigrationTaskStore
from mcpbridge.model.models import MCPCollection, ValidationResult

logger = logging.getLogger(__name__)


class MigrationService:
    """Creates, runs, cancels and retries migration tasks.

    The engine does the conversion work; the store owns status changes and
    history. ``execute_task`` moves a task to ``in_progress``, runs it and
    settles it as ``completed``, ``failed`` or (if it was cancelled while
    running) ``cancelled``.
    """

    def __init__(self, store: MigrationTaskStore, engine: MigrationEngine | None = None) -> None:
        self.store = store
        self.engine = engine if engine is not None else MigrationEngine()

    def validate_migration(self, source_tool: str, target_tool: str) -> ValidationResult:
        return self.engine.validate_request(source_tool, target_tool)

    def create_task(
        self,
        source_tool: str,
        target_tool: str,
        items: Sequence[MCPCollection],
    ) -> MigrationTask:
        """Register a pending task after checking the tool pair.

        Raises:
            PreconditionError: If the tools are the same or unsupported.
        """
        check = self.validate_migration(source_tool, target_tool)
        if not check.is_valid:
            raise PreconditionError("; ".join(check.errors))
        return self.store.create(source_tool, target_tool, items)

    def execute_task(self, task_id: str, on_progress: ProgressCallback | None = None) -> MigrationResult:
        """Run a pending task to a terminal state.

        Progress is persisted after every item before ``on_progress`` runs.

        Raises:
            InvalidTransitionError: If the task is not pending.
        """
        task = self.store.transition(task_id, MigrationStatus.IN_PROGRESS)
        logger.info("Executing migration %s (%d items)", task.id, len(task.items))

        def track(update: MigrationProgress) -> None:
            try:
                self.store.record_progress(task.id, update.progress)
            except StorageError:
                logger.warning("Cannot persist progress of %s", task.id, exc_info=True)
            if on_progress is not None:
                on_progress(update)

        try:
            result = self.engine.migrate(
                task.source_tool, task.target_tool, task.items, track, task
            )
        except MCPBridgeError as exc:
            self.store.transition(task.id, MigrationStatus.FAILED, error=str(exc))
            raise

        if result.cancelled or task.status is MigrationStatus.CANCELLED:
            self.store.settle(task)
        elif result.success:
            self.store.transition(
                task.id, MigrationStatus.COMPLETED, error="; ".join(result.errors) or None
            )
        else:
            self.store.transition(
                task.id, MigrationStatus.FAILED, error="; ".join(result.errors) or "Migration failed"
            )
        return result

    def run(
        self,
        source_tool: str,
        target_tool: str,
        items: Sequence[MCPCollection],
        on_progress: ProgressCallback | None = None,
    ) -> MigrationResult:
        """Create and execute a task in one call."""
        task = self.create_task(source_tool, target_tool, items)
        return self.execute_task(task.id, on_progress)

    def cancel_task(self, task_id: str) -> bool:
        """Cancel a pending or running task.

        A running task is flagged in place; the engine stops before its next
        item and ``execute_task`` moves it to history. A pending task goes
        straight to history.
        """
        task = self.store.get(task_id)
        if task is None:
            return False
        if task.status is MigrationStatus.IN_PROGRESS:
            return self.engine.cancel(task)
        return self.store.cancel(task_id)

    def retry_failed_items(
        self,
        task_id: str,
        failed_items: Sequence[MCPCollection],
        on_progress: ProgressCallback | None = None,
    ) -> MigrationResult:
        """Run ``failed_items`` again under a new task derived from ``task_id``.

        Raises:
            PreconditionError: If ``task_id`` is unknown.
        """
        original = self.store.get(task_id)
        if original is None:
            raise PreconditionError(f"Unknown migration task: {task_id}")
        retry = self.store.create(
            original.source_tool, original.target_tool, failed_items, parent_id=original.id
        )
        logger.info("Retrying %d items of %s as %s", len(failed_items), task_id, retry.id)
        return self.execute_task(retry.id, on_progress)

    def stats(self) -> MigrationStats:
        return self.store.stats()
