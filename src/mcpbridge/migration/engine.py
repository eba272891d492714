"""Migration engine: convert canonical collections from one tool to another.

Every item goes through the same pipeline::

    canonical --serialize(source)--> text --parse(source)--> canonical
              --re-tag to target--> --serialize(target)--> text
              --parse(target)--> canonical --validate--> migrated

A stage returning None, a validation failure or an unexpected exception
fails that item only; its message is recorded and the next item runs.
Precondition failures (same tool, unsupported tool) fail the whole request
before any item is touched.

Items run in batches of ``Settings.batch_size`` with a pause of
``Settings.batch_delay`` seconds between batches. A progress event follows
every item; a callback that raises is logged and ignored. Cancellation is cooperative: it is checked before each item,
so the item in flight always finishes and everything converted so far is
returned.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from mcpbridge.adapters.base import ToolAdapter
from mcpbridge.adapters.registry import AdapterRegistry, default_registry
from mcpbridge.capabilities import ProgressEvent, ProgressSink, safe_emit
from mcpbridge.exceptions import OperationInProgressError, PreconditionError
from mcpbridge.migration.models import (
    CANCELLABLE_STATUSES,
    MigrationProgress,
    MigrationResult,
    MigrationStats,
    MigrationStatus,
    MigrationTask,
)
from mcpbridge.model.canonical import generate_id
from mcpbridge.model.models import MCPCollection, ValidationResult
from mcpbridge.model.validator import CollectionValidator
from mcpbridge.settings import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[MigrationProgress], None]

CANCELLED_MESSAGE = "Migration cancelled"


class _ItemFailure(Exception):
    """One pipeline stage rejected the item."""


class MigrationEngine:
    """Runs migrations item by item with progress, cancellation and retry.

    Args:
        adapters: Adapter registry. Defaults to every built-in adapter.
        settings: Batch size and inter-batch delay.
        validator: Validator applied to each converted item.
        sleep: Called with the inter-batch delay. Injected in tests.
        sink: Optional progress sink for structured events.
    """

    def __init__(
        self,
        adapters: AdapterRegistry | None = None,
        settings: Settings | None = None,
        validator: CollectionValidator | None = None,
        sleep: Callable[[float], None] = time.sleep,
        sink: ProgressSink | None = None,
    ) -> None:
        self._adapters = adapters if adapters is not None else default_registry()
        self._settings = settings if settings is not None else Settings()
        self._validator = validator if validator is not None else CollectionValidator()
        self._sleep = sleep
        self._sink = sink
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def supported_tools(self) -> list[str]:
        return [tool.value for tool in self._adapters.tools]

    # -- Preconditions -----------------------------------------------------

    def validate_request(self, source_tool: str, target_tool: str) -> ValidationResult:
        errors: list[str] = []
        if source_tool == target_tool:
            errors.append("Source and target tools cannot be the same")
        if not self._adapters.supports(source_tool):
            errors.append(f"Unsupported source tool: {source_tool}")
        if not self._adapters.supports(target_tool):
            errors.append(f"Unsupported target tool: {target_tool}")
        return ValidationResult.from_messages(errors)

    # -- Migration ---------------------------------------------------------

    def migrate(
        self,
        source_tool: str,
        target_tool: str,
        items: Sequence[MCPCollection],
        on_progress: ProgressCallback | None = None,
        task: MigrationTask | None = None,
    ) -> MigrationResult:
        """Convert ``items`` from ``source_tool`` to ``target_tool``.

        Args:
            source_tool: Tool id the items currently belong to.
            target_tool: Tool id to convert them for.
            items: Canonical collections.
            on_progress: Called after every item.
            task: Task whose status is watched for cancellation and whose
                progress is updated. A transient task is used when omitted.

        Returns:
            A ``MigrationResult``. Precondition failures return
            ``success=False`` with nothing migrated.

        Raises:
            OperationInProgressError: If a migration is already running.
        """
        if self._running:
            raise OperationInProgressError("A migration is already in progress")
        if task is None:
            task = MigrationTask(
                id=generate_id("migration"),
                source_tool=source_tool,
                target_tool=target_tool,
                items=list(items),
                status=MigrationStatus.IN_PROGRESS,
            )
        started = time.monotonic()

        check = self.validate_request(source_tool, target_tool)
        if not check.is_valid:
            logger.warning("Rejected migration %s: %s", task.id, "; ".join(check.errors))
            return MigrationResult(
                success=False,
                task_id=task.id,
                failed_count=len(items),
                errors=list(check.errors),
                duration=time.monotonic() - started,
            )

        result = MigrationResult(success=True, task_id=task.id)
        self._running = True
        try:
            self._run(task, source_tool, target_tool, list(items), result, on_progress)
        except Exception as exc:
            logger.warning("Migration %s failed", task.id, exc_info=True)
            processed = result.migrated_count + result.failed_count
            result.success = False
            result.failed_count += len(items) - processed
            result.errors.append(f"Migration failed: {exc}")
        finally:
            self._running = False
        result.duration = time.monotonic() - started
        self._emit(
            "info" if result.success else "warning",
            f"Migration {task.id}: {result.migrated_count} migrated, {result.failed_count} failed",
            result.summary(),
        )
        return result

    def _run(
        self,
        task: MigrationTask,
        source_tool: str,
        target_tool: str,
        items: list[MCPCollection],
        result: MigrationResult,
        on_progress: ProgressCallback | None,
    ) -> None:
        source = self._adapters.get(source_tool)
        target = self._adapters.get(target_tool)
        if source is None or target is None:
            raise PreconditionError("Adapter registry changed during migration")
        total = len(items)
        batch_size = self._settings.batch_size

        if total == 0:
            task.progress = 100
            self._notify(on_progress, task, result, 0, 0)
            return

        for batch_start in range(0, total, batch_size):
            if batch_start > 0 and self._settings.batch_delay > 0:
                self._sleep(self._settings.batch_delay)
            for offset, item in enumerate(items[batch_start:batch_start + batch_size]):
                if task.status is MigrationStatus.CANCELLED:
                    result.success = False
                    result.cancelled = True
                    result.errors.append(CANCELLED_MESSAGE)
                    logger.info("Migration %s cancelled after %d items", task.id, batch_start + offset)
                    return
                self._migrate_item(item, source, target, result)
                current = batch_start + offset + 1
                task.progress = round(current / total * 100)
                self._notify(on_progress, task, result, current, total)

    def _migrate_item(
        self,
        item: MCPCollection,
        source: ToolAdapter,
        target: ToolAdapter,
        result: MigrationResult,
    ) -> None:
        item_id = getattr(item, "id", "?")
        try:
            converted = self._convert_item(item, source, target)
            validation = self._validator.validate(converted)
            if not validation.is_valid:
                raise _ItemFailure(
                    f"Data validation failed ({item_id}): {', '.join(validation.errors)}"
                )
        except _ItemFailure as exc:
            result.failed_count += 1
            result.failed_item_ids.append(item_id)
            result.errors.append(str(exc))
            return
        except Exception as exc:
            logger.warning("Unexpected error migrating %s", item_id, exc_info=True)
            result.failed_count += 1
            result.failed_item_ids.append(item_id)
            result.errors.append(f"Migration failed ({item_id}): {exc}")
            return
        result.migrated_count += 1
        result.migrated_items.append(converted)
        result.warnings.extend(f"{item_id}: {w}" for w in validation.warnings)

    def _convert_item(
        self,
        item: MCPCollection,
        source: ToolAdapter,
        target: ToolAdapter,
    ) -> MCPCollection:
        """Run one item through the source and target round trips.

        Raises:
            _ItemFailure: If any stage returns None.
        """
        source_tool, target_tool = source.tool.value, target.tool.value
        text = source.serialize(item, source.default_format)
        if text is None:
            raise _ItemFailure(f"Format conversion failed ({item.id}): cannot serialize for {source_tool}")
        normalized = source.parse(text, source_tool, source.default_format)
        if normalized is None:
            raise _ItemFailure(f"Format conversion failed ({item.id}): cannot parse {source_tool} output")

        text = target.serialize(normalized.copy_with_tool(target_tool), target.default_format)
        if text is None:
            raise _ItemFailure(f"Format conversion failed ({item.id}): cannot serialize for {target_tool}")
        converted = target.parse(text, target_tool, target.default_format)
        if converted is None:
            raise _ItemFailure(f"Format conversion failed ({item.id}): cannot parse {target_tool} output")
        return converted

    # -- Cancellation & retry ----------------------------------------------

    @staticmethod
    def can_cancel(task: MigrationTask) -> bool:
        return task.status in CANCELLABLE_STATUSES

    def cancel(self, task: MigrationTask) -> bool:
        """Mark ``task`` cancelled. Returns False for terminal tasks."""
        if not self.can_cancel(task):
            return False
        task.status = MigrationStatus.CANCELLED
        task.error = CANCELLED_MESSAGE
        return True

    def retry_failed_items(
        self,
        task: MigrationTask,
        failed_items: Sequence[MCPCollection],
        on_progress: ProgressCallback | None = None,
    ) -> MigrationResult:
        """Re-run the pipeline for ``failed_items`` under a new derived task.

        The original ``task`` is not modified.
        """
        retry_task = self.derive_retry_task(task, failed_items)
        retry_task.status = MigrationStatus.IN_PROGRESS
        return self.migrate(task.source_tool, task.target_tool, retry_task.items,
                            on_progress, retry_task)

    @staticmethod
    def derive_retry_task(task: MigrationTask, failed_items: Sequence[MCPCollection]) -> MigrationTask:
        return MigrationTask(
            id=generate_id("migration"),
            source_tool=task.source_tool,
            target_tool=task.target_tool,
            items=list(failed_items),
            parent_id=task.id,
        )

    # -- Statistics --------------------------------------------------------

    @staticmethod
    def migration_stats(tasks: Sequence[MigrationTask]) -> MigrationStats:
        return MigrationStats.from_tasks(tasks)

    # -- Notifications -----------------------------------------------------

    def _notify(
        self,
        callback: ProgressCallback | None,
        task: MigrationTask,
        result: MigrationResult,
        current: int,
        total: int,
    ) -> None:
        if callback is None:
            return
        try:
            callback(MigrationProgress(
                task_id=task.id,
                current=current,
                total=total,
                progress=task.progress,
                status=task.status,
                errors=tuple(result.errors),
                warnings=tuple(result.warnings),
            ))
        except Exception:
            logger.warning("Progress callback failed for %s", task.id, exc_info=True)

    def _emit(self, level: str, message: str, data: dict) -> None:
        safe_emit(self._sink, ProgressEvent(level, "migration", message, data))
