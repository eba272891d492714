"""Data models for migration tasks, progress and results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from mcpbridge.exceptions import ParseError
from mcpbridge.model.canonical import InvalidTimestamp, format_timestamp, parse_timestamp, utc_now
from mcpbridge.model.models import MCPCollection
from mcpbridge.model.serialization import collection_from_dict, collection_to_dict


class MigrationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {MigrationStatus.COMPLETED, MigrationStatus.FAILED, MigrationStatus.CANCELLED}
)
CANCELLABLE_STATUSES = frozenset({MigrationStatus.PENDING, MigrationStatus.IN_PROGRESS})


@dataclass
class MigrationTask:
    """A request to move ``items`` from ``source_tool`` to ``target_tool``.

    Attributes:
        id: Task identifier (``migration_<ms>_<rand>``).
        source_tool: Tool the items currently belong to.
        target_tool: Tool the items are converted for.
        items: Canonical collections to convert.
        status: Lifecycle state. Only the task store changes it, except
            for cancellation which the engine observes between items.
        progress: Percentage in [0, 100].
        created_at: Creation time.
        completed_at: Time the task reached a terminal state.
        error: Joined error messages, when there were any.
        parent_id: Task this one retries, if it is a retry.
    """

    id: str
    source_tool: str
    target_tool: str
    items: list[MCPCollection]
    status: MigrationStatus = MigrationStatus.PENDING
    progress: int = 0
    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    error: str | None = None
    parent_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "source_tool": self.source_tool,
            "target_tool": self.target_tool,
            "items": [collection_to_dict(c) for c in self.items],
            "status": self.status.value,
            "progress": self.progress,
            "created_at": format_timestamp(self.created_at),
        }
        if self.completed_at is not None:
            data["completed_at"] = format_timestamp(self.completed_at)
        if self.error is not None:
            data["error"] = self.error
        if self.parent_id is not None:
            data["parent_id"] = self.parent_id
        return data

    @classmethod
    def from_dict(cls, data: Any) -> MigrationTask:
        """Rebuild a task from ``to_dict`` output.

        Raises:
            ParseError: If the record is malformed.
        """
        if not isinstance(data, dict):
            raise ParseError("Migration task must be an object")
        try:
            items = [collection_from_dict(raw) for raw in data.get("items", [])]
            return cls(
                id=str(data["id"]),
                source_tool=str(data["source_tool"]),
                target_tool=str(data["target_tool"]),
                items=items,
                status=MigrationStatus(data.get("status", "pending")),
                progress=int(data.get("progress", 0)),
                created_at=parse_timestamp(data.get("created_at")) or utc_now(),
                completed_at=parse_timestamp(data.get("completed_at")),
                error=data.get("error"),
                parent_id=data.get("parent_id"),
            )
        except (KeyError, TypeError, ValueError, InvalidTimestamp) as exc:
            raise ParseError(f"Malformed migration task: {exc}") from exc


@dataclass(frozen=True)
class MigrationProgress:
    """Emitted after every item.

    ``errors`` and ``warnings`` are snapshots taken when the event fired.
    """

    task_id: str
    current: int
    total: int
    progress: int
    status: MigrationStatus
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass
class MigrationResult:
    """Outcome of one ``migrate`` call.

    Attributes:
        success: False for precondition failures, unexpected errors and
            cancellation. Per-item failures do not clear it.
        task_id: Task the result belongs to.
        migrated_count: Items that passed the whole pipeline.
        failed_count: Items that failed a pipeline stage.
        errors: One message per failed item (or the fatal error).
        warnings: Validator warnings for migrated items.
        duration: Wall-clock seconds.
        migrated_items: Converted collections, tagged with the target tool.
        failed_item_ids: Ids of the items that failed.
        cancelled: True when the run stopped because of cancellation.
    """

    success: bool
    task_id: str
    migrated_count: int = 0
    failed_count: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duration: float = 0.0
    migrated_items: list[MCPCollection] = field(default_factory=list)
    failed_item_ids: list[str] = field(default_factory=list)
    cancelled: bool = False

    def summary(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "task_id": self.task_id,
            "migrated_count": self.migrated_count,
            "failed_count": self.failed_count,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "duration": round(self.duration, 3),
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class MigrationStats:
    total_tasks: int
    completed_tasks: int
    failed_tasks: int
    in_progress_tasks: int
    cancelled_tasks: int
    total_items: int
    successful_items: int
    success_rate: float

    @classmethod
    def from_tasks(cls, tasks: Sequence[MigrationTask]) -> MigrationStats:
        """Aggregate counts over ``tasks``.

        ``successful_items`` counts the items of completed tasks and
        ``success_rate`` is their share of all items, as a percentage.
        """
        by_status = {status: 0 for status in MigrationStatus}
        for task in tasks:
            by_status[task.status] += 1
        total_items = sum(len(t.items) for t in tasks)
        successful = sum(len(t.items) for t in tasks if t.status is MigrationStatus.COMPLETED)
        return cls(
            total_tasks=len(tasks),
            completed_tasks=by_status[MigrationStatus.COMPLETED],
            failed_tasks=by_status[MigrationStatus.FAILED],
            in_progress_tasks=by_status[MigrationStatus.IN_PROGRESS],
            cancelled_tasks=by_status[MigrationStatus.CANCELLED],
            total_items=total_items,
            successful_items=successful,
            success_rate=successful / total_items * 100 if total_items else 0.0,
        )
