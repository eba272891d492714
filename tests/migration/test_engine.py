"""Tests for the MigrationEngine pipeline."""

from __future__ import annotations

import pytest

from mcpbridge.capabilities import ProgressEvent
from mcpbridge.exceptions import OperationInProgressError
from mcpbridge.migration import MigrationEngine, MigrationStatus, MigrationTask
from mcpbridge.settings import Settings

from tests.helpers import make_collection


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)


def _items(count: int, failing: tuple[int, ...] = ()) -> list:
    """``count`` collections; indexes in ``failing`` cannot be serialized."""
    return [
        make_collection(
            name=f"server{i}",
            collection_id=f"mcp_{i}",
            configuration={"bad": object()} if i in failing else {"command": "npx"},
        )
        for i in range(count)
    ]


@pytest.fixture
def engine(fast_settings) -> MigrationEngine:
    return MigrationEngine(settings=fast_settings)


class TestPreconditions:

    def test_same_tool_rejected(self, engine) -> None:
        result = engine.migrate("cursor", "cursor", _items(2))
        assert not result.success
        assert result.failed_count == 2
        assert result.migrated_count == 0
        assert "Source and target tools cannot be the same" in result.errors

    def test_unsupported_tools(self, engine) -> None:
        check = engine.validate_request("notepad", "vim")
        assert not check.is_valid
        assert check.errors == ["Unsupported source tool: notepad", "Unsupported target tool: vim"]

    def test_supported_tools(self, engine) -> None:
        assert set(engine.supported_tools) == {"github-copilot", "tabnine", "cursor", "codex", "kilocode"}


class TestMigrate:

    def test_all_items_migrate(self, engine) -> None:
        result = engine.migrate("cursor", "codex", _items(3))
        assert result.success
        assert result.migrated_count == 3
        assert result.failed_count == 0
        assert all(item.source_tool == "codex" for item in result.migrated_items)
        assert [item.metadata.name for item in result.migrated_items] == ["server0", "server1", "server2"]

    def test_partial_failures_keep_success(self, engine) -> None:
        """Item failures are recorded one by one; the run still succeeds."""
        events = []
        result = engine.migrate("cursor", "tabnine", _items(5, failing=(1, 3)), on_progress=events.append)
        assert result.success
        assert result.migrated_count == 3
        assert result.failed_count == 2
        assert result.failed_item_ids == ["mcp_1", "mcp_3"]
        assert len(result.errors) == 2
        assert all(e.startswith("Format conversion failed") for e in result.errors)
        assert events[-1].progress == 100
        assert events[-1].current == 5

    def test_progress_is_monotonic(self, engine) -> None:
        events = []
        engine.migrate("cursor", "kilocode", _items(4), on_progress=events.append)
        assert [e.current for e in events] == [1, 2, 3, 4]
        assert [e.progress for e in events] == [25, 50, 75, 100]
        assert all(e.total == 4 for e in events)

    def test_empty_items(self, engine) -> None:
        events = []
        result = engine.migrate("cursor", "codex", [], on_progress=events.append)
        assert result.success
        assert result.migrated_count == 0
        assert [e.progress for e in events] == [100]

    def test_errors_snapshot_in_progress(self, engine) -> None:
        events = []
        engine.migrate("cursor", "codex", _items(3, failing=(0,)), on_progress=events.append)
        assert len(events[0].errors) == 1
        assert events[0].errors == events[-1].errors

    def test_batches_pause_between(self) -> None:
        pauses: list[float] = []
        engine = MigrationEngine(settings=Settings(batch_size=2, batch_delay=0.5), sleep=pauses.append)
        result = engine.migrate("cursor", "codex", _items(5))
        assert result.migrated_count == 5
        assert pauses == [0.5, 0.5]

    def test_raising_callback_does_not_break_run(self, engine) -> None:
        def on_progress(event) -> None:
            if event.current == 3:
                raise RuntimeError("ui boom")

        result = engine.migrate("cursor", "codex", _items(3), on_progress=on_progress)
        assert result.success
        assert result.migrated_count == 3
        assert result.failed_count == 0
        assert result.errors == []

    def test_unexpected_error_keeps_converted_items(self) -> None:
        def sleep(_: float) -> None:
            raise RuntimeError("clock gone")

        engine = MigrationEngine(settings=Settings(batch_size=2, batch_delay=0.5), sleep=sleep)
        result = engine.migrate("cursor", "codex", _items(5))
        assert not result.success
        assert result.migrated_count == 2
        assert [item.metadata.name for item in result.migrated_items] == ["server0", "server1"]
        assert result.failed_count == 3
        assert result.errors == ["Migration failed: clock gone"]

    def test_sink_receives_summary(self, fast_settings) -> None:
        sink = RecordingSink()
        MigrationEngine(settings=fast_settings, sink=sink).migrate("cursor", "codex", _items(1))
        assert sink.events[-1].source == "migration"
        assert sink.events[-1].data["migrated_count"] == 1


class TestCancellation:

    def test_cancel_mid_run(self, engine) -> None:
        """Items converted before the cancel are kept."""
        task = MigrationTask("migration_1", "cursor", "codex", _items(5), status=MigrationStatus.IN_PROGRESS)

        def on_progress(event) -> None:
            if event.current == 2:
                engine.cancel(task)

        result = engine.migrate("cursor", "codex", task.items, on_progress, task)
        assert result.cancelled
        assert not result.success
        assert result.migrated_count == 2
        assert "Migration cancelled" in result.errors
        assert task.status is MigrationStatus.CANCELLED

    def test_terminal_task_cannot_cancel(self, engine) -> None:
        task = MigrationTask("migration_1", "cursor", "codex", [], status=MigrationStatus.COMPLETED)
        assert not engine.can_cancel(task)
        assert not engine.cancel(task)
        assert task.status is MigrationStatus.COMPLETED


class TestReentrancy:

    def test_second_migration_rejected(self, engine) -> None:
        seen: list[Exception] = []

        def on_progress(event) -> None:
            try:
                engine.migrate("cursor", "codex", _items(1))
            except OperationInProgressError as exc:
                seen.append(exc)

        result = engine.migrate("cursor", "codex", _items(1), on_progress)
        assert result.success
        assert len(seen) == 1
        assert not engine.is_running


class TestRetry:

    def test_retry_creates_child_task(self, engine) -> None:
        task = MigrationTask("migration_1", "cursor", "codex", _items(2), status=MigrationStatus.FAILED)
        result = engine.retry_failed_items(task, _items(1))
        assert result.success
        assert result.migrated_count == 1
        assert result.task_id != task.id
        assert task.status is MigrationStatus.FAILED

    def test_derive_retry_task(self) -> None:
        task = MigrationTask("migration_1", "cursor", "codex", _items(2))
        child = MigrationEngine.derive_retry_task(task, _items(1))
        assert child.parent_id == "migration_1"
        assert child.status is MigrationStatus.PENDING
        assert len(child.items) == 1


class TestStats:

    def test_success_rate(self) -> None:
        tasks = [
            MigrationTask("a", "cursor", "codex", _items(3), status=MigrationStatus.COMPLETED),
            MigrationTask("b", "cursor", "codex", _items(1), status=MigrationStatus.FAILED),
        ]
        stats = MigrationEngine.migration_stats(tasks)
        assert stats.total_tasks == 2
        assert stats.completed_tasks == 1
        assert stats.failed_tasks == 1
        assert stats.total_items == 4
        assert stats.successful_items == 3
        assert stats.success_rate == 75.0

    def test_no_tasks(self) -> None:
        assert MigrationEngine.migration_stats([]).success_rate == 0.0
