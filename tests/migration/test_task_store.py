"""Tests for the migration task lifecycle and history."""

from __future__ import annotations

import json

import pytest

from mcpbridge.capabilities import MemoryStore
from mcpbridge.exceptions import ExportError, InvalidTransitionError, StorageError
from mcpbridge.migration import MigrationStatus, MigrationTaskStore
from mcpbridge.migration.task_store import ACTIVE_KEY, HISTORY_KEY

from tests.helpers import make_collection


@pytest.fixture
def tasks(memory_store) -> MigrationTaskStore:
    return MigrationTaskStore(memory_store)


def _create(tasks: MigrationTaskStore, count: int = 2):
    items = [make_collection(collection_id=f"mcp_{i}") for i in range(count)]
    return tasks.create("cursor", "codex", items)


class TestLifecycle:

    def test_create_is_pending(self, tasks) -> None:
        task = _create(tasks)
        assert task.status is MigrationStatus.PENDING
        assert task.id.startswith("migration_")
        assert tasks.active() == [task]
        assert tasks.get(task.id) is task

    def test_completed_moves_to_history(self, tasks) -> None:
        task = _create(tasks)
        tasks.transition(task.id, MigrationStatus.IN_PROGRESS)
        finished = tasks.transition(task.id, MigrationStatus.COMPLETED)
        assert finished.progress == 100
        assert finished.completed_at is not None
        assert tasks.active() == []
        assert [t.id for t in tasks.history()] == [task.id]

    def test_failed_keeps_error(self, tasks) -> None:
        task = _create(tasks)
        tasks.transition(task.id, MigrationStatus.IN_PROGRESS)
        tasks.transition(task.id, MigrationStatus.FAILED, error="boom")
        recorded = tasks.get(task.id)
        assert recorded.status is MigrationStatus.FAILED
        assert recorded.error == "boom"

    @pytest.mark.parametrize("status", [MigrationStatus.COMPLETED, MigrationStatus.FAILED])
    def test_pending_cannot_finish(self, tasks, status) -> None:
        task = _create(tasks)
        with pytest.raises(InvalidTransitionError):
            tasks.transition(task.id, status)
        assert task.status is MigrationStatus.PENDING

    def test_terminal_has_no_edges(self, tasks) -> None:
        task = _create(tasks)
        tasks.cancel(task.id)
        with pytest.raises(InvalidTransitionError):
            tasks.transition(task.id, MigrationStatus.IN_PROGRESS)

    def test_record_progress_never_decreases(self, tasks) -> None:
        task = _create(tasks)
        tasks.record_progress(task.id, 60)
        tasks.record_progress(task.id, 40)
        tasks.record_progress(task.id, 250)
        assert tasks.get(task.id).progress == 100


class TestCancel:

    def test_cancel_pending(self, tasks) -> None:
        task = _create(tasks)
        assert tasks.cancel(task.id)
        recorded = tasks.get(task.id)
        assert recorded.status is MigrationStatus.CANCELLED
        assert recorded.error == "Migration cancelled"
        assert recorded.progress == 0

    def test_cancel_completed_returns_false(self, tasks) -> None:
        task = _create(tasks)
        tasks.transition(task.id, MigrationStatus.IN_PROGRESS)
        tasks.transition(task.id, MigrationStatus.COMPLETED)
        assert not tasks.cancel(task.id)
        assert tasks.get(task.id).status is MigrationStatus.COMPLETED

    def test_cancel_unknown(self, tasks) -> None:
        assert not tasks.cancel("migration_missing")

    def test_settle_engine_cancelled_task(self, tasks) -> None:
        task = _create(tasks)
        tasks.transition(task.id, MigrationStatus.IN_PROGRESS)
        task.status = MigrationStatus.CANCELLED
        tasks.settle(task)
        assert tasks.active() == []
        assert tasks.history()[0].completed_at is not None


class TestPersistence:

    def test_reload_from_store(self, memory_store) -> None:
        task = _create(MigrationTaskStore(memory_store))
        reloaded = MigrationTaskStore(memory_store).get(task.id)
        assert reloaded.items[0].id == "mcp_0"

    def test_task_in_both_sets_is_reconciled(self, memory_store) -> None:
        """A task already in history is dropped from the active set on load."""
        task = _create(MigrationTaskStore(memory_store))
        record = task.to_dict()
        record["status"] = "completed"
        memory_store.write_json(HISTORY_KEY, [record])
        reloaded = MigrationTaskStore(memory_store)
        assert reloaded.active() == []
        assert len(reloaded.history()) == 1

    def test_history_is_copied(self, tasks) -> None:
        task = _create(tasks)
        tasks.cancel(task.id)
        tasks.history()[0].error = "changed"
        assert tasks.history()[0].error == "Migration cancelled"

    def test_cleanup_terminal(self, memory_store) -> None:
        task = _create(MigrationTaskStore(memory_store))
        record = task.to_dict()
        record["status"] = "failed"
        memory_store.write_json(ACTIVE_KEY, [record])
        tasks = MigrationTaskStore(memory_store)
        assert tasks.cleanup_terminal() == 1
        assert tasks.active() == []
        assert tasks.history()[0].status is MigrationStatus.FAILED

    def test_corrupt_active_list(self, memory_store) -> None:
        memory_store.write_json(ACTIVE_KEY, [{"id": "x"}])
        with pytest.raises(StorageError):
            MigrationTaskStore(memory_store).active()

    def test_rejected_write(self) -> None:
        class RejectingStore(MemoryStore):
            def write_json(self, key, value) -> bool:
                return False

        with pytest.raises(StorageError):
            _create(MigrationTaskStore(RejectingStore()))

    def test_rejected_history_write_keeps_task_active(self) -> None:
        class HistoryDownStore(MemoryStore):
            reject_history = True

            def write_json(self, key, value) -> bool:
                if key == HISTORY_KEY and self.reject_history:
                    return False
                return super().write_json(key, value)

        store = HistoryDownStore()
        tasks = MigrationTaskStore(store)
        task = _create(tasks)
        tasks.transition(task.id, MigrationStatus.IN_PROGRESS)

        with pytest.raises(StorageError):
            tasks.transition(task.id, MigrationStatus.COMPLETED)
        assert tasks.active() == [task]
        assert task.status is MigrationStatus.IN_PROGRESS
        assert task.completed_at is None
        assert tasks.history() == []

        store.reject_history = False
        tasks.transition(task.id, MigrationStatus.COMPLETED)
        assert tasks.active() == []
        assert [t.status for t in tasks.history()] == [MigrationStatus.COMPLETED]

    def test_rejected_active_write_restores_status(self, memory_store, monkeypatch) -> None:
        tasks = MigrationTaskStore(memory_store)
        task = _create(tasks)
        monkeypatch.setattr(memory_store, "write_json", lambda key, value: False)
        with pytest.raises(StorageError):
            tasks.transition(task.id, MigrationStatus.IN_PROGRESS)
        assert task.status is MigrationStatus.PENDING

    def test_stats(self, tasks) -> None:
        done = _create(tasks, count=3)
        tasks.transition(done.id, MigrationStatus.IN_PROGRESS)
        tasks.transition(done.id, MigrationStatus.COMPLETED)
        _create(tasks, count=1)
        stats = tasks.stats()
        assert stats.total_tasks == 2
        assert stats.completed_tasks == 1
        assert stats.success_rate == 75.0


class TestHistoryInterchange:

    def test_export_and_import(self, tasks) -> None:
        task = _create(tasks)
        tasks.cancel(task.id)
        text = tasks.export_history()
        assert "exportedAt" in json.loads(text)

        target = MigrationTaskStore(MemoryStore())
        assert target.import_history(text) == 1
        assert target.import_history(text) == 0
        assert target.history()[0].id == task.id

    def test_import_skips_active_tasks(self, tasks) -> None:
        pending = _create(tasks).to_dict()
        assert tasks.import_history(json.dumps({"tasks": [pending]})) == 0

    def test_clear_history(self, tasks) -> None:
        tasks.cancel(_create(tasks).id)
        tasks.clear_history()
        assert tasks.history() == []

    @pytest.mark.parametrize("text", ["{nope", json.dumps({"tasks": "x"})])
    def test_invalid_import(self, tasks, text) -> None:
        with pytest.raises(ExportError):
            tasks.import_history(text)
