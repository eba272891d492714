"""Tests for ``mcpbridge migrate`` and ``mcpbridge history``."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def scanned(invoke, cursor_config) -> None:
    result = invoke("scan", "--tool", "cursor", "--save")
    assert result.exit_code == 0, result.output


class TestMigrate:

    def test_rejects_same_tool(self, invoke) -> None:
        result = invoke("migrate", "cursor", "cursor")
        assert result.exit_code == 2
        assert "Source and target tools cannot be the same" in result.output

    def test_rejects_unsupported_tool(self, invoke) -> None:
        data = json.loads(invoke("migrate", "cursor", "notepad", "--format", "json").stdout)
        assert data == {"success": False, "errors": ["Unsupported target tool: notepad"]}

    def test_nothing_to_migrate(self, invoke) -> None:
        result = invoke("migrate", "cursor", "kilocode")
        assert result.exit_code == 2
        assert "Nothing to migrate for cursor" in result.output

    def test_migrate_and_save(self, invoke, scanned) -> None:
        result = invoke("migrate", "cursor", "kilocode", "--save", "--format", "json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["success"]
        assert data["migrated_count"] == 2
        assert data["saved"] == 2

        listed = json.loads(invoke("configs", "list", "--tool", "kilo-code", "--format", "json").stdout)
        assert sorted(c["name"] for c in listed["configs"]) == ["git", "memory"]
        memory = next(c for c in listed["configs"] if c["name"] == "memory")
        assert memory["config"] == {"command": "npx", "args": ["-y", "@modelcontextprotocol/server-memory"]}

    def test_migrate_selected_ids(self, invoke, scanned) -> None:
        listed = json.loads(invoke("configs", "list", "--format", "json").stdout)
        first = listed["configs"][0]["id"]
        data = json.loads(invoke("migrate", "cursor", "codex", "--id", first, "--format", "json").stdout)
        assert data["migrated_count"] == 1

    def test_text_output(self, invoke, scanned) -> None:
        result = invoke("migrate", "cursor", "tabnine")
        assert result.exit_code == 0
        assert "migration_" in result.output

    def test_collections_without_profile_saved_as_collections(self, invoke, scanned) -> None:
        """Codex has no scanned tool, so converted items stay collections."""
        data = json.loads(invoke("migrate", "cursor", "codex", "--save", "--format", "json").stdout)
        assert data["saved"] == 2
        again = json.loads(invoke("migrate", "codex", "tabnine", "--format", "json").stdout)
        assert again["migrated_count"] == 2


class TestHistory:

    def test_empty(self, invoke) -> None:
        result = invoke("history")
        assert result.exit_code == 0
        assert "No migrations recorded." in result.output

    def test_records_runs(self, invoke, scanned) -> None:
        invoke("migrate", "cursor", "kilocode")
        data = json.loads(invoke("history", "--format", "json").stdout)
        assert len(data["tasks"]) == 1
        task = data["tasks"][0]
        assert task["status"] == "completed"
        assert task["item_count"] == 2
        assert data["stats"]["success_rate"] == 100.0

    def test_export_import_clear(self, invoke, scanned, tmp_path: Path) -> None:
        invoke("migrate", "cursor", "kilocode")
        target = tmp_path / "history.json"
        assert invoke("history", "--export", str(target)).exit_code == 0
        assert json.loads(target.read_text())["tasks"]

        invoke("history", "--clear")
        assert json.loads(invoke("history", "--format", "json").stdout)["tasks"] == []

        result = invoke("history", "--import", str(target), "--format", "json")
        assert len(json.loads(result.stdout)["tasks"]) == 1
