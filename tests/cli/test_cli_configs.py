"""Tests for the ``mcpbridge configs`` command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def saved(invoke, tmp_path: Path) -> list[dict]:
    """Import three entries, two of which are duplicates."""
    entries = [
        {"id": "config_a", "name": "memory", "tool_id": "cursor", "config": {"command": "npx"}},
        {"id": "config_b", "name": "memory", "tool_id": "cursor", "config": {"command": "npx"}},
        {"id": "config_c", "name": "git", "tool_id": "windsurf", "config": {"command": "uvx"}},
    ]
    path = tmp_path / "entries.json"
    path.write_text(json.dumps(entries))
    result = invoke("configs", "import", str(path))
    assert result.exit_code == 0, result.output
    return entries


class TestList:

    def test_empty(self, invoke) -> None:
        result = invoke("configs", "list")
        assert result.exit_code == 0
        assert "No saved configurations." in result.output

    def test_filtered_json(self, invoke, saved) -> None:
        data = json.loads(invoke("configs", "list", "--tool", "windsurf", "--format", "json").stdout)
        assert [c["id"] for c in data["configs"]] == ["config_c"]
        assert data["stats"]["cursor"] == {"total": 2, "enabled": 2}


class TestExportImport:

    def test_export_to_file_and_back(self, invoke, saved, tmp_path: Path) -> None:
        target = tmp_path / "export.json"
        result = invoke("configs", "export", "-o", str(target))
        assert result.exit_code == 0
        document = json.loads(target.read_text())
        assert len(document["configs"]) == 3

        assert invoke("configs", "delete", "config_c").exit_code == 0
        restored = json.loads(invoke("configs", "import", str(target), "--format", "json").stdout)
        assert restored["imported"] == 3

    def test_export_unknown_tool(self, invoke) -> None:
        result = invoke("configs", "export", "--tool", "notepad")
        assert result.exit_code == 1

    def test_import_malformed(self, invoke, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{broken")
        result = invoke("configs", "import", str(path))
        assert result.exit_code == 2
        assert "Error:" in result.output


class TestEditing:

    def test_toggle(self, invoke, saved) -> None:
        result = invoke("configs", "toggle", "config_a")
        assert result.exit_code == 0
        assert "memory: disabled" in result.output

    def test_missing_entry(self, invoke) -> None:
        assert invoke("configs", "toggle", "config_missing").exit_code == 1
        assert invoke("configs", "delete", "config_missing").exit_code == 1

    def test_dedupe_apply(self, invoke, saved) -> None:
        data = json.loads(invoke("configs", "dedupe", "--apply", "--format", "json").stdout)
        assert data["groups"] == [{"original": "config_a", "duplicates": ["config_b"]}]
        assert data["removed"] == ["config_b"]
        listed = json.loads(invoke("configs", "list", "--format", "json").stdout)
        assert {c["id"] for c in listed["configs"]} == {"config_a", "config_c"}


class TestWrite:

    def test_write_to_explicit_path(self, invoke, saved, tmp_path: Path) -> None:
        target = tmp_path / "out" / "mcp.json"
        result = invoke("configs", "write", "cursor", "--path", str(target))
        assert result.exit_code == 0
        assert json.loads(target.read_text()) == {"mcpServers": {"memory": {"command": "npx"}}}

    def test_dry_run_leaves_file(self, invoke, saved, home: Path) -> None:
        result = invoke("configs", "write", "windsurf", "--dry-run")
        assert result.exit_code == 0
        assert not (home / ".windsurf" / "mcp.json").exists()

    def test_default_path_with_backup(self, invoke, saved, home: Path) -> None:
        target = home / ".windsurf" / "mcp.json"
        target.parent.mkdir(parents=True)
        target.write_text(json.dumps({"mcpServers": {"old": {"command": "node"}}}))
        assert invoke("configs", "write", "windsurf").exit_code == 0
        assert set(json.loads(target.read_text())["mcpServers"]) == {"old", "git"}
        assert len(list(target.parent.glob("mcp.json.bak-*"))) == 1

    def test_unknown_tool(self, invoke) -> None:
        assert invoke("configs", "write", "notepad").exit_code == 1

    def test_malformed_target(self, invoke, saved, home: Path) -> None:
        target = home / ".windsurf" / "mcp.json"
        target.parent.mkdir(parents=True)
        target.write_text("{broken")
        assert invoke("configs", "write", "windsurf").exit_code == 2
