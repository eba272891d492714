"""Tests for the local file, store and progress capabilities."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from mcpbridge.capabilities import (
    FileAccess,
    JsonFileStore,
    KeyedStore,
    LocalFileAccess,
    LoggingProgressSink,
    MemoryStore,
    ProgressEvent,
    safe_emit,
)
from mcpbridge.exceptions import StorageError

from tests.helpers import FakeFileAccess


class TestLocalFileAccess:

    def test_resolve_home(self, tmp_path: Path) -> None:
        files = LocalFileAccess(home=tmp_path)
        assert files.resolve_home("~/.cursor/mcp.json") == str(tmp_path / ".cursor/mcp.json")
        assert files.resolve_home("~") == str(tmp_path)
        assert files.resolve_home("/etc/x") == "/etc/x"

    def test_write_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c.json"
        LocalFileAccess().write_text(str(target), "{}")
        assert target.read_text() == "{}"

    def test_write_replaces_without_leftovers(self, tmp_path: Path) -> None:
        """Atomic writes leave only the target behind."""
        target = tmp_path / "c.json"
        target.write_text("old")
        LocalFileAccess().write_text(str(target), "new")
        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["c.json"]

    def test_exists_only_for_files(self, tmp_path: Path) -> None:
        assert not LocalFileAccess().exists(str(tmp_path))
        assert not LocalFileAccess().exists(str(tmp_path / "missing"))

    def test_size(self, tmp_path: Path) -> None:
        target = tmp_path / "c.json"
        target.write_bytes(b"12345")
        assert LocalFileAccess().size(str(target)) == 5
        with pytest.raises(StorageError):
            LocalFileAccess().size(str(tmp_path / "missing"))

    def test_read_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError):
            LocalFileAccess().read_text(str(tmp_path / "missing"))

    def test_read_undecodable_raises(self, tmp_path: Path) -> None:
        target = tmp_path / "bin.json"
        target.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(StorageError):
            LocalFileAccess().read_text(str(target))

    def test_protocols(self, tmp_path: Path) -> None:
        assert isinstance(LocalFileAccess(), FileAccess)
        assert isinstance(FakeFileAccess(), FileAccess)
        assert isinstance(JsonFileStore(tmp_path), KeyedStore)
        assert isinstance(MemoryStore(), KeyedStore)


class TestJsonFileStore:

    def test_round_trip(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path)
        assert store.read_json("mcp_configs") is None
        assert store.write_json("mcp_configs", [{"a": 1}])
        assert store.read_json("mcp_configs") == [{"a": 1}]
        assert (tmp_path / "mcp_configs.json").is_file()

    def test_corrupt_entry(self, tmp_path: Path) -> None:
        (tmp_path / "broken.json").write_text("{nope")
        with pytest.raises(StorageError):
            JsonFileStore(tmp_path).read_json("broken")

    @pytest.mark.parametrize("key", ["", "../x", ".hidden"])
    def test_invalid_key(self, tmp_path: Path, key: str) -> None:
        with pytest.raises(StorageError):
            JsonFileStore(tmp_path).read_json(key)

    def test_unserializable_value(self, tmp_path: Path) -> None:
        with pytest.raises(StorageError):
            JsonFileStore(tmp_path).write_json("k", {"x": object()})


class TestMemoryStore:

    def test_values_are_copied(self) -> None:
        store = MemoryStore()
        value = {"items": [1]}
        store.write_json("k", value)
        value["items"].append(2)
        read = store.read_json("k")
        read["items"].append(3)
        assert store.read_json("k") == {"items": [1]}
        assert store.keys() == ["k"]


class TestProgress:

    def test_logging_sink(self, caplog) -> None:
        log = logging.getLogger("mcpbridge.test")
        with caplog.at_level(logging.INFO, logger="mcpbridge.test"):
            LoggingProgressSink(log).emit(ProgressEvent("info", "scanner", "hello"))
        assert "[scanner] hello" in caplog.text

    def test_safe_emit_swallows_sink_errors(self, caplog) -> None:
        class Broken:
            def emit(self, event):
                raise RuntimeError("boom")

        safe_emit(Broken(), ProgressEvent("info", "x", "y"))
        assert "Progress sink failed" in caplog.text

    def test_safe_emit_none(self) -> None:
        safe_emit(None, ProgressEvent("info", "x", "y"))
