"""Tests for ConfigRepository CRUD, tools and collections."""

from __future__ import annotations

import pytest

from mcpbridge.adapters.codecs import Format
from mcpbridge.capabilities import MemoryStore
from mcpbridge.configs.models import ConfigEntry
from mcpbridge.configs.repository import CONFIGS_KEY, ConfigRepository, profile_from_dict
from mcpbridge.discovery.models import FoundConfig, ScanResult
from mcpbridge.discovery.tool_registry import ToolProfile
from mcpbridge.exceptions import MCPBridgeError, ParseError, StorageError

from tests.helpers import make_collection


class RejectingStore(MemoryStore):
    def write_json(self, key, value) -> bool:
        return False


@pytest.fixture
def repo(memory_store) -> ConfigRepository:
    return ConfigRepository(memory_store)


def _entry(name: str = "memory", tool: str = "cursor", enabled: bool = True) -> ConfigEntry:
    return ConfigEntry.create(name=name, config={"command": "npx"}, tool_id=tool, enabled=enabled)


class TestEntries:
    """Saved entry CRUD."""

    def test_add_and_get(self, repo) -> None:
        entry = repo.add(_entry())
        assert repo.get(entry.id) == entry
        assert repo.all() == [entry]

    def test_persisted_across_instances(self, memory_store) -> None:
        entry = ConfigRepository(memory_store).add(_entry())
        assert ConfigRepository(memory_store).get(entry.id).name == "memory"

    def test_duplicate_id_rejected(self, repo) -> None:
        entry = repo.add(_entry())
        with pytest.raises(MCPBridgeError):
            repo.add(entry)

    def test_by_tool(self, repo) -> None:
        repo.add_many([_entry(), _entry(tool="windsurf")])
        assert [e.tool_id for e in repo.by_tool("windsurf")] == ["windsurf"]

    def test_update_touches_last_modified(self, repo) -> None:
        entry = repo.add(_entry())
        entry.name = "renamed"
        assert repo.update(entry)
        stored = repo.get(entry.id)
        assert stored.name == "renamed"
        assert stored.last_modified >= entry.last_modified

    def test_update_missing(self, repo) -> None:
        assert not repo.update(_entry())

    def test_delete(self, repo) -> None:
        entry = repo.add(_entry())
        assert repo.delete(entry.id)
        assert not repo.delete(entry.id)
        assert repo.all() == []

    def test_toggle(self, repo) -> None:
        entry = repo.add(_entry())
        assert repo.toggle(entry.id)
        assert not repo.get(entry.id).enabled
        assert not repo.toggle("missing")

    def test_copy_config(self, repo) -> None:
        source = repo.add(ConfigEntry.create("a", {"command": "uvx", "args": ["x"]}, "cursor"))
        target = repo.add(_entry(name="b"))
        assert repo.copy_config(source.id, target.id)
        assert repo.get(target.id).config == {"command": "uvx", "args": ["x"]}
        assert repo.get(target.id).name == "b"

    def test_search(self, repo) -> None:
        repo.add_many([_entry("Memory"), _entry("git"), _entry("memo", tool="windsurf")])
        assert {e.name for e in repo.search("MEM")} == {"Memory", "memo"}
        assert [e.name for e in repo.search("mem", tool_id="windsurf")] == ["memo"]
        assert len(repo.search("  ")) == 3

    def test_stats(self, repo) -> None:
        repo.add_many([_entry(), _entry(enabled=False), _entry(tool="aider")])
        assert repo.stats() == {
            "cursor": {"total": 2, "enabled": 1},
            "aider": {"total": 1, "enabled": 1},
        }

    def test_replace_tool_entries(self, repo) -> None:
        repo.add_many([_entry("old"), _entry("keep", tool="aider")])
        count = repo.replace_tool_entries("cursor", [_entry("new", tool="elsewhere")])
        assert count == 1
        assert sorted((e.tool_id, e.name) for e in repo.all()) == [("aider", "keep"), ("cursor", "new")]

    def test_add_from_scan(self, repo) -> None:
        """Scan findings become entries enabled by confidence."""
        result = ScanResult("cursor", "Cursor", (
            FoundConfig("high", "d", {"command": "npx"}, "/f", Format.JSON, 0.9),
            FoundConfig("low", "d", {"command": "node"}, "/f", Format.JSON, 0.5),
        ))
        added = repo.add_from_scan([result])
        assert {e.name: e.enabled for e in added} == {"high": True, "low": False}
        assert [e.name for e in repo.add_from_scan([result], {("cursor", "low")})] == ["low"]


class TestStorageFailures:

    def test_rejected_write_raises(self) -> None:
        """A store reporting failure is surfaced, never ignored."""
        with pytest.raises(StorageError):
            ConfigRepository(RejectingStore()).add(_entry())

    def test_corrupt_list(self, memory_store) -> None:
        memory_store.write_json(CONFIGS_KEY, {"not": "a list"})
        with pytest.raises(StorageError):
            ConfigRepository(memory_store).all()


class TestTools:
    """Built-in and custom tools."""

    def test_builtin_tools_listed(self, repo) -> None:
        assert repo.get_tool("cursor").name == "Cursor"

    def test_add_custom_tool(self, memory_store) -> None:
        ConfigRepository(memory_store).add_tool(
            ToolProfile(id="mytool", name="My Tool", candidate_paths=("~/.mytool/mcp.json",))
        )
        assert ConfigRepository(memory_store).get_tool("mytool").default_path == "~/.mytool/mcp.json"

    def test_builtin_cannot_be_replaced(self, repo) -> None:
        with pytest.raises(MCPBridgeError):
            repo.add_tool(ToolProfile(id="cursor", name="Fake", candidate_paths=()))

    def test_delete_tool_cascades(self, repo) -> None:
        repo.add_tool(ToolProfile(id="mytool", name="My Tool", candidate_paths=("~/x.json",)))
        repo.add_many([_entry(tool="mytool"), _entry()])
        assert repo.delete_tool("mytool")
        assert [e.tool_id for e in repo.all()] == ["cursor"]
        assert not repo.delete_tool("cursor")

    def test_profile_from_legacy_dict(self) -> None:
        """Older exports carry a single defaultPath."""
        profile = profile_from_dict({"id": "t", "name": "T", "defaultPath": "~/t.json"})
        assert profile.candidate_paths == ("~/t.json",)

    @pytest.mark.parametrize("data", [
        "x", {"name": "T"}, {"id": "t", "name": "T", "candidate_paths": "p"},
        {"id": "t", "name": "T", "format": "toml"},
    ])
    def test_bad_profile(self, data) -> None:
        with pytest.raises(ParseError):
            profile_from_dict(data)


class TestCustomPaths:
    """User-added scan paths per tool."""

    def test_paths_extend_candidates(self, memory_store) -> None:
        repo = ConfigRepository(memory_store)
        assert repo.add_custom_path("cursor", "~/work/.cursor")
        assert repo.add_custom_path("cursor", "/srv/shared/cursor.yaml")
        cursor = ConfigRepository(memory_store).get_tool("cursor")
        assert cursor.candidate_paths[3:] == (
            "~/work/.cursor/mcp.json",
            "~/work/.cursor/mcp.yaml",
            "~/work/.cursor/mcp.yml",
            "/srv/shared/cursor.yaml",
        )
        assert cursor.default_path == "~/.cursor/mcp.json"

    def test_add_twice_is_noop(self, repo) -> None:
        assert repo.add_custom_path("windsurf", "/w/mcp.json")
        assert not repo.add_custom_path("windsurf", "/w/mcp.json")
        assert repo.custom_paths() == {"windsurf": ["/w/mcp.json"]}

    def test_unknown_tool_rejected(self, repo) -> None:
        with pytest.raises(MCPBridgeError, match="Unknown tool: notepad"):
            repo.add_custom_path("notepad", "/x.json")

    def test_blank_path_rejected(self, repo) -> None:
        with pytest.raises(MCPBridgeError):
            repo.add_custom_path("cursor", "  ")

    def test_remove(self, repo) -> None:
        repo.add_custom_path("cursor", "/a.json")
        assert repo.remove_custom_path("cursor", "/a.json")
        assert repo.custom_paths() == {}
        assert not repo.remove_custom_path("cursor", "/a.json")
        assert len(repo.get_tool("cursor").candidate_paths) == 3

    def test_custom_tool_paths_dropped_with_tool(self, repo) -> None:
        repo.add_tool(ToolProfile(id="mytool", name="My Tool", candidate_paths=("~/x.json",)))
        repo.add_custom_path("mytool", "/extra.json")
        repo.delete_tool("mytool")
        assert repo.custom_paths() == {}


class TestSnapshots:

    def test_restore_replaces_state(self, repo) -> None:
        repo.add_tool(ToolProfile(id="mytool", name="My Tool", candidate_paths=("~/x.json",)))
        repo.add_custom_path("cursor", "/a.json")
        kept = repo.add(_entry("memory"))
        snapshot = repo.snapshot()

        repo.add(_entry("git"))
        repo.delete_tool("mytool")
        repo.remove_custom_path("cursor", "/a.json")

        assert repo.restore_snapshot(snapshot) == 1
        assert [e.id for e in repo.all()] == [kept.id]
        assert repo.get_tool("mytool") is not None
        assert repo.custom_paths() == {"cursor": ["/a.json"]}

    @pytest.mark.parametrize("data", [
        [], {"configs": {}}, {"configs": [{"name": ""}]},
        {"custom_paths": {"cursor": "/a.json"}},
    ])
    def test_malformed_snapshot_changes_nothing(self, repo, data) -> None:
        entry = repo.add(_entry())
        with pytest.raises(ParseError):
            repo.restore_snapshot(data)
        assert repo.all() == [entry]


class TestCollections:

    def test_save_and_load(self, repo) -> None:
        repo.save_collections([make_collection(collection_id="a"), make_collection(collection_id="b")])
        assert [c.id for c in repo.collections()] == ["a", "b"]

    def test_duplicate_ids_rejected(self, repo) -> None:
        repo.save_collections([make_collection(collection_id="a")])
        with pytest.raises(MCPBridgeError):
            repo.save_collections([make_collection(collection_id="a")])
        assert len(repo.collections()) == 1
