"""Persistent store of saved configuration entries and canonical collections.

State lives in a ``KeyedStore`` under three keys:

- ``mcp_configs`` -- saved ``ConfigEntry`` records.
- ``mcp_collections`` -- canonical ``MCPCollection`` records.
- ``tool_profiles`` -- user-registered tools beyond the built-in profiles.
- ``custom_scan_paths`` -- extra scan paths per tool id.

The repository loads lazily and writes through on every mutation. A store
that reports a failed write raises ``StorageError``; it is never ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from mcpbridge.adapters.codecs import Format
from mcpbridge.capabilities import KeyedStore
from mcpbridge.configs.conversion import found_to_entry
from mcpbridge.configs.models import ConfigEntry
from mcpbridge.discovery.models import ScanResult
from mcpbridge.discovery.tool_registry import TOOL_PROFILES, ToolProfile, with_extra_paths
from mcpbridge.exceptions import MCPBridgeError, ParseError, StorageError
from mcpbridge.model.canonical import utc_now
from mcpbridge.model.models import MCPCollection
from mcpbridge.model.serialization import collection_from_dict, collection_to_dict
from mcpbridge.model.validator import CollectionValidator
from mcpbridge.settings import Settings

logger = logging.getLogger(__name__)

CONFIGS_KEY = "mcp_configs"
COLLECTIONS_KEY = "mcp_collections"
TOOLS_KEY = "tool_profiles"
CUSTOM_PATHS_KEY = "custom_scan_paths"


class ConfigRepository:
    """CRUD, search and statistics over saved configuration entries."""

    def __init__(
        self,
        store: KeyedStore,
        settings: Settings | None = None,
        builtin_tools: Iterable[ToolProfile] = TOOL_PROFILES,
    ) -> None:
        self._store = store
        self._settings = settings if settings is not None else Settings()
        self._builtin = tuple(builtin_tools)
        self._entries: list[ConfigEntry] | None = None

    # -- Tools -------------------------------------------------------------

    def tools(self) -> list[ToolProfile]:
        """Built-in profiles followed by user-registered ones.

        Custom scan paths are appended to each tool's candidate paths.
        """
        extra = self.custom_paths()
        return [with_extra_paths(t, extra.get(t.id, ())) for t in self._base_tools()]

    def get_tool(self, tool_id: str) -> ToolProfile | None:
        return next((t for t in self.tools() if t.id == tool_id), None)

    def add_tool(self, profile: ToolProfile) -> None:
        """Register a custom tool. Re-registering an id replaces it."""
        if any(t.id == profile.id for t in self._builtin):
            raise MCPBridgeError(f"{profile.id!r} is a built-in tool")
        custom = [t for t in self._custom_tools() if t.id != profile.id]
        custom.append(profile)
        self._write(TOOLS_KEY, [t.to_dict() for t in custom])

    def delete_tool(self, tool_id: str) -> bool:
        """Remove a custom tool with its entries and scan paths."""
        custom = self._custom_tools()
        remaining = [t for t in custom if t.id != tool_id]
        if len(remaining) == len(custom):
            return False
        self._write(TOOLS_KEY, [t.to_dict() for t in remaining])
        paths = self.custom_paths()
        if paths.pop(tool_id, None) is not None:
            self._write(CUSTOM_PATHS_KEY, paths)
        self._save([e for e in self._load() if e.tool_id != tool_id])
        return True

    def _base_tools(self) -> list[ToolProfile]:
        return [*self._builtin, *self._custom_tools()]

    def _custom_tools(self) -> list[ToolProfile]:
        raw = self._store.read_json(TOOLS_KEY) or []
        profiles = []
        for item in raw:
            try:
                profiles.append(profile_from_dict(item))
            except ParseError:
                logger.warning("Ignoring malformed tool profile: %r", item)
        return profiles

    # -- Custom scan paths -------------------------------------------------

    def custom_paths(self) -> dict[str, list[str]]:
        """User-added scan paths keyed by tool id."""
        raw = self._store.read_json(CUSTOM_PATHS_KEY) or {}
        if not isinstance(raw, dict):
            raise StorageError("Custom scan paths are corrupt", CUSTOM_PATHS_KEY)
        return {
            tool_id: [p for p in paths if isinstance(p, str)]
            for tool_id, paths in raw.items()
            if isinstance(paths, list)
        }

    def add_custom_path(self, tool_id: str, path: str) -> bool:
        """Add a scan path for ``tool_id``. Returns False if already present.

        Raises:
            MCPBridgeError: If the tool is unknown or the path is empty.
        """
        if not any(t.id == tool_id for t in self._base_tools()):
            raise MCPBridgeError(f"Unknown tool: {tool_id}")
        path = path.strip()
        if not path:
            raise MCPBridgeError("Scan path must not be empty")
        paths = self.custom_paths()
        current = paths.setdefault(tool_id, [])
        if path in current:
            return False
        current.append(path)
        self._write(CUSTOM_PATHS_KEY, paths)
        logger.info("Added scan path %s for %s", path, tool_id)
        return True

    def remove_custom_path(self, tool_id: str, path: str) -> bool:
        paths = self.custom_paths()
        current = paths.get(tool_id, [])
        if path not in current:
            return False
        current.remove(path)
        if not current:
            del paths[tool_id]
        self._write(CUSTOM_PATHS_KEY, paths)
        return True

    # -- Entries -----------------------------------------------------------

    def all(self) -> list[ConfigEntry]:
        return list(self._load())

    def by_tool(self, tool_id: str) -> list[ConfigEntry]:
        return [e for e in self._load() if e.tool_id == tool_id]

    def get(self, entry_id: str) -> ConfigEntry | None:
        return next((e for e in self._load() if e.id == entry_id), None)

    def add(self, entry: ConfigEntry) -> ConfigEntry:
        entries = self._load()
        if any(e.id == entry.id for e in entries):
            raise MCPBridgeError(f"Config entry {entry.id!r} already exists")
        entries.append(entry)
        self._save(entries)
        return entry

    def add_many(self, new_entries: Iterable[ConfigEntry]) -> list[ConfigEntry]:
        entries = self._load()
        known = {e.id for e in entries}
        added = []
        for entry in new_entries:
            if entry.id in known:
                raise MCPBridgeError(f"Config entry {entry.id!r} already exists")
            known.add(entry.id)
            added.append(entry)
        self._save(entries + added)
        return added

    def add_from_scan(
        self,
        results: Iterable[ScanResult],
        selected: set[tuple[str, str]] | None = None,
    ) -> list[ConfigEntry]:
        """Save confirmed scan findings as new entries.

        Args:
            results: Scan results to take findings from.
            selected: ``(tool_id, name)`` pairs the user confirmed. When
                None, every finding is saved.

        Returns:
            The new entries. Each is enabled when its confidence exceeds
            the enable threshold.
        """
        new_entries = [
            found_to_entry(found, result.tool_id, self._settings)
            for result in results
            for found in result.found_configs
            if selected is None or (result.tool_id, found.name) in selected
        ]
        return self.add_many(new_entries)

    def update(self, entry: ConfigEntry) -> bool:
        entries = self._load()
        for index, existing in enumerate(entries):
            if existing.id == entry.id:
                entries[index] = replace(entry, last_modified=utc_now())
                self._save(entries)
                return True
        return False

    def delete(self, entry_id: str) -> bool:
        entries = self._load()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self._save(remaining)
        return True

    def toggle(self, entry_id: str) -> bool:
        entry = self.get(entry_id)
        if entry is None:
            return False
        return self.update(replace(entry, enabled=not entry.enabled))

    def copy_config(self, source_id: str, target_id: str) -> bool:
        """Copy the server definition of one entry onto another."""
        source, target = self.get(source_id), self.get(target_id)
        if source is None or target is None:
            return False
        return self.update(replace(target, config=dict(source.config)))

    def replace_tool_entries(self, tool_id: str, new_entries: Iterable[ConfigEntry]) -> int:
        """Replace every entry of ``tool_id`` with ``new_entries``."""
        incoming = [replace(e, tool_id=tool_id) for e in new_entries]
        kept = [e for e in self._load() if e.tool_id != tool_id]
        self._save(kept + incoming)
        return len(incoming)

    def replace_all(self, new_entries: Iterable[ConfigEntry]) -> int:
        entries = list(new_entries)
        self._save(entries)
        return len(entries)

    def search(self, query: str, tool_id: str | None = None) -> list[ConfigEntry]:
        """Case-insensitive substring search over names and ids."""
        pool = self.by_tool(tool_id) if tool_id else self.all()
        needle = query.strip().lower()
        if not needle:
            return pool
        return [e for e in pool if needle in e.name.lower() or needle in e.id.lower()]

    def stats(self) -> dict[str, dict[str, int]]:
        """Per-tool ``{"total": n, "enabled": m}`` counts for tools with entries."""
        counts: dict[str, dict[str, int]] = {}
        for entry in self._load():
            bucket = counts.setdefault(entry.tool_id, {"total": 0, "enabled": 0})
            bucket["total"] += 1
            bucket["enabled"] += int(entry.enabled)
        return counts

    # -- Collections -------------------------------------------------------

    def collections(self) -> list[MCPCollection]:
        raw = self._store.read_json(COLLECTIONS_KEY) or []
        if not isinstance(raw, list):
            raise StorageError("Collection list is corrupt", COLLECTIONS_KEY)
        return [collection_from_dict(item) for item in raw]

    def save_collections(self, new_items: Iterable[MCPCollection]) -> int:
        """Append collections, rejecting ids already present."""
        merged = self.collections() + list(new_items)
        check = CollectionValidator().validate_unique_ids(merged)
        if not check.is_valid:
            raise MCPBridgeError("; ".join(check.errors))
        self._write(COLLECTIONS_KEY, [collection_to_dict(c) for c in merged])
        return len(merged)

    # -- Snapshots ---------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Entries, custom tools and scan paths as one JSON-ready document."""
        return {
            "configs": [e.to_dict() for e in self._load()],
            "tools": [t.to_dict() for t in self._custom_tools()],
            "custom_paths": self.custom_paths(),
        }

    def restore_snapshot(self, data: Any) -> int:
        """Replace entries, custom tools and scan paths with ``snapshot`` output.

        The whole document is parsed before anything is written.

        Returns:
            The number of restored entries.

        Raises:
            ParseError: If the document is malformed.
        """
        if not isinstance(data, dict):
            raise ParseError("Snapshot must be an object")
        raw_configs, raw_tools = data.get("configs", []), data.get("tools", [])
        paths = data.get("custom_paths", {})
        if not isinstance(raw_configs, list) or not isinstance(raw_tools, list):
            raise ParseError("Snapshot configs and tools must be lists")
        if not isinstance(paths, dict) or not all(
            isinstance(v, list) and all(isinstance(p, str) for p in v) for v in paths.values()
        ):
            raise ParseError("Snapshot scan paths must map tool ids to path lists")
        entries = [ConfigEntry.from_dict(item) for item in raw_configs]
        tools = [profile_from_dict(item) for item in raw_tools]

        self._write(TOOLS_KEY, [t.to_dict() for t in tools])
        self._write(CUSTOM_PATHS_KEY, paths)
        self._save(entries)
        return len(entries)

    # -- Persistence -------------------------------------------------------

    def _load(self) -> list[ConfigEntry]:
        if self._entries is None:
            raw = self._store.read_json(CONFIGS_KEY) or []
            if not isinstance(raw, list):
                raise StorageError("Config list is corrupt", CONFIGS_KEY)
            try:
                self._entries = [ConfigEntry.from_dict(item) for item in raw]
            except ParseError as exc:
                raise StorageError(f"Config list is corrupt ({exc})", CONFIGS_KEY) from exc
        return self._entries

    def _save(self, entries: list[ConfigEntry]) -> None:
        self._write(CONFIGS_KEY, [e.to_dict() for e in entries])
        self._entries = list(entries)

    def _write(self, key: str, value: Any) -> None:
        if not self._store.write_json(key, value):
            raise StorageError("Store rejected write", key)


def profile_from_dict(data: Any) -> ToolProfile:
    """Rebuild a ``ToolProfile`` from ``ToolProfile.to_dict`` output.

    Raises:
        ParseError: If the id, name or paths are missing.
    """
    if not isinstance(data, dict):
        raise ParseError("Tool profile must be an object")
    tool_id, name = data.get("id"), data.get("name")
    if not isinstance(tool_id, str) or not tool_id or not isinstance(name, str) or not name:
        raise ParseError("Tool profile needs an id and a name")
    paths = data.get("candidate_paths") or ([data["defaultPath"]] if data.get("defaultPath") else [])
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise ParseError(f"Tool {tool_id!r} has invalid candidate paths")
    try:
        fmt = Format(data.get("format", "json"))
    except ValueError as exc:
        raise ParseError(f"Tool {tool_id!r} has an unknown format") from exc
    return ToolProfile(id=tool_id, name=name, candidate_paths=tuple(paths), default_format=fmt)
