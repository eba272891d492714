"""Duplicate detection for harvested and saved configurations.

Two entries are duplicates when they share the key
``(tool_id, canonical JSON of the config, name)``. The JSON is rendered
with sorted keys, so key order in the source file does not matter and two
scans of the same unchanged file always land in the same group.

The analyzer only reports. It never drops an entry; the caller decides
what to do with each group.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from mcpbridge.discovery.models import FoundConfig, ScanResult

if TYPE_CHECKING:
    from mcpbridge.configs.models import ConfigEntry

T = TypeVar("T")

DedupKey = tuple[str, str, str]


@dataclass(frozen=True)
class DuplicateGroup(Generic[T]):
    """The first entry seen for a key plus every later entry sharing it."""

    original: T
    duplicates: tuple[T, ...] = field(default=())


def canonical_config_json(config: Any) -> str:
    """Serialize ``config`` so structurally equal values compare equal."""
    return json.dumps(config, sort_keys=True, separators=(",", ":"), default=str)


def dedup_key(tool_id: str, config: Any, name: str) -> DedupKey:
    return (tool_id, canonical_config_json(config), name)


class DeduplicationAnalyzer:
    """Groups structurally identical configurations."""

    def group(
        self,
        items: Iterable[T],
        key: Callable[[T], DedupKey],
    ) -> list[DuplicateGroup[T]]:
        """Group ``items`` by ``key``, keeping first-seen order.

        Returns:
            Only the groups that actually contain duplicates.
        """
        buckets: dict[DedupKey, list[T]] = {}
        for item in items:
            buckets.setdefault(key(item), []).append(item)
        return [
            DuplicateGroup(original=members[0], duplicates=tuple(members[1:]))
            for members in buckets.values()
            if len(members) > 1
        ]

    def find_entry_duplicates(self, entries: Sequence[ConfigEntry]) -> list[DuplicateGroup[ConfigEntry]]:
        """Find duplicate saved entries. Entries sharing an id are one entry."""
        unique: dict[str, ConfigEntry] = {}
        for entry in entries:
            unique.setdefault(entry.id, entry)
        return self.group(
            unique.values(), lambda e: dedup_key(e.tool_id, e.config, e.name)
        )

    def find_scan_duplicates(
        self, results: Sequence[ScanResult]
    ) -> list[DuplicateGroup[FoundConfig]]:
        """Find duplicate harvested configs, per tool, across scan results."""
        pairs = [(r.tool_id, fc) for r in results for fc in r.found_configs]
        groups = self.group(pairs, lambda p: dedup_key(p[0], p[1].raw_config, p[1].name))
        return [
            DuplicateGroup(original=g.original[1], duplicates=tuple(d[1] for d in g.duplicates))
            for g in groups
        ]

    def is_duplicate_of_existing(
        self, candidate: ConfigEntry, existing: Iterable[ConfigEntry]
    ) -> ConfigEntry | None:
        """Return the saved entry ``candidate`` duplicates, if any."""
        wanted = dedup_key(candidate.tool_id, candidate.config, candidate.name)
        for entry in existing:
            if entry.id != candidate.id and dedup_key(entry.tool_id, entry.config, entry.name) == wanted:
                return entry
        return None
