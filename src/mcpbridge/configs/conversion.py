"""Conversions between saved entries, scan findings and canonical collections.

A saved server entry becomes a one-snippet collection for migration:

- ``metadata.name`` is the server name and ``metadata.configuration`` the
  server definition;
- the snippet body is the launch command line (``command`` plus ``args``),
  or the definition as JSON for URL-based servers;
- the snippet context remembers whether the entry was enabled.

Converting back takes the name and configuration from the metadata.
"""

from __future__ import annotations

import json
import shlex
from typing import TYPE_CHECKING, Any

from mcpbridge.configs.models import ConfigEntry
from mcpbridge.model.canonical import build_collection, build_metadata, build_snippet
from mcpbridge.model.models import MCPCollection
from mcpbridge.settings import Settings

if TYPE_CHECKING:
    from mcpbridge.discovery.models import FoundConfig


def command_line(config: dict[str, Any]) -> str | None:
    """Render ``command`` and ``args`` as one shell line, if there is a command."""
    command = config.get("command")
    if not isinstance(command, str) or not command:
        return None
    args = config.get("args", [])
    if not isinstance(args, list):
        args = []
    return shlex.join([command, *(str(a) for a in args)])


def entry_to_collection(entry: ConfigEntry) -> MCPCollection:
    line = command_line(entry.config)
    content = line if line is not None else json.dumps(entry.config, sort_keys=True, default=str)
    snippet = build_snippet(
        id=f"{entry.id}-server",
        content=content,
        language="shell" if line is not None else "json",
        tags=["mcp-server"],
        context={"enabled": entry.enabled},
    )
    metadata = build_metadata(
        name=entry.name,
        tags=["mcp-server"],
        configuration=entry.config,
    )
    return build_collection(
        id=entry.id,
        source_tool=entry.tool_id,
        snippets=[snippet],
        metadata=metadata,
        created_at=entry.last_modified,
        updated_at=entry.last_modified,
    )


def collection_to_entry(collection: MCPCollection, tool_id: str | None = None) -> ConfigEntry:
    """Build a new saved entry for ``tool_id`` from a canonical collection."""
    enabled = True
    for snippet in collection.code_snippets:
        if snippet.context and isinstance(snippet.context.get("enabled"), bool):
            enabled = snippet.context["enabled"]
            break
    return ConfigEntry.create(
        name=collection.metadata.name,
        config=dict(collection.metadata.configuration or {}),
        tool_id=tool_id or collection.source_tool,
        enabled=enabled,
    )


def found_to_entry(found: FoundConfig, tool_id: str, settings: Settings | None = None) -> ConfigEntry:
    """Turn a confirmed scan finding into a saved entry.

    Entries are enabled when the scanner's confidence exceeds the
    configured threshold.
    """
    threshold = (settings or Settings()).enable_threshold
    return ConfigEntry.create(
        name=found.name,
        config=found.raw_config,
        tool_id=tool_id,
        enabled=found.confidence > threshold,
        source_file=found.source_file,
        confidence=found.confidence,
    )
