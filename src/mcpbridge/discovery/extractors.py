"""Extract MCP server entries from a decoded configuration document.

Clients disagree on where the server map lives. Extraction tries, in
order, and stops at the first rule that yields entries:

1. ``mcpServers`` map (or list of named servers) -- structured confidence.
2. Alias keys: ``servers``, ``mcp``, then any nested object whose key
   contains "mcp" -- alias confidence.
3. Generic fallback: the document itself carries ``command`` or ``args``
   -- generic confidence.

The fallback only fires when ``command`` or ``args`` is present; a file
with neither yields nothing rather than a fabricated entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mcpbridge.settings import Settings

_STRUCTURED_KEY = "mcpServers"
_ALIAS_KEYS = ("servers", "mcp")
_GENERIC_FIELDS = ("command", "args", "env", "cwd", "url", "type", "transport")
GENERIC_NAME = "generic-config"


@dataclass(frozen=True)
class ExtractedServer:
    name: str
    config: dict[str, Any]
    confidence: float
    generic: bool = False


def extract_servers(data: Any, settings: Settings) -> list[ExtractedServer]:
    """Harvest server entries from ``data``.

    Args:
        data: Decoded document (normally a dict).
        settings: Supplies the confidence values.

    Returns:
        Entries in document order. Empty when nothing MCP-like is present.
    """
    if isinstance(data, list):
        data = {"servers": data}
    if not isinstance(data, dict):
        return []

    found = _entries_from_node(data.get(_STRUCTURED_KEY), settings.confidence_structured)
    if found:
        return found

    for key in _ALIAS_KEYS:
        found = _entries_from_node(data.get(key), settings.confidence_alias)
        if found:
            return found

    nested: list[ExtractedServer] = []
    for key, value in data.items():
        if key in (_STRUCTURED_KEY, *_ALIAS_KEYS) or "mcp" not in str(key).lower():
            continue
        if isinstance(value, dict):
            for entry in extract_servers(value, settings):
                if not entry.generic:
                    nested.append(ExtractedServer(entry.name, entry.config, settings.confidence_alias))
    if nested:
        return nested

    generic = _generic_entry(data, settings.confidence_generic)
    return [generic] if generic is not None else []


def _entries_from_node(node: Any, confidence: float) -> list[ExtractedServer]:
    entries: list[ExtractedServer] = []
    if isinstance(node, dict):
        for name, server in node.items():
            if isinstance(server, dict) and _looks_like_server(server):
                entries.append(ExtractedServer(str(name), dict(server), confidence))
    elif isinstance(node, list):
        for server in node:
            if isinstance(server, dict) and server.get("name") and _looks_like_server(server):
                config = {k: v for k, v in server.items() if k != "name"}
                entries.append(ExtractedServer(str(server["name"]), config, confidence))
    return entries


def _looks_like_server(server: dict[str, Any]) -> bool:
    return any(key in server for key in _GENERIC_FIELDS) or "commandWithArgs" in server


def _generic_entry(data: dict[str, Any], confidence: float) -> ExtractedServer | None:
    if "command" not in data and "args" not in data:
        return None
    config = {key: data[key] for key in _GENERIC_FIELDS if key in data}
    name = data.get("name")
    if not isinstance(name, str) or not name:
        name = GENERIC_NAME
    return ExtractedServer(name, config, confidence, generic=True)
