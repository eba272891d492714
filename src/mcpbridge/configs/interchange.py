"""JSON interchange for saved configurations.

Export shapes::

    {"tools": [<profile>, ...], "configs": [<entry>, ...], ...}   # everything
    {"tool": <profile>, "configs": [<entry>, ...], ...}           # one tool

Both carry ``exportVersion`` and ``exportedAt``. Import accepts either shape
plus the legacy bare array of entries:

- full export: replaces every saved entry;
- single-tool export: replaces that tool's entries, re-tagging each with
  the tool id;
- bare array: appends, defaulting a missing tool id to the first tool.

Unknown tools in an import are registered as custom tools. Entries that
cannot be read are reported in ``ImportOutcome.errors`` and skipped.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from mcpbridge import __version__
from mcpbridge.configs.models import ConfigEntry, ImportOutcome
from mcpbridge.configs.repository import ConfigRepository, profile_from_dict
from mcpbridge.exceptions import ExportError, ParseError

EXPORT_VERSION = "1.0.0"


def export_configs(repo: ConfigRepository, tool_id: str | None = None) -> dict[str, Any]:
    """Build the export document for all tools or a single tool.

    Raises:
        ExportError: If ``tool_id`` names an unknown tool.
    """
    if tool_id is None:
        payload: dict[str, Any] = {
            "tools": [t.to_dict() for t in repo.tools()],
            "configs": [e.to_dict() for e in repo.all()],
        }
    else:
        tool = repo.get_tool(tool_id)
        if tool is None:
            raise ExportError(f"Unknown tool: {tool_id}")
        payload = {
            "tool": tool.to_dict(),
            "configs": [e.to_dict() for e in repo.by_tool(tool_id)],
        }
    payload["exportVersion"] = EXPORT_VERSION
    payload["exportedAt"] = datetime.now(timezone.utc).isoformat()
    payload["exportedBy"] = f"mcpbridge {__version__}"
    return payload


def export_configs_json(repo: ConfigRepository, tool_id: str | None = None) -> str:
    return json.dumps(export_configs(repo, tool_id), indent=2, sort_keys=True)


def import_configs(repo: ConfigRepository, text: str) -> ImportOutcome:
    """Import an export document (or legacy array) into ``repo``.

    Raises:
        ExportError: If ``text`` is not JSON or matches no known shape.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExportError(f"Import is not valid JSON: {exc}") from exc

    outcome = ImportOutcome()
    if isinstance(data, dict) and isinstance(data.get("tools"), list) and isinstance(data.get("configs"), list):
        for raw_tool in data["tools"]:
            _register_tool(repo, raw_tool, outcome)
        entries = _read_entries(data["configs"], None, outcome)
        outcome.imported = repo.replace_all(entries)
    elif isinstance(data, dict) and isinstance(data.get("tool"), dict) and isinstance(data.get("configs"), list):
        tool = _register_tool(repo, data["tool"], outcome)
        if tool is None:
            raise ExportError("Single-tool import has an invalid tool profile")
        entries = _read_entries(data["configs"], tool, outcome)
        outcome.imported = repo.replace_tool_entries(tool, entries)
        outcome.replaced_tools.append(tool)
    elif isinstance(data, list):
        tools = repo.tools()
        default_tool = tools[0].id if tools else None
        known = {e.id for e in repo.all()}
        entries = []
        for entry in _read_entries(data, default_tool, outcome):
            if entry.id in known:
                outcome.errors.append(f"Entry {entry.id!r} already exists")
                continue
            known.add(entry.id)
            entries.append(entry)
        outcome.imported = len(repo.add_many(entries))
    else:
        raise ExportError("Unrecognised import format")
    return outcome


def _register_tool(repo: ConfigRepository, raw: Any, outcome: ImportOutcome) -> str | None:
    try:
        profile = profile_from_dict(raw)
    except ParseError as exc:
        outcome.errors.append(str(exc))
        return None
    if repo.get_tool(profile.id) is None:
        repo.add_tool(profile)
    return profile.id


def _read_entries(raw_entries: list[Any], tool_id: str | None, outcome: ImportOutcome) -> list[ConfigEntry]:
    entries = []
    for index, raw in enumerate(raw_entries):
        try:
            entry = ConfigEntry.from_dict(raw, default_tool=tool_id)
        except ParseError as exc:
            outcome.errors.append(f"Entry {index}: {exc}")
            continue
        entries.append(entry)
    return entries
