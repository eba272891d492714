"""Saved configuration entries.

A ``ConfigEntry`` is one MCP server configuration the user has confirmed
from a scan (or imported, or created by a migration). It is the unit the
repository stores, the deduplication analyzer compares, and the writer
puts back into a tool's file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from mcpbridge.exceptions import ParseError
from mcpbridge.model.canonical import (
    InvalidTimestamp,
    format_timestamp,
    generate_id,
    parse_timestamp,
    utc_now,
)


@dataclass
class ConfigEntry:
    """A saved MCP server configuration for one tool.

    Attributes:
        id: Unique within the repository.
        name: Server name as it appears in the tool's server map.
        enabled: Whether the entry is written out to the tool.
        config: The server definition (command, args, env, ...).
        last_modified: Last change, timezone-aware.
        tool_id: Tool the entry belongs to.
        source_file: File it was harvested from, when it came from a scan.
        confidence: Scanner confidence, when it came from a scan.
    """

    id: str
    name: str
    enabled: bool
    config: dict[str, Any]
    last_modified: datetime
    tool_id: str
    source_file: str | None = None
    confidence: float | None = None

    @classmethod
    def create(
        cls,
        name: str,
        config: dict[str, Any],
        tool_id: str,
        enabled: bool = True,
        **extra: Any,
    ) -> ConfigEntry:
        return cls(
            id=generate_id("config"),
            name=name,
            enabled=enabled,
            config=dict(config),
            last_modified=utc_now(),
            tool_id=tool_id,
            **extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "config": self.config,
            "last_modified": format_timestamp(self.last_modified),
            "tool_id": self.tool_id,
        }
        if self.source_file is not None:
            data["source_file"] = self.source_file
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: Any, default_tool: str | None = None) -> ConfigEntry:
        """Rebuild an entry from ``to_dict`` output.

        Args:
            data: The serialized entry.
            default_tool: Tool id used when the entry has none (legacy data).

        Raises:
            ParseError: If required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise ParseError("Config entry must be an object")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ParseError("Config entry name is required")
        config = data.get("config", {})
        if not isinstance(config, dict):
            raise ParseError(f"Config of {name!r} must be an object")
        tool_id = data.get("tool_id") or data.get("toolId") or default_tool
        if not isinstance(tool_id, str) or not tool_id:
            raise ParseError(f"Config entry {name!r} has no tool")
        try:
            modified = parse_timestamp(data.get("last_modified", data.get("lastModified")))
        except InvalidTimestamp as exc:
            raise ParseError(f"Invalid last_modified for {name!r}: {exc}") from exc
        confidence = data.get("confidence")
        return cls(
            id=str(data.get("id") or generate_id("config")),
            name=name,
            enabled=bool(data.get("enabled", True)),
            config=config,
            last_modified=modified or utc_now(),
            tool_id=tool_id,
            source_file=data.get("source_file"),
            confidence=float(confidence) if isinstance(confidence, (int, float)) else None,
        )


@dataclass
class ImportOutcome:
    """Summary of an import: what was added and what was rejected."""

    imported: int = 0
    replaced_tools: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
