"""Data models for the discovery module.

Scan results are built fresh on every scan and frozen once the scan
returns: ``FoundConfig`` and ``ScanResult`` are frozen dataclasses and
their sequences are tuples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from mcpbridge.adapters.codecs import Format


class ScanStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class FoundConfig:
    """One candidate MCP server entry harvested from a tool's file.

    Attributes:
        name: Server name (the key in the server map, or a fallback).
        description: Short human-readable origin note.
        raw_config: The server entry as found (command, args, env, ...).
        source_file: Resolved path of the file it came from.
        format: Text format of that file.
        confidence: How sure the scanner is this is an MCP entry, in [0, 1].
    """

    name: str
    description: str
    raw_config: dict[str, Any]
    source_file: str
    format: Format
    confidence: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class PathSkip:
    """A candidate path that existed but could not be harvested."""

    path: str
    reason: str


@dataclass(frozen=True)
class ScanResult:
    """Outcome of scanning one tool.

    Attributes:
        tool_id: Profile id of the scanned tool.
        tool_name: Display name of the scanned tool.
        found_configs: Harvested entries, in path then file order.
        status: ``success``, ``partial`` (some paths skipped) or ``failed``.
        error_message: Why the scan failed, when it did.
        skipped_paths: Paths that existed but were skipped, with reasons.
    """

    tool_id: str
    tool_name: str
    found_configs: tuple[FoundConfig, ...] = ()
    status: ScanStatus = ScanStatus.SUCCESS
    error_message: str | None = None
    skipped_paths: tuple[PathSkip, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool_id": self.tool_id,
            "tool_name": self.tool_name,
            "status": self.status.value,
            "error_message": self.error_message,
            "found_configs": [
                {
                    "name": fc.name,
                    "description": fc.description,
                    "config": fc.raw_config,
                    "source_file": fc.source_file,
                    "format": fc.format.value,
                    "confidence": fc.confidence,
                }
                for fc in self.found_configs
            ],
            "skipped_paths": [{"path": s.path, "reason": s.reason} for s in self.skipped_paths],
        }


@dataclass(frozen=True)
class ScanProgress:
    """Progress notification: ``current`` of ``total`` tools scanned."""

    current: int
    total: int
    tool_name: str | None = None

    @property
    def percent(self) -> int:
        return round(self.current / self.total * 100) if self.total else 100
