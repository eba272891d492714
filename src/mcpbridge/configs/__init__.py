"""Saved MCP server entries: repository, backups, interchange and tool-file writer."""

from __future__ import annotations

from mcpbridge.configs.backups import Backup, BackupStore
from mcpbridge.configs.models import ConfigEntry, ImportOutcome
from mcpbridge.configs.repository import ConfigRepository
from mcpbridge.configs.writer import ToolConfigWriter, WriteResult

__all__ = [
    "Backup",
    "BackupStore",
    "ConfigEntry",
    "ConfigRepository",
    "ImportOutcome",
    "ToolConfigWriter",
    "WriteResult",
]
