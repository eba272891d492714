"""Write saved entries back into a tool's MCP configuration file.

Enabled entries are merged into the file's ``mcpServers`` map. Other
top-level keys in the file are preserved. Before an existing file is
replaced its current content is copied to ``<file>.bak-<timestamp>``.

A malformed existing file aborts the write before anything is touched.
The final write goes through ``FileAccess.write_text``, which the local
implementation performs atomically, so the target is either fully
rewritten or left as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from mcpbridge.adapters.codecs import Format, decode, detect_format, encode
from mcpbridge.capabilities import FileAccess
from mcpbridge.configs.models import ConfigEntry
from mcpbridge.discovery.tool_registry import ToolProfile
from mcpbridge.exceptions import ExportError

logger = logging.getLogger(__name__)

SERVERS_KEY = "mcpServers"


@dataclass
class WriteResult:
    """What a write did (or, for a dry run, would do)."""

    target_path: str
    backup_path: str | None = None
    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    wrote_changes: bool = False
    dry_run: bool = False


def _timestamp() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S")


class ToolConfigWriter:
    """Merges ``ConfigEntry`` records into a tool's configuration file."""

    def __init__(self, files: FileAccess) -> None:
        self._files = files

    def write(
        self,
        profile: ToolProfile,
        entries: Iterable[ConfigEntry],
        path: str | None = None,
        overwrite: bool = True,
        dry_run: bool = False,
    ) -> WriteResult:
        """Write the enabled ``entries`` belonging to ``profile``.

        Args:
            profile: Target tool.
            entries: Candidate entries. Disabled entries and entries of
                other tools are ignored.
            path: Target file. Defaults to the profile's first candidate.
            overwrite: Replace servers that already exist under the same name.
            dry_run: Compute the result without writing anything.

        Raises:
            ExportError: If the existing file is malformed.
            StorageError: If reading or writing fails.
        """
        target = self._files.resolve_home(path or profile.default_path)
        result = WriteResult(target_path=target, dry_run=dry_run)

        existing_text: str | None = None
        document: dict[str, Any] = {}
        fmt = detect_format(target, "") or profile.default_format
        if self._files.exists(target):
            existing_text = self._files.read_text(target)
            if existing_text.strip():
                fmt = detect_format(target, existing_text) or fmt
                document = self._read_document(target, fmt, existing_text)

        servers = document.get(SERVERS_KEY)
        if servers is None:
            servers = {}
        elif not isinstance(servers, dict):
            raise ExportError(f"{SERVERS_KEY} in {target} is not an object")
        servers = dict(servers)

        for entry in entries:
            if entry.tool_id != profile.id or not entry.enabled:
                continue
            if entry.name in servers and not overwrite:
                result.skipped.append(entry.name)
                continue
            servers[entry.name] = entry.config
            result.written.append(entry.name)

        if not result.written:
            logger.info("Nothing to write for %s", profile.name)
            return result

        document[SERVERS_KEY] = servers
        rendered = encode(fmt, document)
        if rendered is None:
            raise ExportError(f"Entries for {profile.name} cannot be rendered as {fmt.value}")

        if existing_text is not None:
            result.backup_path = f"{target}.bak-{_timestamp()}"
        if dry_run:
            logger.info("[dry-run] Would write %d servers to %s", len(result.written), target)
            return result

        if existing_text is not None and result.backup_path is not None:
            self._files.write_text(result.backup_path, existing_text)
            logger.info("Backed up %s -> %s", target, result.backup_path)
        self._files.write_text(target, rendered if rendered.endswith("\n") else rendered + "\n")
        result.wrote_changes = True
        logger.info("Wrote %d servers to %s", len(result.written), target)
        return result

    @staticmethod
    def _read_document(target: str, fmt: Format, text: str) -> dict[str, Any]:
        data = decode(fmt, text)
        if not isinstance(data, dict):
            raise ExportError(f"Malformed configuration at {target}")
        return data
