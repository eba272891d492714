"""Named snapshots of the saved configuration state.

A backup captures what the repository owns for the user: saved entries,
user-registered tools and custom scan paths (see
``ConfigRepository.snapshot``). Canonical collections and migration
history are not part of a backup.

Backups are kept newest first under the ``backups`` key of the same
``KeyedStore`` the repository uses. Restoring a backup replaces the
current state wholesale; it never merges.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from mcpbridge.capabilities import KeyedStore
from mcpbridge.configs.repository import ConfigRepository
from mcpbridge.exceptions import ExportError, ParseError, PreconditionError, StorageError
from mcpbridge.model.canonical import (
    InvalidTimestamp,
    format_timestamp,
    generate_id,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

BACKUPS_KEY = "backups"


@dataclass
class Backup:
    """One snapshot of the saved configuration state.

    Attributes:
        id: Backup identifier (``backup_<ms>_<rand>``).
        name: User-chosen label.
        created_at: When the snapshot was taken.
        data: ``ConfigRepository.snapshot`` output.
        description: Optional free text.
    """

    id: str
    name: str
    created_at: datetime
    data: dict[str, Any]
    description: str | None = None

    @property
    def size(self) -> int:
        """Size of the snapshot in bytes, as stored."""
        return len(json.dumps(self.data, sort_keys=True).encode("utf-8"))

    @property
    def config_count(self) -> int:
        return len(self.data.get("configs") or [])

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "created_at": format_timestamp(self.created_at),
            "size": self.size,
            "data": self.data,
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Backup:
        """Rebuild a backup from ``to_dict`` output.

        Raises:
            ParseError: If the id, name, timestamp or snapshot is missing.
        """
        if not isinstance(data, dict):
            raise ParseError("Backup must be an object")
        backup_id, name, snapshot = data.get("id"), data.get("name"), data.get("data")
        if not isinstance(backup_id, str) or not backup_id or not isinstance(name, str) or not name:
            raise ParseError("Backup needs an id and a name")
        if not isinstance(snapshot, dict):
            raise ParseError(f"Backup {backup_id!r} has no snapshot data")
        try:
            created = parse_timestamp(data.get("created_at"))
        except InvalidTimestamp as exc:
            raise ParseError(f"Invalid created_at for backup {backup_id!r}: {exc}") from exc
        description = data.get("description")
        return cls(
            id=backup_id,
            name=name,
            created_at=created or utc_now(),
            data=snapshot,
            description=description if isinstance(description, str) else None,
        )


class BackupStore:
    """Create, list, restore and delete backups of a ``ConfigRepository``."""

    def __init__(self, store: KeyedStore, repository: ConfigRepository) -> None:
        self._store = store
        self._repository = repository

    def all(self) -> list[Backup]:
        """Every backup, newest first."""
        return [Backup.from_dict(raw) for raw in self._records()]

    def get(self, backup_id: str) -> Backup | None:
        return next((b for b in self.all() if b.id == backup_id), None)

    def create(self, name: str, description: str | None = None) -> Backup:
        """Snapshot the repository under ``name``.

        Raises:
            PreconditionError: If ``name`` is blank.
        """
        if not name.strip():
            raise PreconditionError("Backup name must not be empty")
        backup = Backup(
            id=generate_id("backup"),
            name=name.strip(),
            created_at=utc_now(),
            data=self._repository.snapshot(),
            description=description,
        )
        self._write([backup.to_dict(), *self._records()])
        logger.info("Created backup %s (%d configs)", backup.id, backup.config_count)
        return backup

    def restore(self, backup_id: str) -> Backup:
        """Replace the repository state with the backup's snapshot.

        Raises:
            PreconditionError: If the backup does not exist.
            ParseError: If the stored snapshot is malformed.
        """
        backup = self.get(backup_id)
        if backup is None:
            raise PreconditionError(f"Unknown backup: {backup_id}")
        restored = self._repository.restore_snapshot(backup.data)
        logger.info("Restored backup %s (%d configs)", backup.id, restored)
        return backup

    def delete(self, backup_id: str) -> bool:
        records = self._records()
        remaining = [r for r in records if r.get("id") != backup_id]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        return True

    def prune(self, keep: int) -> int:
        """Delete all but the ``keep`` newest backups. Returns how many went."""
        if keep < 0:
            raise PreconditionError(f"keep must not be negative, got {keep}")
        records = self._records()
        if len(records) <= keep:
            return 0
        self._write(records[:keep])
        return len(records) - keep

    # -- Interchange -------------------------------------------------------

    def export_backup(self, backup_id: str) -> str:
        """Serialize one backup as a standalone JSON document.

        Raises:
            PreconditionError: If the backup does not exist.
        """
        backup = self.get(backup_id)
        if backup is None:
            raise PreconditionError(f"Unknown backup: {backup_id}")
        return json.dumps(backup.to_dict(), indent=2, sort_keys=True)

    def import_backup(self, text: str) -> Backup:
        """Add a backup from ``export_backup`` output.

        A backup with the same id is replaced in place.

        Raises:
            ExportError: If ``text`` is not a backup document.
        """
        try:
            backup = Backup.from_dict(json.loads(text))
        except json.JSONDecodeError as exc:
            raise ExportError(f"Backup import is not valid JSON: {exc}") from exc
        except ParseError as exc:
            raise ExportError(f"Invalid backup: {exc}") from exc
        records = self._records()
        for index, raw in enumerate(records):
            if raw.get("id") == backup.id:
                records[index] = backup.to_dict()
                break
        else:
            records.insert(0, backup.to_dict())
        self._write(records)
        return backup

    # -- Persistence -------------------------------------------------------

    def _records(self) -> list[dict[str, Any]]:
        raw = self._store.read_json(BACKUPS_KEY) or []
        if not isinstance(raw, list):
            raise StorageError("Backup list is corrupt", BACKUPS_KEY)
        return [r for r in raw if isinstance(r, dict)]

    def _write(self, records: list[dict[str, Any]]) -> None:
        if not self._store.write_json(BACKUPS_KEY, records):
            raise StorageError("Store rejected write", BACKUPS_KEY)
