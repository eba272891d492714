"""Wiring shared by every CLI command.

The root group builds one ``AppContext`` from the resolved ``Settings`` and
stores it on the click context; subcommands receive it with
``@click.pass_obj``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from mcpbridge.adapters.registry import AdapterRegistry, default_registry
from mcpbridge.capabilities import FileAccess, JsonFileStore, KeyedStore, LocalFileAccess, LoggingProgressSink
from mcpbridge.configs.backups import BackupStore
from mcpbridge.configs.repository import ConfigRepository
from mcpbridge.configs.writer import ToolConfigWriter
from mcpbridge.discovery.scanner import LocalToolScanner
from mcpbridge.discovery.tool_registry import ToolProfile
from mcpbridge.exceptions import StorageError
from mcpbridge.migration.engine import MigrationEngine
from mcpbridge.migration.service import MigrationService
from mcpbridge.migration.task_store import MigrationTaskStore
from mcpbridge.settings import Settings

logger = logging.getLogger("mcpbridge")


@dataclass
class AppContext:
    settings: Settings
    files: FileAccess
    store: KeyedStore
    adapters: AdapterRegistry = field(default_factory=default_registry)

    def __post_init__(self) -> None:
        sink = LoggingProgressSink(logger)
        self.repository = ConfigRepository(self.store, self.settings)
        self.backups = BackupStore(self.store, self.repository)
        self.scanner = LocalToolScanner(
            self.files, self.repository.tools(), self.settings, self.adapters, sink
        )
        self.migrations = MigrationService(
            MigrationTaskStore(self.store),
            MigrationEngine(self.adapters, self.settings, sink=sink),
        )
        self.writer = ToolConfigWriter(self.files)

    @classmethod
    def create(cls, settings: Settings, home: Path | None = None) -> AppContext:
        files = LocalFileAccess(home)
        return cls(settings=settings, files=files, store=JsonFileStore(settings.data_dir, files))

    def read_input(self, path: str) -> str:
        """Read a user-supplied file, refusing files over ``max_file_size``.

        Raises:
            StorageError: If the file cannot be read or is too large.
        """
        resolved = str(Path(path).resolve())
        size = self.files.size(resolved)
        if size > self.settings.max_file_size:
            raise StorageError(
                f"File too large ({size} bytes, limit {self.settings.max_file_size})", resolved
            )
        return self.files.read_text(resolved)

    def profiles_for(self, tool: str) -> list[ToolProfile]:
        """Saved-config tools whose files use the ``tool`` collection format."""
        return [p for p in self.repository.tools() if p.adapter_tool is not None and p.adapter_tool.value == tool]
