"""Cross-tool migration of canonical collections."""

from __future__ import annotations

from mcpbridge.migration.models import (
    MigrationProgress,
    MigrationResult,
    MigrationStats,
    MigrationStatus,
    MigrationTask,
)
from mcpbridge.migration.engine import MigrationEngine
from mcpbridge.migration.task_store import MigrationTaskStore
from mcpbridge.migration.service import MigrationService

__all__ = [
    "MigrationEngine",
    "MigrationProgress",
    "MigrationResult",
    "MigrationService",
    "MigrationStats",
    "MigrationStatus",
    "MigrationTask",
    "MigrationTaskStore",
]
