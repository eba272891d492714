"""Canonical in-memory representation of one MCP collection.

Every tool adapter converts its native file shape to and from these types.
They are plain mutable dataclasses; ``copy_with_tool`` and
``dataclasses.replace`` are used where an unchanged original must survive.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class CodeSnippet:
    """One snippet (usually an MCP server entry) inside a collection.

    Attributes:
        id: Unique within the parent collection.
        content: Snippet body. Must be non-empty to validate.
        language: Source language. Must be non-empty to validate.
        tags: Free-form labels.
        description: Optional human-readable summary.
        context: Optional tool-specific key/value data.
    """

    id: str
    content: str
    language: str
    tags: set[str] = field(default_factory=set)
    description: str | None = None
    context: dict[str, Any] | None = None


@dataclass
class Metadata:
    """Descriptive data for a collection. ``name`` and ``version`` are mandatory."""

    name: str
    version: str
    description: str | None = None
    author: str | None = None
    tags: set[str] = field(default_factory=set)
    dependencies: list[str] | None = None
    configuration: dict[str, Any] | None = None


@dataclass
class MCPCollection:
    """The tool-agnostic unit every adapter converts to and from.

    Attributes:
        id: Unique within a store.
        source_tool: Tool identifier the collection currently belongs to.
        code_snippets: Ordered snippets. May be empty.
        metadata: Name, version and friends.
        created_at: Creation timestamp (timezone-aware).
        updated_at: Last modification, never earlier than ``created_at``.
    """

    id: str
    source_tool: str
    code_snippets: list[CodeSnippet]
    metadata: Metadata
    created_at: datetime
    updated_at: datetime

    @property
    def name(self) -> str:
        return self.metadata.name

    def copy_with_tool(self, tool: str) -> MCPCollection:
        """Return a deep copy re-tagged to belong to ``tool``."""
        clone = copy.deepcopy(self)
        clone.source_tool = tool
        return clone


@dataclass
class ValidationResult:
    """Outcome of validating a collection or a raw document.

    Attributes:
        is_valid: True when ``errors`` is empty.
        errors: Problems that make the data unusable.
        warnings: Problems worth reporting that do not block use.
    """

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_messages(cls, errors: list[str], warnings: list[str] | None = None) -> ValidationResult:
        return cls(is_valid=not errors, errors=list(errors), warnings=list(warnings or []))
