"""Structural validation of canonical collections.

Validation never raises. It returns a ``ValidationResult`` whose ``errors``
make the collection unusable and whose ``warnings`` are informational.

Rules:
    - ``id`` and ``source_tool`` are non-empty.
    - ``code_snippets`` is a list; each snippet has a non-empty ``id``,
      ``content`` and ``language``, a set of tags, and an id unique within
      the collection.
    - ``metadata.name`` and ``metadata.version`` are non-empty.
    - ``updated_at`` is not earlier than ``created_at``.
    - An empty snippet list is a warning, not an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from mcpbridge.model.models import CodeSnippet, MCPCollection, ValidationResult


class CollectionValidator:
    """Checks collections against the canonical invariants."""

    def validate(self, collection: MCPCollection) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        if not _non_empty(collection.id):
            errors.append("Collection id is required")
        if not _non_empty(collection.source_tool):
            errors.append("Source tool is required")

        if not isinstance(collection.code_snippets, list):
            errors.append("Code snippets must be a list")
        else:
            if not collection.code_snippets:
                warnings.append("Collection has no code snippets")
            seen: set[str] = set()
            for index, snippet in enumerate(collection.code_snippets):
                errors.extend(self._snippet_errors(index, snippet))
                snippet_id = getattr(snippet, "id", None)
                if _non_empty(snippet_id):
                    if snippet_id in seen:
                        errors.append(f"Snippet {index}: duplicate id {snippet_id!r}")
                    seen.add(snippet_id)

        metadata = collection.metadata
        if metadata is None:
            errors.append("Metadata is required")
        else:
            if not _non_empty(metadata.name):
                errors.append("Metadata name is required")
            if not _non_empty(metadata.version):
                errors.append("Metadata version is required")

        errors.extend(self._timestamp_errors(collection))
        return ValidationResult.from_messages(errors, warnings)

    def validate_unique_ids(self, collections: Iterable[MCPCollection]) -> ValidationResult:
        """Check that collection ids are unique across a store."""
        errors: list[str] = []
        seen: set[str] = set()
        for collection in collections:
            if collection.id in seen:
                errors.append(f"Duplicate collection id {collection.id!r}")
            seen.add(collection.id)
        return ValidationResult.from_messages(errors)

    @staticmethod
    def _snippet_errors(index: int, snippet: CodeSnippet) -> list[str]:
        if not isinstance(snippet, CodeSnippet):
            return [f"Snippet {index}: not a code snippet"]
        errors: list[str] = []
        if not _non_empty(snippet.id):
            errors.append(f"Snippet {index}: id is required")
        if not _non_empty(snippet.content):
            errors.append(f"Snippet {index}: content is required")
        if not _non_empty(snippet.language):
            errors.append(f"Snippet {index}: language is required")
        if not isinstance(snippet.tags, (set, frozenset)):
            errors.append(f"Snippet {index}: tags must be a set")
        return errors

    @staticmethod
    def _timestamp_errors(collection: MCPCollection) -> list[str]:
        created, updated = collection.created_at, collection.updated_at
        if not isinstance(created, datetime):
            return ["Created date is invalid"]
        if not isinstance(updated, datetime):
            return ["Updated date is invalid"]
        if updated < created:
            return ["Updated date precedes created date"]
        return []


def _non_empty(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())
