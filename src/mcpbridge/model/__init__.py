"""Canonical MCP collection model, canonicalization and validation."""

from mcpbridge.model.canonical import CANONICAL_DEFAULTS, generate_id, utc_now
from mcpbridge.model.models import CodeSnippet, MCPCollection, Metadata, ValidationResult
from mcpbridge.model.validator import CollectionValidator

__all__ = [
    "CANONICAL_DEFAULTS",
    "CodeSnippet",
    "CollectionValidator",
    "MCPCollection",
    "Metadata",
    "ValidationResult",
    "generate_id",
    "utc_now",
]
