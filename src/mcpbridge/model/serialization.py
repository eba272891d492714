"""Plain-dict form of canonical collections, used for storage and interchange.

Output is deterministic: tag sets are emitted sorted and timestamps as
UTC ISO-8601 strings, so two equal collections produce identical JSON.
"""

from __future__ import annotations

from typing import Any

from mcpbridge.exceptions import ParseError
from mcpbridge.model.canonical import (
    InvalidTimestamp,
    build_collection,
    build_metadata,
    build_snippet,
    format_timestamp,
)
from mcpbridge.model.models import CodeSnippet, MCPCollection, Metadata


def snippet_to_dict(snippet: CodeSnippet) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": snippet.id,
        "content": snippet.content,
        "language": snippet.language,
        "tags": sorted(snippet.tags),
    }
    if snippet.description is not None:
        data["description"] = snippet.description
    if snippet.context is not None:
        data["context"] = snippet.context
    return data


def metadata_to_dict(metadata: Metadata) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": metadata.name,
        "version": metadata.version,
        "tags": sorted(metadata.tags),
    }
    for key in ("description", "author", "dependencies", "configuration"):
        value = getattr(metadata, key)
        if value is not None:
            data[key] = value
    return data


def collection_to_dict(collection: MCPCollection) -> dict[str, Any]:
    return {
        "id": collection.id,
        "source_tool": collection.source_tool,
        "code_snippets": [snippet_to_dict(s) for s in collection.code_snippets],
        "metadata": metadata_to_dict(collection.metadata),
        "created_at": format_timestamp(collection.created_at),
        "updated_at": format_timestamp(collection.updated_at),
    }


def collection_from_dict(data: Any) -> MCPCollection:
    """Rebuild a collection from ``collection_to_dict`` output.

    Raises:
        ParseError: If ``data`` does not have the canonical shape.
    """
    if not isinstance(data, dict):
        raise ParseError("Collection must be a JSON object")
    snippets_raw = data.get("code_snippets", [])
    if not isinstance(snippets_raw, list):
        raise ParseError("code_snippets must be a list")
    if not isinstance(data.get("metadata", {}), dict):
        raise ParseError("metadata must be an object")
    source_tool = data.get("source_tool")
    if not isinstance(source_tool, str) or not source_tool:
        raise ParseError("source_tool is required")

    snippets = []
    for raw in snippets_raw:
        if not isinstance(raw, dict):
            raise ParseError("Each code snippet must be an object")
        snippets.append(build_snippet(**{k: raw.get(k) for k in _SNIPPET_KEYS}))
    meta_raw = data.get("metadata", {})
    metadata = build_metadata(**{k: meta_raw.get(k) for k in _METADATA_KEYS})
    try:
        return build_collection(
            id=data.get("id"),
            source_tool=source_tool,
            snippets=snippets,
            metadata=metadata,
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )
    except InvalidTimestamp as exc:
        raise ParseError(f"Invalid timestamp: {exc}") from exc


_SNIPPET_KEYS = ("id", "content", "language", "tags", "description", "context")
_METADATA_KEYS = (
    "name", "version", "description", "author", "tags", "dependencies", "configuration",
)
