"""Canonicalization: the one place where missing fields receive defaults.

Tool files routinely omit fields. Rather than scattering fallbacks through
every adapter, adapters hand raw values to the builders in this module,
which apply the table below and nothing else:

==========================  ==================================
Field                       Default when missing or empty
==========================  ==================================
``metadata.name``           ``"Unknown"``
``metadata.version``        ``"1.0.0"``
``snippet.language``        ``"javascript"``
``metadata.tags``           empty set
``snippet.tags``            empty set
``collection.id``           ``generate_id("mcp")``
``snippet.id``              ``generate_id("snippet")``
``created_at``              current UTC time
``updated_at``              ``created_at``
==========================  ==================================

``snippet.content`` has no default: an empty body is left empty so the
validator can reject it.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from mcpbridge.model.models import CodeSnippet, MCPCollection, Metadata

CANONICAL_DEFAULTS: Mapping[str, Any] = {
    "metadata.name": "Unknown",
    "metadata.version": "1.0.0",
    "snippet.language": "javascript",
    "metadata.tags": frozenset(),
    "snippet.tags": frozenset(),
}


class InvalidTimestamp(ValueError):
    """A timestamp field was present but could not be interpreted."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_id(prefix: str = "mcp") -> str:
    """Return ``<prefix>_<epoch-ms>_<9 random hex chars>``."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def text_or_default(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def optional_text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def normalize_tags(value: Any) -> set[str]:
    """Coerce a tag list (or a single tag string) into a set of strings."""
    if isinstance(value, str):
        return {value} if value else set()
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        return {str(tag) for tag in value if isinstance(tag, (str, int)) and str(tag)}
    return set()


def optional_mapping(value: Any) -> dict[str, Any] | None:
    return dict(value) if isinstance(value, Mapping) else None


def optional_string_list(value: Any) -> list[str] | None:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Interpret an ISO-8601 string, epoch milliseconds or a datetime.

    Returns:
        A timezone-aware datetime, or None when ``value`` is missing.

    Raises:
        InvalidTimestamp: If ``value`` is present but not a valid timestamp.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidTimestamp(str(value)) from exc
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidTimestamp(value) from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise InvalidTimestamp(repr(value))


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_snippet(
    *,
    id: Any = None,
    content: Any = None,
    language: Any = None,
    tags: Any = None,
    description: Any = None,
    context: Any = None,
) -> CodeSnippet:
    return CodeSnippet(
        id=text_or_default(id, "") or generate_id("snippet"),
        content=content if isinstance(content, str) else "",
        language=text_or_default(language, CANONICAL_DEFAULTS["snippet.language"]),
        tags=normalize_tags(tags),
        description=optional_text(description),
        context=optional_mapping(context),
    )


def build_metadata(
    *,
    name: Any = None,
    version: Any = None,
    description: Any = None,
    author: Any = None,
    tags: Any = None,
    dependencies: Any = None,
    configuration: Any = None,
) -> Metadata:
    return Metadata(
        name=text_or_default(name, CANONICAL_DEFAULTS["metadata.name"]),
        version=text_or_default(version, CANONICAL_DEFAULTS["metadata.version"]),
        description=optional_text(description),
        author=optional_text(author),
        tags=normalize_tags(tags),
        dependencies=optional_string_list(dependencies),
        configuration=optional_mapping(configuration),
    )


def build_collection(
    *,
    id: Any,
    source_tool: str,
    snippets: list[CodeSnippet],
    metadata: Metadata,
    created_at: Any = None,
    updated_at: Any = None,
) -> MCPCollection:
    """Assemble a collection, defaulting the id and both timestamps.

    Raises:
        InvalidTimestamp: If a timestamp is present but malformed.
    """
    created = parse_timestamp(created_at) or utc_now()
    updated = parse_timestamp(updated_at) or created
    return MCPCollection(
        id=text_or_default(id, "") or generate_id("mcp"),
        source_tool=source_tool,
        code_snippets=snippets,
        metadata=metadata,
        created_at=created,
        updated_at=updated,
    )
