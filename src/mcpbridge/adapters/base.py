"""Base interface shared by every tool adapter.

Each supported tool stores collections in its own native shape. A
``ToolAdapter`` owns the bidirectional mapping between that shape and the
canonical ``MCPCollection``:

- ``detect(file_name, content)`` -- which text format the file is in.
- ``parse(content, source_tool)`` -- native text to canonical collection.
- ``serialize(collection, target_format)`` -- canonical collection to text.
- ``validate(content)`` -- parse plus structural validation.

``parse`` and ``serialize`` return None on structural failure and never
raise; the caller decides whether a None is fatal or skippable.

Most tools differ only in field names and in whether metadata sits at the
top level or under a nested key, so adapters declare a ``NativeLayout``
and inherit the mapping logic. Adapters with stranger shapes override
``from_native`` / ``to_native``.
"""

from __future__ import annotations

import logging
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from mcpbridge.adapters.codecs import Format, decode, detect_format, encode, sniff_format
from mcpbridge.model.canonical import (
    InvalidTimestamp,
    build_collection,
    build_metadata,
    build_snippet,
    format_timestamp,
)
from mcpbridge.model.models import CodeSnippet, MCPCollection, Metadata, ValidationResult
from mcpbridge.model.validator import CollectionValidator

logger = logging.getLogger(__name__)


class Tool(str, Enum):
    """The closed set of tools with a native collection format."""

    GITHUB_COPILOT = "github-copilot"
    TABNINE = "tabnine"
    CURSOR = "cursor"
    CODEX = "codex"
    KILOCODE = "kilocode"

    @classmethod
    def from_id(cls, tool_id: str) -> Tool | None:
        try:
            return cls(tool_id)
        except ValueError:
            return None


@dataclass(frozen=True)
class NativeLayout:
    """Field names of one tool's native collection document.

    Attributes:
        snippets_key: Key holding the snippet list.
        content_key: Snippet body key.
        language_key: Snippet language key.
        snippet_description_key: Snippet description key.
        context_key: Snippet context key.
        metadata_key: Key of a nested metadata object, or None when
            metadata fields sit at the top level.
        description_key: Metadata description key.
        dependencies_key: Metadata dependencies key.
        configuration_key: Metadata configuration key.
        created_key: Creation timestamp key (top level).
        updated_key: Modification timestamp key (top level).
    """

    snippets_key: str
    content_key: str = "content"
    language_key: str = "language"
    snippet_description_key: str = "description"
    context_key: str = "context"
    metadata_key: str | None = None
    description_key: str = "description"
    dependencies_key: str = "dependencies"
    configuration_key: str = "configuration"
    created_key: str = "created_at"
    updated_key: str = "updated_at"


class ToolAdapter(ABC):
    """Converts between one tool's native document and ``MCPCollection``."""

    tool: ClassVar[Tool]
    layout: ClassVar[NativeLayout]
    default_format: ClassVar[Format] = Format.JSON

    def __init__(self, validator: CollectionValidator | None = None) -> None:
        self._validator = validator if validator is not None else CollectionValidator()

    # -- Public contract ---------------------------------------------------

    def detect(self, file_name: str, content: str) -> Format | None:
        return detect_format(file_name, content)

    def parse(
        self,
        content: str,
        source_tool: str | None = None,
        fmt: Format | None = None,
    ) -> MCPCollection | None:
        """Build a canonical collection from native text.

        Args:
            content: Native document text.
            source_tool: Tool id to tag the collection with. Defaults to
                this adapter's tool.
            fmt: Text format of ``content``. Sniffed when omitted.

        Returns:
            The collection, or None if the text is not a native document
            of this tool.
        """
        fmt = fmt or sniff_format(content) or self.default_format
        data = decode(fmt, content)
        if not isinstance(data, dict):
            return None
        try:
            return self.from_native(data, source_tool or self.tool.value)
        except (KeyError, TypeError, ValueError, AttributeError, InvalidTimestamp):
            logger.debug("%s adapter could not parse document", self.tool.value, exc_info=True)
            return None

    def serialize(
        self, collection: MCPCollection, target_format: Format | None = None
    ) -> str | None:
        """Render a collection as native text, or None if it cannot be."""
        try:
            native = self.to_native(collection)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.debug("%s adapter could not serialize %s", self.tool.value,
                         getattr(collection, "id", "?"), exc_info=True)
            return None
        return encode(target_format or self.default_format, native)

    def validate(self, content: str) -> ValidationResult:
        fmt = sniff_format(content)
        if fmt is None:
            return ValidationResult.from_messages(["Content is neither JSON nor YAML"])
        collection = self.parse(content, fmt=fmt)
        if collection is None:
            return ValidationResult.from_messages(
                [f"Content does not match the {self.tool.value} layout"]
            )
        return self._validator.validate(collection)

    def recognizes(self, data: Any) -> bool:
        """Whether a decoded document looks like this tool's native shape."""
        return isinstance(data, dict) and isinstance(data.get(self.layout.snippets_key), list)

    # -- Mapping -----------------------------------------------------------

    def from_native(self, data: dict[str, Any], source_tool: str) -> MCPCollection:
        """Map a native document onto the canonical model.

        Raises:
            TypeError: If a structural field has the wrong type.
            InvalidTimestamp: If a timestamp is malformed.
        """
        lay = self.layout
        raw_snippets = data.get(lay.snippets_key, [])
        if not isinstance(raw_snippets, list):
            raise TypeError(f"{lay.snippets_key} must be a list")
        meta_src = data if lay.metadata_key is None else data.get(lay.metadata_key, {})
        if not isinstance(meta_src, dict):
            raise TypeError(f"{lay.metadata_key} must be an object")

        snippets = [self._snippet_from_native(raw) for raw in raw_snippets]
        metadata = build_metadata(
            name=meta_src.get("name"),
            version=meta_src.get("version"),
            description=meta_src.get(lay.description_key),
            author=meta_src.get("author"),
            tags=meta_src.get("tags"),
            dependencies=meta_src.get(lay.dependencies_key),
            configuration=meta_src.get(lay.configuration_key),
        )
        return build_collection(
            id=data.get("id"),
            source_tool=source_tool,
            snippets=snippets,
            metadata=metadata,
            created_at=data.get(lay.created_key),
            updated_at=data.get(lay.updated_key),
        )

    def to_native(self, collection: MCPCollection) -> dict[str, Any]:
        lay = self.layout
        meta = self._metadata_to_native(collection.metadata)
        native: dict[str, Any] = {"id": collection.id}
        if lay.metadata_key is None:
            native.update(meta)
        else:
            native[lay.metadata_key] = meta
        native[lay.snippets_key] = [self._snippet_to_native(s) for s in collection.code_snippets]
        native[lay.created_key] = format_timestamp(collection.created_at)
        native[lay.updated_key] = format_timestamp(collection.updated_at)
        return native

    def _snippet_from_native(self, raw: Any) -> CodeSnippet:
        if not isinstance(raw, dict):
            raise TypeError("snippet must be an object")
        lay = self.layout
        return build_snippet(
            id=raw.get("id"),
            content=raw.get(lay.content_key),
            language=raw.get(lay.language_key),
            tags=raw.get("tags"),
            description=raw.get(lay.snippet_description_key),
            context=raw.get(lay.context_key),
        )

    def _snippet_to_native(self, snippet: CodeSnippet) -> dict[str, Any]:
        lay = self.layout
        out: dict[str, Any] = {
            "id": snippet.id,
            lay.content_key: snippet.content,
            lay.language_key: snippet.language,
            "tags": sorted(snippet.tags),
        }
        if snippet.description is not None:
            out[lay.snippet_description_key] = snippet.description
        if snippet.context is not None:
            out[lay.context_key] = snippet.context
        return out

    def _metadata_to_native(self, metadata: Metadata) -> dict[str, Any]:
        lay = self.layout
        out: dict[str, Any] = {
            "name": metadata.name,
            "version": metadata.version,
            "tags": sorted(metadata.tags),
        }
        optional = (
            (lay.description_key, metadata.description),
            ("author", metadata.author),
            (lay.dependencies_key, metadata.dependencies),
            (lay.configuration_key, metadata.configuration),
        )
        for key, value in optional:
            if value is not None:
                out[key] = value
        return out
