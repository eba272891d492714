"""Adapter registry: dispatch from a tool identifier to its adapter.

``default_registry()`` returns a registry pre-loaded with every built-in
adapter. Registration order matters for ``identify()``: Kilo Code is
registered before Tabnine because both use a ``snippets`` list and Kilo
Code's abbreviated keys are the more specific signal.
"""

from __future__ import annotations

from mcpbridge.adapters.base import Tool, ToolAdapter
from mcpbridge.adapters.codecs import decode, sniff_format
from mcpbridge.adapters.codex import CodexAdapter
from mcpbridge.adapters.copilot import CopilotAdapter
from mcpbridge.adapters.cursor import CursorAdapter
from mcpbridge.adapters.kilocode import KilocodeAdapter
from mcpbridge.adapters.tabnine import TabnineAdapter
from mcpbridge.exceptions import DetectionError, ParseError, ValidationError
from mcpbridge.model.models import MCPCollection, ValidationResult
from mcpbridge.model.validator import CollectionValidator


class AdapterRegistry:
    """Ordered collection of ``ToolAdapter`` instances keyed by tool."""

    def __init__(self) -> None:
        self._adapters: dict[Tool, ToolAdapter] = {}
        self._validator = CollectionValidator()

    def register(self, adapter: ToolAdapter) -> None:
        """Add an adapter, replacing any existing one for the same tool."""
        self._adapters[adapter.tool] = adapter

    def get(self, tool: Tool | str) -> ToolAdapter | None:
        key = tool if isinstance(tool, Tool) else Tool.from_id(tool)
        if key is None:
            return None
        return self._adapters.get(key)

    def supports(self, tool: Tool | str) -> bool:
        return self.get(tool) is not None

    @property
    def tools(self) -> list[Tool]:
        return list(self._adapters)

    def identify(self, content: str) -> ToolAdapter | None:
        """Find the adapter whose native layout matches ``content``.

        Returns:
            The first adapter (in registration order) that recognises the
            decoded document, or None.
        """
        fmt = sniff_format(content)
        if fmt is None:
            return None
        data = decode(fmt, content)
        for adapter in self._adapters.values():
            if adapter.recognizes(data):
                return adapter
        return None

    def load(
        self,
        content: str,
        file_name: str = "",
        tool: Tool | str | None = None,
    ) -> tuple[ToolAdapter, MCPCollection, ValidationResult]:
        """Identify, parse and validate a native collection document.

        Args:
            content: Document text.
            file_name: Used to detect the text format from the extension.
            tool: Owning tool. Identified from the layout when omitted.

        Returns:
            The adapter, the canonical collection and its validation
            result (which may carry warnings).

        Raises:
            DetectionError: If the tool or the text format is unknown.
            ParseError: If the document does not match the tool's layout.
            ValidationError: If the collection is structurally invalid.
        """
        if tool is not None:
            adapter = self.get(tool)
            if adapter is None:
                raise DetectionError(f"Unsupported tool: {tool}")
        else:
            adapter = self.identify(content)
            if adapter is None:
                raise DetectionError("Could not identify the document's tool")
        fmt = adapter.detect(file_name, content)
        if fmt is None:
            raise DetectionError("Content is neither JSON nor YAML")
        collection = adapter.parse(content, fmt=fmt)
        if collection is None:
            raise ParseError(f"Content does not match the {adapter.tool.value} layout")
        check = self._validator.validate(collection)
        if not check.is_valid:
            raise ValidationError("; ".join(check.errors), check.errors)
        return adapter, collection, check


def default_registry() -> AdapterRegistry:
    """Create an ``AdapterRegistry`` with all five built-in adapters."""
    registry = AdapterRegistry()
    registry.register(CopilotAdapter())
    registry.register(CodexAdapter())
    registry.register(CursorAdapter())
    registry.register(KilocodeAdapter())
    registry.register(TabnineAdapter())
    return registry
