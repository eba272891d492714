"""Adapter for Kilo Code collection documents.

Kilo Code abbreviates aggressively: ``desc`` for descriptions, ``deps``
for dependencies, ``lang`` for snippet languages, and ``created`` /
``modified`` for timestamps.
"""

from __future__ import annotations

from typing import Any

from mcpbridge.adapters.base import NativeLayout, Tool, ToolAdapter

_ABBREVIATED_KEYS = ("desc", "deps")


class KilocodeAdapter(ToolAdapter):
    tool = Tool.KILOCODE
    layout = NativeLayout(
        snippets_key="snippets",
        language_key="lang",
        snippet_description_key="desc",
        description_key="desc",
        dependencies_key="deps",
        configuration_key="config",
        created_key="created",
        updated_key="modified",
    )

    def recognizes(self, data: Any) -> bool:
        if not super().recognizes(data):
            return False
        if any(key in data for key in _ABBREVIATED_KEYS) or "modified" in data:
            return True
        return any(isinstance(s, dict) and "lang" in s for s in data["snippets"])
