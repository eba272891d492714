"""Adapter for Tabnine collection documents.

Tabnine keeps metadata at the top level, stores snippet bodies under
``code`` and tool settings under ``config``::

    {
      "id": "...",
      "name": "memory", "version": "1.0.0", "author": "me",
      "config": {"command": "npx"},
      "snippets": [{"id": "s1", "code": "...", "language": "shell"}],
      "created_at": "...", "updated_at": "..."
    }
"""

from __future__ import annotations

from typing import Any

from mcpbridge.adapters.base import NativeLayout, Tool, ToolAdapter


class TabnineAdapter(ToolAdapter):
    tool = Tool.TABNINE
    layout = NativeLayout(
        snippets_key="snippets",
        content_key="code",
        configuration_key="config",
    )

    def recognizes(self, data: Any) -> bool:
        # Kilocode also uses "snippets"; Tabnine bodies live under "code".
        if not super().recognizes(data):
            return False
        snippets = data["snippets"]
        return not snippets or any(
            isinstance(s, dict) and "code" in s for s in snippets
        )
