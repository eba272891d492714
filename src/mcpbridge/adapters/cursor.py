"""Adapter for Cursor collection documents.

Cursor lists snippets under ``code``, keeps settings under ``settings``
and names its timestamps ``created`` and ``lastModified``.
"""

from __future__ import annotations

from mcpbridge.adapters.base import NativeLayout, Tool, ToolAdapter


class CursorAdapter(ToolAdapter):
    tool = Tool.CURSOR
    layout = NativeLayout(
        snippets_key="code",
        configuration_key="settings",
        created_key="created",
        updated_key="lastModified",
    )
