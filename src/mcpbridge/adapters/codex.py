"""Adapter for Codex collection documents.

Codex nests metadata (with ``config`` for settings) under ``metadata`` and
gives every entry of ``code_snippets`` its own ``metadata`` object, which
maps to the canonical snippet context.
"""

from __future__ import annotations

from mcpbridge.adapters.base import NativeLayout, Tool, ToolAdapter


class CodexAdapter(ToolAdapter):
    tool = Tool.CODEX
    layout = NativeLayout(
        snippets_key="code_snippets",
        content_key="code",
        context_key="metadata",
        metadata_key="metadata",
        configuration_key="config",
    )
