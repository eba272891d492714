"""Adapter for GitHub Copilot collection documents.

Copilot nests descriptive fields under ``metadata`` and uses camelCase
keys::

    {
      "id": "mcp_1718000000000_a1b2c3d4e",
      "codeSnippets": [
        {"id": "s1", "content": "npx -y @modelcontextprotocol/server-memory",
         "language": "shell", "tags": ["memory"]}
      ],
      "metadata": {"name": "memory", "version": "1.0.0", "configuration": {}},
      "createdAt": "2024-06-10T08:00:00Z",
      "updatedAt": "2024-06-10T08:00:00Z"
    }
"""

from __future__ import annotations

from mcpbridge.adapters.base import NativeLayout, Tool, ToolAdapter


class CopilotAdapter(ToolAdapter):
    tool = Tool.GITHUB_COPILOT
    layout = NativeLayout(
        snippets_key="codeSnippets",
        metadata_key="metadata",
        created_key="createdAt",
        updated_key="updatedAt",
    )
