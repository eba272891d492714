"""Builders and fakes shared across the mcpbridge test suite."""

from __future__ import annotations

from mcpbridge.exceptions import StorageError
from mcpbridge.model.canonical import build_collection, build_metadata, build_snippet
from mcpbridge.model.models import MCPCollection


class FakeFileAccess:
    """In-memory ``FileAccess`` with a fixed home directory.

    Paths listed in ``unreadable`` exist but raise ``StorageError`` on read.
    """

    def __init__(self, files: dict[str, str] | None = None, home: str = "/home/test") -> None:
        self.files: dict[str, str] = dict(files or {})
        self.home = home
        self.unreadable: set[str] = set()
        self.writes: list[str] = []

    def resolve_home(self, path: str) -> str:
        if path == "~" or path.startswith("~/"):
            return self.home + path[1:]
        return path

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.unreadable

    def size(self, path: str) -> int:
        return len(self.files.get(path, "").encode("utf-8"))

    def read_text(self, path: str) -> str:
        if path in self.unreadable:
            raise StorageError("Cannot read file (permission denied)", path)
        if path not in self.files:
            raise StorageError("Cannot read file (not found)", path)
        return self.files[path]

    def write_text(self, path: str, content: str) -> None:
        self.files[path] = content
        self.writes.append(path)


def make_collection(
    name: str = "memory",
    collection_id: str = "mcp_1",
    source_tool: str = "cursor",
    snippets: int = 1,
    configuration: dict | None = None,
) -> MCPCollection:
    """Build a valid collection with ``snippets`` shell snippets."""
    return build_collection(
        id=collection_id,
        source_tool=source_tool,
        snippets=[
            build_snippet(
                id=f"{collection_id}-s{i}",
                content=f"npx -y @modelcontextprotocol/server-{name} --slot {i}",
                language="shell",
                tags=["mcp"],
            )
            for i in range(snippets)
        ],
        metadata=build_metadata(
            name=name,
            version="1.2.0",
            description=f"{name} server",
            tags=["mcp", name],
            configuration=configuration if configuration is not None else {"command": "npx"},
        ),
        created_at="2024-06-10T08:00:00Z",
        updated_at="2024-06-11T08:00:00Z",
    )
