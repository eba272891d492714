"""Per-tool format adapters and the registry that dispatches to them."""

from mcpbridge.adapters.base import NativeLayout, Tool, ToolAdapter
from mcpbridge.adapters.codecs import Format, detect_format
from mcpbridge.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "AdapterRegistry",
    "Format",
    "NativeLayout",
    "Tool",
    "ToolAdapter",
    "default_registry",
    "detect_format",
]
