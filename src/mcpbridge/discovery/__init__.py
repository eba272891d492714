"""Discovery of MCP configurations used by locally installed AI coding tools.

Public API::

    from mcpbridge.capabilities import LocalFileAccess
    from mcpbridge.discovery import LocalToolScanner

    scanner = LocalToolScanner(LocalFileAccess())
    for result in scanner.scan_all_tools():
        print(f"{result.tool_name}: {len(result.found_configs)} configs")
"""

from __future__ import annotations

from mcpbridge.discovery.models import FoundConfig, PathSkip, ScanProgress, ScanResult, ScanStatus
from mcpbridge.discovery.tool_registry import TOOL_PROFILES, ToolProfile, get_profile
from mcpbridge.discovery.scanner import LocalToolScanner
from mcpbridge.discovery.dedup import DeduplicationAnalyzer, DuplicateGroup

__all__ = [
    "DeduplicationAnalyzer",
    "DuplicateGroup",
    "FoundConfig",
    "LocalToolScanner",
    "PathSkip",
    "ScanProgress",
    "ScanResult",
    "ScanStatus",
    "TOOL_PROFILES",
    "ToolProfile",
    "get_profile",
]
