"""Text codecs for the on-disk formats and format detection.

Detection order:
    1. File extension (``.json``, ``.yaml``, ``.yml``).
    2. Content sniffing: JSON-parseable objects, then YAML mappings.
       Known MCP markers (``mcpServers``, ``@modelcontextprotocol``) in
       content that parses as neither are reported as ``None`` so the caller
       can fall back to generic extraction.

All functions are pure and never raise on bad input.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import PurePath
from typing import Any

import yaml

logger = logging.getLogger(__name__)

MCP_MARKERS: tuple[str, ...] = ("mcpServers", "@modelcontextprotocol")


class Format(str, Enum):
    JSON = "json"
    YAML = "yaml"


_EXTENSIONS: dict[str, Format] = {
    ".json": Format.JSON,
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
}


def detect_format(file_name: str, content: str) -> Format | None:
    """Detect the format of a configuration file.

    Args:
        file_name: File name or path; only the suffix is consulted.
        content: The file's text.

    Returns:
        The detected ``Format`` or None when unrecognised.
    """
    suffix = PurePath(file_name).suffix.lower() if file_name else ""
    if suffix in _EXTENSIONS:
        return _EXTENSIONS[suffix]
    return sniff_format(content)


def sniff_format(content: str) -> Format | None:
    """Guess the format from content alone."""
    text = content.strip()
    if not text:
        return None
    if text[0] in "{[" and isinstance(decode(Format.JSON, text), (dict, list)):
        return Format.JSON
    if isinstance(decode(Format.YAML, text), dict):
        return Format.YAML
    if has_mcp_marker(text):
        logger.debug("MCP marker present but content is neither JSON nor YAML")
    return None


def has_mcp_marker(content: str) -> bool:
    return any(marker in content for marker in MCP_MARKERS)


def decode(fmt: Format, content: str) -> Any | None:
    """Parse ``content`` in ``fmt``. Returns None on any syntax error."""
    try:
        if fmt is Format.JSON:
            return json.loads(content)
        return yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError, ValueError):
        return None


def encode(fmt: Format, data: Any) -> str | None:
    """Render ``data`` in ``fmt``. Returns None if it cannot be represented."""
    try:
        if fmt is Format.JSON:
            return json.dumps(data, indent=2, ensure_ascii=False)
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    except (TypeError, ValueError, yaml.YAMLError):
        return None
