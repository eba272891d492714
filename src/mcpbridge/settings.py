"""Runtime tunables for scanning and migration.

Settings are resolved in three layers, later layers winning:

1. Built-in defaults (the values below).
2. An optional TOML file with a ``[mcpbridge]`` table, by default
   ``<data_dir>/config.toml``.
3. ``MCPBRIDGE_*`` environment variables (``MCPBRIDGE_BATCH_SIZE``,
   ``MCPBRIDGE_BATCH_DELAY``, ``MCPBRIDGE_ENABLE_THRESHOLD``,
   ``MCPBRIDGE_HOME``, ``MCPBRIDGE_LOG_LEVEL``,
   ``MCPBRIDGE_MAX_FILE_SIZE``).

The confidence values and the enable threshold are heuristics, exposed as
tunables so they can be adjusted without touching the scanner.

Example ``config.toml``::

    [mcpbridge]
    batch_size = 20
    batch_delay = 0
    enable_threshold = 0.7
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from mcpbridge.exceptions import MCPBridgeError

logger = logging.getLogger(__name__)

_ENV_PREFIX = "MCPBRIDGE_"
_TOML_TABLE = "mcpbridge"


def _default_data_dir() -> Path:
    return Path(os.environ.get("MCPBRIDGE_HOME", "~/.mcpbridge")).expanduser()


@dataclass(frozen=True)
class Settings:
    """Tunables shared by the scanner, the migration engine and the CLI.

    Attributes:
        batch_size: Items converted per batch before the engine pauses.
        batch_delay: Seconds to pause between batches.
        confidence_structured: Score for entries found under ``mcpServers``.
        confidence_alias: Score for entries found under alias keys
            (``servers``, nested ``mcp`` tables, server lists).
        confidence_generic: Score for the generic command/args fallback.
        enable_threshold: Entries scoring strictly above this are enabled
            by default when saved.
        max_file_size: Largest configuration file, in bytes, the scanner
            and the importers will read.
        data_dir: Directory holding the keyed JSON store.
        log_level: Logging level name used by the CLI.
    """

    batch_size: int = 10
    batch_delay: float = 0.1
    confidence_structured: float = 0.9
    confidence_alias: float = 0.8
    confidence_generic: float = 0.5
    enable_threshold: float = 0.6
    max_file_size: int = 10 * 1024 * 1024
    data_dir: Path = Path("~/.mcpbridge").expanduser()
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise MCPBridgeError(f"batch_size must be positive, got {self.batch_size}")
        if self.batch_delay < 0:
            raise MCPBridgeError(f"batch_delay must not be negative, got {self.batch_delay}")
        if self.max_file_size < 1:
            raise MCPBridgeError(f"max_file_size must be positive, got {self.max_file_size}")
        for name in (
            "confidence_structured",
            "confidence_alias",
            "confidence_generic",
            "enable_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise MCPBridgeError(f"{name} must be within [0, 1], got {value}")

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Resolve settings from defaults, a TOML file and the environment.

        Args:
            path: Explicit TOML file. When omitted, ``config.toml`` inside
                the data directory is used if it exists.

        Returns:
            The resolved ``Settings``.

        Raises:
            MCPBridgeError: If the TOML file is malformed or a value is
                out of range.
        """
        settings = cls(data_dir=_default_data_dir())
        toml_path = path if path is not None else settings.data_dir / "config.toml"
        if toml_path.is_file():
            settings = settings.merged(_read_toml(toml_path))
        elif path is not None:
            raise MCPBridgeError(f"Settings file not found: {path}")
        return settings.merged(_read_env())

    def merged(self, overrides: dict[str, Any]) -> Settings:
        """Return a copy with known keys from ``overrides`` applied."""
        known = {f.name: f.type for f in fields(self)}
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                logger.warning("Ignoring unknown setting: %s", key)
                continue
            changes[key] = _coerce(key, value)
        return replace(self, **changes) if changes else self


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in ("batch_size", "max_file_size"):
            return int(value)
        if key == "data_dir":
            return Path(str(value)).expanduser()
        if key == "log_level":
            return str(value).upper()
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MCPBridgeError(f"Invalid value for {key}: {value!r}") from exc


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise MCPBridgeError(f"Cannot read settings file {path}: {exc}") from exc
    table = data.get(_TOML_TABLE, {})
    if not isinstance(table, dict):
        raise MCPBridgeError(f"[{_TOML_TABLE}] in {path} must be a table")
    return table


def _read_env() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        name = key[len(_ENV_PREFIX):].lower()
        if name == "home":
            name = "data_dir"
        overrides[name] = value
    return overrides
