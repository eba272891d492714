"""Host capabilities consumed by the core: files, keyed storage, progress events.

The scanner, the migration engine and the stores never touch the operating
system directly. They receive these capabilities through their constructors,
which keeps the core testable with in-memory doubles:

- ``FileAccess`` -- existence and size checks, text read/write and ``~``
  expansion.
- ``KeyedStore`` -- JSON documents addressed by a string key.
- ``ProgressSink`` -- fire-and-forget structured events for a UI or log.

One local implementation of each is provided for the CLI:
``LocalFileAccess`` (atomic writes via a temp file and ``replace``),
``JsonFileStore`` (one ``<key>.json`` file per key) and
``LoggingProgressSink``.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from mcpbridge.exceptions import StorageError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class FileAccess(Protocol):
    """File system boundary. Every method may raise ``StorageError``."""

    def exists(self, path: str) -> bool: ...

    def size(self, path: str) -> int: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def resolve_home(self, path: str) -> str: ...


@runtime_checkable
class KeyedStore(Protocol):
    """Persistent JSON documents addressed by key."""

    def read_json(self, key: str) -> Any | None: ...

    def write_json(self, key: str, value: Any) -> bool: ...


@dataclass(frozen=True)
class ProgressEvent:
    """A structured notification emitted by the core.

    Attributes:
        level: "debug", "info", "warning" or "error".
        source: Component that emitted the event (e.g. "scanner").
        message: Human-readable summary.
        data: Optional machine-readable payload.
    """

    level: str
    source: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ProgressSink(Protocol):
    def emit(self, event: ProgressEvent) -> None: ...


# ---------------------------------------------------------------------------
# Local implementations
# ---------------------------------------------------------------------------


class LocalFileAccess:
    """``FileAccess`` backed by the local file system.

    Args:
        home: Directory substituted for ``~``. Defaults to the user's home.
    """

    def __init__(self, home: Path | None = None) -> None:
        self._home = home

    def resolve_home(self, path: str) -> str:
        if path == "~" or path.startswith("~/"):
            home = self._home if self._home is not None else Path.home()
            return str(home / path[2:]) if path != "~" else str(home)
        return path

    def exists(self, path: str) -> bool:
        try:
            return Path(path).is_file()
        except OSError as exc:
            raise StorageError(f"Cannot stat file ({exc})", path) from exc

    def size(self, path: str) -> int:
        try:
            return Path(path).stat().st_size
        except OSError as exc:
            raise StorageError(f"Cannot stat file ({exc})", path) from exc

    def read_text(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read file ({exc})", path) from exc

    def write_text(self, path: str, content: str) -> None:
        """Write ``content`` atomically: the target is replaced or left untouched."""
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=target.name + ".", dir=str(target.parent))
        except OSError as exc:
            raise StorageError(f"Cannot prepare write ({exc})", path) from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp_path.replace(target)
        except OSError as exc:
            raise StorageError(f"Cannot write file ({exc})", path) from exc
        finally:
            if tmp_path.exists():
                tmp_path.unlink(missing_ok=True)


class JsonFileStore:
    """``KeyedStore`` keeping each key in ``<directory>/<key>.json``."""

    def __init__(self, directory: Path, files: FileAccess | None = None) -> None:
        self.directory = directory
        self._files = files if files is not None else LocalFileAccess()

    def _path(self, key: str) -> str:
        if not key or "/" in key or key.startswith("."):
            raise StorageError("Invalid store key", key)
        return str(self.directory / f"{key}.json")

    def read_json(self, key: str) -> Any | None:
        path = self._path(key)
        if not self._files.exists(path):
            return None
        text = self._files.read_text(path)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt store entry ({exc})", key) from exc

    def write_json(self, key: str, value: Any) -> bool:
        try:
            text = json.dumps(value, indent=2, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Value is not JSON serializable ({exc})", key) from exc
        self._files.write_text(self._path(key), text + "\n")
        return True


class MemoryStore:
    """In-process ``KeyedStore``. Values are copied on the way in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def read_json(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def write_json(self, key: str, value: Any) -> bool:
        self._data[key] = json.loads(json.dumps(value))
        return True

    def keys(self) -> list[str]:
        return sorted(self._data)


class LoggingProgressSink:
    """Forwards events to a stdlib logger."""

    _LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log if log is not None else logger

    def emit(self, event: ProgressEvent) -> None:
        level = self._LEVELS.get(event.level, logging.INFO)
        self._log.log(level, "[%s] %s", event.source, event.message)


def safe_emit(sink: ProgressSink | None, event: ProgressEvent) -> None:
    """Deliver ``event`` to ``sink`` without letting a faulty sink break the caller."""
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception:
        logger.warning("Progress sink failed for %s event", event.source, exc_info=True)
