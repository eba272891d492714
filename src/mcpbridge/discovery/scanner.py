"""Local scanner that harvests MCP configurations from known tools.

For every ``ToolProfile`` the scanner walks the candidate paths in
declared order:

    1. Resolve ``~`` through ``FileAccess.resolve_home``.
    2. Skip paths that do not exist.
    3. Skip files larger than ``Settings.max_file_size``, then read the
       file, detect its format and decode it.
    4. If the tool has a native collection adapter that recognises the
       document, parse it with that adapter.
    5. Otherwise run the server-map extractors, falling back to generic
       ``command``/``args`` extraction.
       A generic entry from a file that carries one of the profile's
       markers is scored with the alias confidence.

Tools are scanned sequentially so progress is deterministic. A path that
exists but cannot be read or decoded is recorded in ``skipped_paths`` and
turns the tool's status to ``partial``; the scan carries on with the next
path. A tool with no existing candidate file is reported as ``failed`` with
an explanatory message. Scanning never raises for file problems.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from mcpbridge.adapters.codecs import decode, detect_format
from mcpbridge.adapters.registry import AdapterRegistry, default_registry
from mcpbridge.capabilities import FileAccess, ProgressEvent, ProgressSink, safe_emit
from mcpbridge.configs.conversion import found_to_entry
from mcpbridge.configs.models import ConfigEntry
from mcpbridge.discovery.extractors import extract_servers
from mcpbridge.discovery.models import FoundConfig, PathSkip, ScanProgress, ScanResult, ScanStatus
from mcpbridge.discovery.tool_registry import TOOL_PROFILES, ToolProfile
from mcpbridge.exceptions import OperationInProgressError, StorageError
from mcpbridge.settings import Settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], None]


class LocalToolScanner:
    """Discovers MCP server configurations for a set of tool profiles.

    Usage::

        scanner = LocalToolScanner(LocalFileAccess())
        for result in scanner.scan_all_tools():
            print(result.tool_name, result.status, len(result.found_configs))
    """

    def __init__(
        self,
        files: FileAccess,
        profiles: Iterable[ToolProfile] = TOOL_PROFILES,
        settings: Settings | None = None,
        adapters: AdapterRegistry | None = None,
        sink: ProgressSink | None = None,
    ) -> None:
        self._files = files
        self.profiles: tuple[ToolProfile, ...] = tuple(profiles)
        self._settings = settings if settings is not None else Settings()
        self._adapters = adapters if adapters is not None else default_registry()
        self._sink = sink
        self._scanning = False

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    def scan_all_tools(self, progress: ProgressCallback | None = None) -> list[ScanResult]:
        """Scan every configured profile.

        Args:
            progress: Called with ``current=0`` before the first tool, after
                each tool, and once more at the end with ``current == total``.

        Raises:
            OperationInProgressError: If a scan is already running.
        """
        return self.scan_tools(self.profiles, progress)

    def scan_tools(
        self,
        profiles: Iterable[ToolProfile],
        progress: ProgressCallback | None = None,
    ) -> list[ScanResult]:
        """Scan the given profiles sequentially. See ``scan_all_tools``."""
        if self._scanning:
            raise OperationInProgressError("A scan is already in progress")
        self._scanning = True
        try:
            selected = list(profiles)
            total = len(selected)
            self._notify(progress, ScanProgress(0, total))
            results: list[ScanResult] = []
            for index, profile in enumerate(selected, start=1):
                results.append(self._scan_profile(profile))
                self._notify(progress, ScanProgress(index, total, profile.name))
            self._notify(progress, ScanProgress(total, total))
            found = sum(len(r.found_configs) for r in results)
            self._emit("info", f"Scanned {total} tools, found {found} configurations",
                       {"tools": total, "configs": found})
            return results
        finally:
            self._scanning = False

    def scan_single_tool(self, profile: ToolProfile) -> ScanResult:
        """Scan one profile.

        Raises:
            OperationInProgressError: If a scan is already running.
        """
        if self._scanning:
            raise OperationInProgressError("A scan is already in progress")
        self._scanning = True
        try:
            return self._scan_profile(profile)
        finally:
            self._scanning = False

    # -- Results -----------------------------------------------------------

    def convert_to_entries(
        self,
        results: Iterable[ScanResult],
        selected: set[tuple[str, str]] | None = None,
    ) -> list[ConfigEntry]:
        """Turn findings into new saved entries.

        Args:
            results: Scan results.
            selected: ``(tool_id, name)`` pairs to keep. All when None.
        """
        return [
            found_to_entry(found, result.tool_id, self._settings)
            for result in results
            for found in result.found_configs
            if selected is None or (result.tool_id, found.name) in selected
        ]

    def tools_from_scan_results(self, results: Iterable[ScanResult]) -> list[ToolProfile]:
        """Profiles of the tools that yielded at least one configuration."""
        by_id = {p.id: p for p in self.profiles}
        return [
            by_id[r.tool_id] for r in results
            if r.found_configs and r.tool_id in by_id
        ]

    # -- Internals ---------------------------------------------------------

    def _scan_profile(self, profile: ToolProfile) -> ScanResult:
        if not profile.candidate_paths:
            return ScanResult(
                tool_id=profile.id, tool_name=profile.name, status=ScanStatus.FAILED,
                error_message=f"No candidate paths configured for {profile.name}",
            )

        found: list[FoundConfig] = []
        skipped: list[PathSkip] = []
        existing = 0
        for candidate in profile.candidate_paths:
            try:
                resolved = self._files.resolve_home(candidate)
                if not self._files.exists(resolved):
                    continue
            except StorageError as exc:
                logger.warning("Cannot check %s: %s", candidate, exc)
                skipped.append(PathSkip(candidate, str(exc)))
                continue
            existing += 1
            try:
                found.extend(self._harvest(profile, resolved))
            except StorageError as exc:
                logger.warning("Skipping %s: %s", resolved, exc)
                skipped.append(PathSkip(resolved, str(exc)))
            except _UnusableFile as exc:
                logger.info("Skipping %s: %s", resolved, exc)
                skipped.append(PathSkip(resolved, str(exc)))
            except Exception as exc:
                logger.warning("Error scanning: %s", resolved, exc_info=True)
                skipped.append(PathSkip(resolved, f"Unexpected error: {exc}"))

        if skipped:
            status = ScanStatus.PARTIAL
            error = f"{len(skipped)} of {len(profile.candidate_paths)} paths could not be read"
        elif existing == 0:
            status = ScanStatus.FAILED
            error = (
                f"No configuration file found for {profile.name} "
                f"(checked {len(profile.candidate_paths)} paths)"
            )
        else:
            status, error = ScanStatus.SUCCESS, None

        return ScanResult(
            tool_id=profile.id,
            tool_name=profile.name,
            found_configs=tuple(found),
            status=status,
            error_message=error,
            skipped_paths=tuple(skipped),
        )

    def _harvest(self, profile: ToolProfile, path: str) -> list[FoundConfig]:
        size = self._files.size(path)
        if size > self._settings.max_file_size:
            raise _UnusableFile(
                f"File too large ({size} bytes, limit {self._settings.max_file_size})"
            )
        content = self._files.read_text(path)
        if not content.strip():
            return []
        fmt = detect_format(path, content)
        if fmt is None:
            raise _UnusableFile("Unrecognised file format")
        data = decode(fmt, content)
        if data is None:
            raise _UnusableFile(f"Content is not valid {fmt.value}")

        if profile.adapter_tool is not None:
            adapter = self._adapters.get(profile.adapter_tool)
            if adapter is not None and adapter.recognizes(data):
                collection = adapter.parse(content, profile.id, fmt)
                if collection is None:
                    raise _UnusableFile(f"Not a valid {adapter.tool.value} document")
                return [FoundConfig(
                    name=collection.metadata.name,
                    description=collection.metadata.description
                    or f"converted from {profile.name} collection",
                    raw_config=dict(collection.metadata.configuration or {}),
                    source_file=path,
                    format=fmt,
                    confidence=self._settings.confidence_structured,
                )]

        marked = any(marker in content for marker in profile.markers)
        configs = []
        for entry in extract_servers(data, self._settings):
            confidence = entry.confidence
            if entry.generic and marked:
                confidence = max(confidence, self._settings.confidence_alias)
            description = (
                f"generic MCP-like config from {profile.name}"
                if entry.generic else f"converted from {profile.name} config"
            )
            configs.append(FoundConfig(
                name=entry.name,
                description=description,
                raw_config=entry.config,
                source_file=path,
                format=fmt,
                confidence=confidence,
            ))
        if not configs:
            logger.debug("No MCP entries in %s", path)
        return configs

    def _notify(self, callback: ProgressCallback | None, update: ScanProgress) -> None:
        if callback is not None:
            try:
                callback(update)
            except Exception:
                logger.warning("Scan progress callback failed", exc_info=True)
        self._emit("debug", f"Scan progress {update.current}/{update.total}",
                   {"current": update.current, "total": update.total})

    def _emit(self, level: str, message: str, data: dict) -> None:
        safe_emit(self._sink, ProgressEvent(level, "scanner", message, data))


class _UnusableFile(Exception):
    """A candidate file exists but holds nothing the scanner can decode."""
