"""Static registry of AI coding tools and where they keep MCP configs.

Each ``ToolProfile`` lists the candidate files a tool may use, in the
order they are checked. Paths start with ``~`` and are resolved through the
``FileAccess`` capability, so the same profiles work against a real home
directory and against a test double.

Most tools follow the same three-location pattern::

    ~/.<tool>/mcp.json
    ~/Library/Application Support/<Tool>/mcp.json     (macOS)
    ~/.config/<tool>/mcp.json                         (Linux/XDG)

Profiles are immutable and owned by the scanner's configuration; nothing
mutates them at runtime. User-added scan paths produce a new profile with
the extra candidates appended (``with_extra_paths``).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from mcpbridge.adapters.base import Tool
from mcpbridge.adapters.codecs import MCP_MARKERS, Format

_APP_SUPPORT = "~/Library/Application Support"
_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
_DIRECTORY_FILES = ("mcp.json", "mcp.yaml", "mcp.yml")


@dataclass(frozen=True)
class ToolProfile:
    """Describes where an AI coding tool stores its MCP configuration.

    Attributes:
        id: Machine identifier (e.g. "cursor").
        name: Display name (e.g. "Cursor").
        candidate_paths: Files to check, in priority order.
        markers: Content markers; a generic entry found in a file that
            contains one is scored with the alias confidence.
        default_format: Format assumed when detection is inconclusive.
        adapter_tool: Native collection format for migration, if any.
    """

    id: str
    name: str
    candidate_paths: tuple[str, ...]
    markers: tuple[str, ...] = MCP_MARKERS
    default_format: Format = Format.JSON
    adapter_tool: Tool | None = None

    @property
    def default_path(self) -> str:
        return self.candidate_paths[0]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "candidate_paths": list(self.candidate_paths),
            "format": self.default_format.value,
        }


def _standard(
    tool_id: str,
    name: str,
    dot_dir: str,
    app_dir: str,
    xdg_dir: str,
    adapter_tool: Tool | None = None,
) -> ToolProfile:
    return ToolProfile(
        id=tool_id,
        name=name,
        candidate_paths=(
            f"~/{dot_dir}/mcp.json",
            f"{_APP_SUPPORT}/{app_dir}/mcp.json",
            f"~/.config/{xdg_dir}/mcp.json",
        ),
        adapter_tool=adapter_tool,
    )


def _build_profiles() -> tuple[ToolProfile, ...]:
    return (
        _standard("cursor", "Cursor", ".cursor", "Cursor", "cursor", Tool.CURSOR),
        ToolProfile(
            id="claude-code",
            name="Claude Code",
            candidate_paths=(
                f"{_APP_SUPPORT}/Claude Code/mcp.json",
                "~/.claude/mcp.json",
                "~/.config/claude-code/mcp.json",
            ),
        ),
        _standard("kilo-code", "Kilo Code", ".kilo", "Kilo Code", "kilo", Tool.KILOCODE),
        ToolProfile(
            id="github-copilot",
            name="GitHub Copilot",
            candidate_paths=(
                "~/.config/gh-copilot/mcp.json",
                "~/.github/copilot/mcp.json",
                f"{_APP_SUPPORT}/GitHub Desktop/copilot/mcp.json",
            ),
            adapter_tool=Tool.GITHUB_COPILOT,
        ),
        _standard("tabnine", "Tabnine", ".tabnine", "Tabnine", "tabnine", Tool.TABNINE),
        _standard(
            "amazon-codewhisperer", "Amazon CodeWhisperer",
            ".aws/codewhisperer", "Amazon/codewhisperer", "amazon/codewhisperer",
        ),
        _standard("replit-agent", "Replit Agent", ".replit/agent", "Replit/agent", "replit/agent"),
        _standard("codeium", "Codeium", ".codeium", "Codeium", "codeium"),
        _standard("mutable-ai", "Mutable AI", ".mutable", "Mutable", "mutable"),
        _standard(
            "sourcegraph-cody", "Sourcegraph Cody",
            ".sourcegraph/cody", "Sourcegraph/cody", "sourcegraph/cody",
        ),
        _standard("phind-code", "Phind Code", ".phind/code", "Phind/code", "phind/code"),
        _standard("windsurf", "Windsurf", ".windsurf", "Windsurf", "windsurf"),
        _standard("coderabbit", "CodeRabbit", ".coderabbit", "CodeRabbit", "coderabbit"),
        _standard("aider", "Aider", ".aider", "Aider", "aider"),
        _standard("continue", "Continue", ".continue", "Continue", "continue"),
    )


TOOL_PROFILES: tuple[ToolProfile, ...] = _build_profiles()


def get_profile(tool_id: str, profiles: tuple[ToolProfile, ...] = TOOL_PROFILES) -> ToolProfile | None:
    """Look up a profile by id. Returns None for unknown tools."""
    for profile in profiles:
        if profile.id == tool_id:
            return profile
    return None


def expand_scan_path(path: str) -> tuple[str, ...]:
    """Candidate files for a user-added scan path.

    A path with a configuration suffix is checked as given. Anything else is
    treated as a directory that may hold ``mcp.json``, ``mcp.yaml`` or
    ``mcp.yml``.
    """
    if path.lower().endswith(_CONFIG_SUFFIXES):
        return (path,)
    base = path.rstrip("/")
    return tuple(f"{base}/{name}" for name in _DIRECTORY_FILES)


def with_extra_paths(profile: ToolProfile, paths: Iterable[str]) -> ToolProfile:
    """Return ``profile`` with the candidates of ``paths`` appended, in order."""
    extra = [
        candidate
        for path in paths
        for candidate in expand_scan_path(path)
        if candidate not in profile.candidate_paths
    ]
    if not extra:
        return profile
    return replace(profile, candidate_paths=profile.candidate_paths + tuple(dict.fromkeys(extra)))
