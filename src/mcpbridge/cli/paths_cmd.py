"""``mcpbridge paths`` -- Manage extra scan paths per tool.

A path ending in ``.json``, ``.yaml`` or ``.yml`` is read as a file;
any other path is treated as a directory holding ``mcp.json``,
``mcp.yaml`` or ``mcp.yml``. Extra paths are checked after a tool's
built-in candidates.

Subcommands::

    mcpbridge paths list [--tool ID]
    mcpbridge paths add TOOL_ID PATH
    mcpbridge paths remove TOOL_ID PATH

Exit Codes:
    0 -- Success.
    1 -- The tool or path is unknown.
"""

from __future__ import annotations

import json
import sys

import click

from mcpbridge.cli.context import AppContext
from mcpbridge.exceptions import MCPBridgeError


@click.group("paths")
def paths_group() -> None:
    """List, add and remove custom scan paths."""


@paths_group.command("list")
@click.option("--tool", "tool_id", default=None, help="Only paths of this tool.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.pass_obj
def list_command(app: AppContext, tool_id: str | None, output_format: str) -> None:
    """List custom scan paths."""
    paths = app.repository.custom_paths()
    if tool_id is not None:
        paths = {tool_id: paths[tool_id]} if tool_id in paths else {}
    if output_format == "json":
        click.echo(json.dumps({"paths": paths}, indent=2))
    else:
        from mcpbridge.cli.output import print_scan_paths
        print_scan_paths(paths)


@paths_group.command("add")
@click.argument("tool_id")
@click.argument("path")
@click.pass_obj
def add_command(app: AppContext, tool_id: str, path: str) -> None:
    """Scan PATH as well when scanning TOOL_ID."""
    try:
        added = app.repository.add_custom_path(tool_id, path)
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Added {path} to {tool_id}." if added else f"{path} is already scanned for {tool_id}.")


@paths_group.command("remove")
@click.argument("tool_id")
@click.argument("path")
@click.pass_obj
def remove_command(app: AppContext, tool_id: str, path: str) -> None:
    """Stop scanning PATH for TOOL_ID."""
    if not app.repository.remove_custom_path(tool_id, path):
        click.echo(f"Error: {path} is not a custom scan path of {tool_id}", err=True)
        sys.exit(1)
    click.echo(f"Removed {path} from {tool_id}.")
