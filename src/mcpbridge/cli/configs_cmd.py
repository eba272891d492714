"""``mcpbridge configs`` -- Manage saved MCP server configurations.

Subcommands::

    mcpbridge configs list [--tool ID] [--search TEXT]
    mcpbridge configs export [--tool ID] [-o FILE]
    mcpbridge configs import FILE
    mcpbridge configs dedupe [--apply]
    mcpbridge configs toggle ENTRY_ID
    mcpbridge configs delete ENTRY_ID
    mcpbridge configs write TOOL_ID [--path FILE] [--no-overwrite] [--dry-run]

Exit Codes:
    0 -- Success.
    1 -- The requested entry or tool does not exist.
    2 -- The operation failed (unreadable import, malformed target file).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from mcpbridge.cli.context import AppContext
from mcpbridge.configs.interchange import export_configs_json, import_configs
from mcpbridge.discovery.dedup import DeduplicationAnalyzer
from mcpbridge.exceptions import MCPBridgeError

_FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)


@click.group("configs")
def configs_group() -> None:
    """List, exchange, deduplicate and write saved configurations."""


@configs_group.command("list")
@click.option("--tool", "tool_id", default=None, help="Only entries of this tool.")
@click.option("--search", "query", default="", help="Filter by name or id substring.")
@_FORMAT_OPTION
@click.pass_obj
def list_command(app: AppContext, tool_id: str | None, query: str, output_format: str) -> None:
    """List saved configurations."""
    entries = app.repository.search(query, tool_id)
    if output_format == "json":
        click.echo(json.dumps({
            "configs": [e.to_dict() for e in entries],
            "stats": app.repository.stats(),
        }, indent=2))
    else:
        from mcpbridge.cli.output import print_entries
        print_entries(entries)


@configs_group.command("export")
@click.option("--tool", "tool_id", default=None, help="Export a single tool.")
@click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False), default=None,
              help="Write to FILE instead of stdout.")
@click.pass_obj
def export_command(app: AppContext, tool_id: str | None, output_path: str | None) -> None:
    """Export saved configurations as JSON."""
    try:
        document = export_configs_json(app.repository, tool_id)
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if output_path is None:
        click.echo(document)
        return
    app.files.write_text(str(Path(output_path).resolve()), document + "\n")
    click.echo(f"Exported to {output_path}")


@configs_group.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@_FORMAT_OPTION
@click.pass_obj
def import_command(app: AppContext, path: str, output_format: str) -> None:
    """Import configurations from an export file at PATH.

    A full export replaces every saved entry; a single-tool export replaces
    that tool's entries; a bare array of entries is appended.
    """
    try:
        outcome = import_configs(app.repository, app.read_input(path))
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    if output_format == "json":
        click.echo(json.dumps({
            "imported": outcome.imported,
            "replaced_tools": outcome.replaced_tools,
            "errors": outcome.errors,
        }, indent=2))
    else:
        click.echo(f"Imported {outcome.imported} configuration(s).")
        for error in outcome.errors:
            click.echo(f"  skipped: {error}")


@configs_group.command("dedupe")
@click.option("--apply", is_flag=True, default=False, help="Delete the duplicates, keeping the first of each group.")
@_FORMAT_OPTION
@click.pass_obj
def dedupe_command(app: AppContext, apply: bool, output_format: str) -> None:
    """Report (and optionally remove) duplicate saved configurations."""
    groups = DeduplicationAnalyzer().find_entry_duplicates(app.repository.all())
    removed: list[str] = []
    if apply:
        for group in groups:
            for duplicate in group.duplicates:
                if app.repository.delete(duplicate.id):
                    removed.append(duplicate.id)
    if output_format == "json":
        click.echo(json.dumps({
            "groups": [
                {"original": g.original.id, "duplicates": [d.id for d in g.duplicates]}
                for g in groups
            ],
            "removed": removed,
        }, indent=2))
    else:
        from mcpbridge.cli.output import print_duplicates
        print_duplicates(groups)
        if apply:
            click.echo(f"Removed {len(removed)} duplicate(s).")


@configs_group.command("toggle")
@click.argument("entry_id")
@click.pass_obj
def toggle_command(app: AppContext, entry_id: str) -> None:
    """Enable or disable the saved entry ENTRY_ID."""
    if not app.repository.toggle(entry_id):
        click.echo(f"Error: No saved configuration {entry_id}", err=True)
        sys.exit(1)
    entry = app.repository.get(entry_id)
    click.echo(f"{entry.name}: {'enabled' if entry.enabled else 'disabled'}")


@configs_group.command("delete")
@click.argument("entry_id")
@click.pass_obj
def delete_command(app: AppContext, entry_id: str) -> None:
    """Delete the saved entry ENTRY_ID."""
    if not app.repository.delete(entry_id):
        click.echo(f"Error: No saved configuration {entry_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {entry_id}")


@configs_group.command("write")
@click.argument("tool_id")
@click.option("--path", "target_path", default=None, help="Target file (default: the tool's first candidate path).")
@click.option("--no-overwrite", is_flag=True, default=False, help="Keep servers that already exist in the file.")
@click.option("--dry-run", is_flag=True, default=False, help="Show what would be written.")
@click.pass_obj
def write_command(
    app: AppContext,
    tool_id: str,
    target_path: str | None,
    no_overwrite: bool,
    dry_run: bool,
) -> None:
    """Write the enabled entries of TOOL_ID into its MCP configuration file.

    The existing file is backed up to ``<file>.bak-<timestamp>`` first.
    """
    profile = app.repository.get_tool(tool_id)
    if profile is None:
        click.echo(f"Error: Unknown tool: {tool_id}", err=True)
        sys.exit(1)
    try:
        result = app.writer.write(
            profile,
            app.repository.by_tool(tool_id),
            path=target_path,
            overwrite=not no_overwrite,
            dry_run=dry_run,
        )
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    from mcpbridge.cli.output import print_write_result
    print_write_result(result)
