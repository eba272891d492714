"""``mcpbridge backup`` -- Snapshot and restore the saved configuration state.

A backup holds the saved configurations, user-registered tools and custom
scan paths.

Subcommands::

    mcpbridge backup create NAME [-d TEXT]
    mcpbridge backup list
    mcpbridge backup restore BACKUP_ID
    mcpbridge backup delete BACKUP_ID
    mcpbridge backup prune --keep N
    mcpbridge backup export BACKUP_ID [-o FILE]
    mcpbridge backup import FILE

Exit Codes:
    0 -- Success.
    1 -- The requested backup does not exist.
    2 -- The operation failed (blank name, unreadable or corrupt backup).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from mcpbridge.cli.context import AppContext
from mcpbridge.configs.backups import Backup
from mcpbridge.exceptions import MCPBridgeError, PreconditionError

_FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)


def _summary(backup: Backup) -> dict:
    return {
        "id": backup.id,
        "name": backup.name,
        "description": backup.description,
        "created_at": backup.to_dict()["created_at"],
        "configs": backup.config_count,
        "size": backup.size,
    }


@click.group("backup")
def backup_group() -> None:
    """Create, list, restore and delete backups of the saved state."""


@backup_group.command("create")
@click.argument("name")
@click.option("-d", "--description", default=None, help="Free-text description.")
@_FORMAT_OPTION
@click.pass_obj
def create_command(app: AppContext, name: str, description: str | None, output_format: str) -> None:
    """Snapshot the saved configurations under NAME."""
    try:
        backup = app.backups.create(name, description)
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    if output_format == "json":
        click.echo(json.dumps(_summary(backup), indent=2))
    else:
        click.echo(f"Created backup {backup.id} ({backup.config_count} configuration(s)).")


@backup_group.command("list")
@_FORMAT_OPTION
@click.pass_obj
def list_command(app: AppContext, output_format: str) -> None:
    """List backups, newest first."""
    try:
        backups = app.backups.all()
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    if output_format == "json":
        click.echo(json.dumps({"backups": [_summary(b) for b in backups]}, indent=2))
    else:
        from mcpbridge.cli.output import print_backups
        print_backups(backups)


@backup_group.command("restore")
@click.argument("backup_id")
@click.pass_obj
def restore_command(app: AppContext, backup_id: str) -> None:
    """Replace the saved state with backup BACKUP_ID."""
    try:
        backup = app.backups.restore(backup_id)
    except PreconditionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    click.echo(f"Restored {backup.name} ({backup.config_count} configuration(s)).")


@backup_group.command("delete")
@click.argument("backup_id")
@click.pass_obj
def delete_command(app: AppContext, backup_id: str) -> None:
    """Delete backup BACKUP_ID."""
    if not app.backups.delete(backup_id):
        click.echo(f"Error: Unknown backup: {backup_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {backup_id}")


@backup_group.command("prune")
@click.option("--keep", type=click.IntRange(min=0), default=10, show_default=True,
              help="Number of newest backups to keep.")
@click.pass_obj
def prune_command(app: AppContext, keep: int) -> None:
    """Delete all but the newest backups."""
    removed = app.backups.prune(keep)
    click.echo(f"Removed {removed} backup(s).")


@backup_group.command("export")
@click.argument("backup_id")
@click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False), default=None,
              help="Write to FILE instead of stdout.")
@click.pass_obj
def export_command(app: AppContext, backup_id: str, output_path: str | None) -> None:
    """Export backup BACKUP_ID as JSON."""
    try:
        document = app.backups.export_backup(backup_id)
    except PreconditionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if output_path is None:
        click.echo(document)
        return
    app.files.write_text(str(Path(output_path).resolve()), document + "\n")
    click.echo(f"Exported to {output_path}")


@backup_group.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_command(app: AppContext, path: str) -> None:
    """Add the exported backup at PATH."""
    try:
        backup = app.backups.import_backup(app.read_input(path))
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    click.echo(f"Imported backup {backup.id} ({backup.name}).")
