"""``mcpbridge migrate`` and ``mcpbridge history`` -- Cross-tool migration.

``migrate SOURCE TARGET`` converts everything saved for SOURCE (saved
server entries of tools using SOURCE's collection format, plus imported
collections) into TARGET's format. ``--id`` restricts the run to specific
entry or collection ids. With ``--save`` the converted items are stored
for TARGET.

Exit Codes:
    0 -- Every item migrated.
    1 -- Some items failed, or the run was cancelled.
    2 -- The request was rejected (same tool, unsupported tool, no items).
"""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path

import click

from mcpbridge.cli.context import AppContext
from mcpbridge.configs.conversion import collection_to_entry, entry_to_collection
from mcpbridge.exceptions import MCPBridgeError, PreconditionError
from mcpbridge.migration.models import MigrationProgress, MigrationResult
from mcpbridge.model.canonical import generate_id
from mcpbridge.model.models import MCPCollection

_FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)


def collect_items(app: AppContext, source: str, ids: tuple[str, ...] = ()) -> list[MCPCollection]:
    """Gather the canonical items that belong to ``source``."""
    profile_ids = {p.id for p in app.profiles_for(source)}
    items = [
        entry_to_collection(entry)
        for entry in app.repository.all()
        if entry.tool_id in profile_ids
    ]
    items.extend(c for c in app.repository.collections() if c.source_tool == source)
    if ids:
        wanted = set(ids)
        items = [item for item in items if item.id in wanted]
    return items


def save_migrated(app: AppContext, target: str, result: MigrationResult) -> int:
    """Store converted items for ``target``.

    Items become saved server entries of the first tool using the target
    format; when there is none they are kept as collections under new ids.
    """
    if not result.migrated_items:
        return 0
    profiles = app.profiles_for(target)
    if profiles:
        entries = [collection_to_entry(item, profiles[0].id) for item in result.migrated_items]
        return len(app.repository.add_many(entries))
    fresh = [replace(item, id=generate_id("mcp")) for item in result.migrated_items]
    app.repository.save_collections(fresh)
    return len(fresh)


def _run_with_progress(app: AppContext, source: str, target: str, items: list[MCPCollection]) -> MigrationResult:
    from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

    from mcpbridge.cli.output import console

    with Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        bar = progress.add_task(f"{source} -> {target}", total=100)

        def on_progress(update: MigrationProgress) -> None:
            progress.update(bar, completed=update.progress)

        return app.migrations.run(source, target, items, on_progress)


@click.command("migrate")
@click.argument("source")
@click.argument("target")
@click.option("--id", "item_ids", multiple=True, help="Only migrate this entry or collection id (repeatable).")
@click.option("--save", is_flag=True, default=False, help="Store the converted items for TARGET.")
@_FORMAT_OPTION
@click.pass_obj
def migrate_command(
    app: AppContext,
    source: str,
    target: str,
    item_ids: tuple[str, ...],
    save: bool,
    output_format: str,
) -> None:
    """Migrate saved configurations from SOURCE to TARGET format."""
    check = app.migrations.validate_migration(source, target)
    items = collect_items(app, source, item_ids) if check.is_valid else []
    errors = list(check.errors)
    if check.is_valid and not items:
        errors.append(f"Nothing to migrate for {source}")
    if errors:
        if output_format == "json":
            click.echo(json.dumps({"success": False, "errors": errors}))
        else:
            for error in errors:
                click.echo(f"Error: {error}", err=True)
        sys.exit(2)

    try:
        if output_format == "text":
            result = _run_with_progress(app, source, target, items)
        else:
            result = app.migrations.run(source, target, items)
    except PreconditionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    saved = save_migrated(app, target, result) if save else 0

    if output_format == "json":
        click.echo(json.dumps({**result.summary(), "saved": saved}, indent=2))
    else:
        from mcpbridge.cli.output import console, print_migration_result
        print_migration_result(result, source, target)
        if save:
            console.print(f"Saved {saved} item(s) for {target}.")

    sys.exit(0 if result.success and not result.failed_count else 1)


@click.command("history")
@click.option("--export", "export_path", type=click.Path(dir_okay=False), default=None,
              help="Write the migration history to FILE.")
@click.option("--import", "import_path", type=click.Path(exists=True, dir_okay=False), default=None,
              help="Append finished tasks from a history export.")
@click.option("--clear", is_flag=True, default=False, help="Delete the recorded history.")
@_FORMAT_OPTION
@click.pass_obj
def history_command(
    app: AppContext,
    export_path: str | None,
    import_path: str | None,
    clear: bool,
    output_format: str,
) -> None:
    """Show migration history and statistics."""
    store = app.migrations.store
    try:
        if import_path is not None:
            added = store.import_history(app.read_input(import_path))
            click.echo(f"Imported {added} task(s).", err=output_format == "json")
        if export_path is not None:
            app.files.write_text(str(Path(export_path).resolve()), store.export_history() + "\n")
            click.echo(f"Exported history to {export_path}", err=output_format == "json")
        if clear:
            store.clear_history()
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    tasks = store.history()
    stats = app.migrations.stats()
    if output_format == "json":
        click.echo(json.dumps({
            "tasks": [
                {k: v for k, v in t.to_dict().items() if k != "items"} | {"item_count": len(t.items)}
                for t in tasks
            ],
            "stats": {
                "total_tasks": stats.total_tasks,
                "completed_tasks": stats.completed_tasks,
                "failed_tasks": stats.failed_tasks,
                "cancelled_tasks": stats.cancelled_tasks,
                "in_progress_tasks": stats.in_progress_tasks,
                "total_items": stats.total_items,
                "successful_items": stats.successful_items,
                "success_rate": round(stats.success_rate, 1),
            },
        }, indent=2))
    else:
        from mcpbridge.cli.output import print_history
        print_history(tasks, stats)
