"""``mcpbridge import <file>`` -- Import a tool's native collection document.

The owning tool is detected from the document layout unless ``--tool`` is
given. The document is validated and stored as a canonical collection,
ready to be migrated to another tool.

Exit Codes:
    0 -- The collection was imported.
    2 -- The file could not be read, recognised or validated.
"""

from __future__ import annotations

import json
import sys

import click

from mcpbridge.cli.context import AppContext
from mcpbridge.exceptions import MCPBridgeError


def _fail(message: str, output_format: str) -> None:
    if output_format == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(2)


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--tool", "tool_id", default=None, help="Tool whose native layout the file uses.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.pass_obj
def import_command(app: AppContext, path: str, tool_id: str | None, output_format: str) -> None:
    """Import the native collection document at PATH."""
    try:
        content = app.read_input(path)
        adapter, collection, check = app.adapters.load(content, path, tool_id)
        app.repository.save_collections([collection])
    except MCPBridgeError as exc:
        _fail(str(exc), output_format)

    if output_format == "json":
        click.echo(json.dumps({
            "id": collection.id,
            "tool": adapter.tool.value,
            "name": collection.name,
            "snippets": len(collection.code_snippets),
            "warnings": check.warnings,
        }, indent=2))
    else:
        from mcpbridge.cli.output import console
        console.print(
            f"Imported [bold]{collection.name}[/bold] ({adapter.tool.value}, "
            f"{len(collection.code_snippets)} snippet(s)) as {collection.id}"
        )
        for warning in check.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")
