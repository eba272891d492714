"""``mcpbridge tools`` -- List known tools and supported migration formats.

Exit Codes:
    0 -- Always (informational command).
"""

from __future__ import annotations

import json

import click

from mcpbridge.cli.context import AppContext


@click.command("tools")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.pass_obj
def tools_command(app: AppContext, output_format: str) -> None:
    """List the tools mcpbridge scans and the formats it migrates between."""
    profiles = app.repository.tools()
    formats = [t.value for t in app.adapters.tools]
    if output_format == "json":
        click.echo(json.dumps({
            "tools": [
                p.to_dict() | {"collection_format": p.adapter_tool.value if p.adapter_tool else None}
                for p in profiles
            ],
            "migration_formats": formats,
        }, indent=2))
    else:
        from mcpbridge.cli.output import print_tools
        print_tools(profiles, formats)
