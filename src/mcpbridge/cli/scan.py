"""``mcpbridge scan`` -- Discover MCP configurations of installed AI tools.

Scans every known tool's candidate configuration files (or only the tools
named with ``--tool``) and reports what was found. With ``--save`` the
findings are stored as saved configurations, each server once even when
several candidate files hold it; each is enabled when its
confidence exceeds the configured threshold.

Exit Codes:
    0 -- At least one configuration was found.
    1 -- An unknown tool id was requested.
    2 -- No configurations were found.
"""

from __future__ import annotations

import json
import sys

import click

from mcpbridge.cli.context import AppContext
from mcpbridge.discovery.dedup import DeduplicationAnalyzer


@click.command("scan")
@click.option(
    "--tool", "tool_ids",
    multiple=True,
    help="Only scan this tool id (repeatable). Default: every known tool.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option(
    "--save",
    is_flag=True,
    default=False,
    help="Store the findings as saved configurations.",
)
@click.pass_obj
def scan_command(app: AppContext, tool_ids: tuple[str, ...], output_format: str, save: bool) -> None:
    """Scan local AI coding tools for MCP server configurations."""
    profiles = app.scanner.profiles
    if tool_ids:
        known = {p.id: p for p in profiles}
        unknown = [t for t in tool_ids if t not in known]
        if unknown:
            click.echo(f"Error: Unknown tool(s): {', '.join(unknown)}", err=True)
            sys.exit(1)
        profiles = tuple(known[t] for t in tool_ids)

    results = app.scanner.scan_tools(profiles)
    duplicates = DeduplicationAnalyzer().find_scan_duplicates(results)

    saved = []
    if save:
        existing = app.repository.all()
        analyzer = DeduplicationAnalyzer()
        fresh = []
        for entry in app.scanner.convert_to_entries(results):
            if analyzer.is_duplicate_of_existing(entry, existing) is None:
                fresh.append(entry)
                existing.append(entry)
        saved = app.repository.add_many(fresh)

    if output_format == "json":
        click.echo(json.dumps({
            "results": [r.to_dict() for r in results],
            "duplicates": [
                {"original": g.original.name, "count": len(g.duplicates) + 1}
                for g in duplicates
            ],
            "saved": [e.id for e in saved],
        }, indent=2))
    else:
        from mcpbridge.cli.output import console, print_scan_results
        print_scan_results(results)
        if duplicates:
            console.print(f"[yellow]{len(duplicates)} duplicate configuration group(s) found.[/yellow]")
        if save:
            console.print(f"Saved {len(saved)} configuration(s).")

    found = any(r.found_configs for r in results)
    sys.exit(0 if found else 2)
