"""Rich output formatting helpers for the mcpbridge CLI.

Status colours:
    success / completed = green, partial = yellow, failed = bold red,
    cancelled / pending = dim, in_progress = cyan
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mcpbridge.configs.backups import Backup
from mcpbridge.configs.models import ConfigEntry
from mcpbridge.configs.writer import WriteResult
from mcpbridge.discovery.dedup import DuplicateGroup
from mcpbridge.discovery.models import ScanResult, ScanStatus
from mcpbridge.discovery.tool_registry import ToolProfile
from mcpbridge.migration.models import MigrationResult, MigrationStats, MigrationStatus, MigrationTask

_STATUS_STYLES: dict[str, str] = {
    ScanStatus.SUCCESS.value: "green",
    ScanStatus.PARTIAL.value: "yellow",
    ScanStatus.FAILED.value: "bold red",
    MigrationStatus.COMPLETED.value: "green",
    MigrationStatus.FAILED.value: "bold red",
    MigrationStatus.CANCELLED.value: "dim",
    MigrationStatus.PENDING.value: "dim",
    MigrationStatus.IN_PROGRESS.value: "cyan",
}

console = Console()


def status_text(status: str) -> Text:
    return Text(status.upper(), style=_STATUS_STYLES.get(status, "white"))


def _home_relative(path: str) -> str:
    return path.replace(str(Path.home()), "~", 1)


def print_scan_results(results: Sequence[ScanResult]) -> None:
    """Print one row per scanned tool followed by the findings."""
    table = Table(title="MCP Configuration Scan", show_header=True, header_style="bold")
    table.add_column("Tool", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Configs", justify="right")
    table.add_column("Notes", style="dim")
    for result in results:
        table.add_row(
            result.tool_name,
            status_text(result.status.value),
            str(len(result.found_configs)),
            result.error_message or "",
        )
    console.print(table)

    found = [(r, fc) for r in results for fc in r.found_configs]
    if not found:
        return
    detail = Table(title="Discovered Servers", show_header=True, header_style="bold")
    detail.add_column("Tool")
    detail.add_column("Name", style="bold")
    detail.add_column("Confidence", justify="right")
    detail.add_column("Source", style="dim")
    for result, config in found:
        detail.add_row(
            result.tool_id,
            config.name,
            f"{config.confidence:.0%}",
            _home_relative(config.source_file),
        )
    console.print(detail)
    tools = sum(1 for r in results if r.found_configs)
    console.print(f"[bold]{len(found)}[/bold] configurations across {tools} tool(s)")


def print_entries(entries: Sequence[ConfigEntry]) -> None:
    if not entries:
        console.print("[dim]No saved configurations.[/dim]")
        return
    table = Table(title="Saved Configurations", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Tool")
    table.add_column("Name", style="bold")
    table.add_column("Enabled", justify="center")
    table.add_column("Command")
    for entry in entries:
        command = entry.config.get("command") or entry.config.get("url") or "-"
        table.add_row(
            entry.id,
            entry.tool_id,
            entry.name,
            Text("yes", style="green") if entry.enabled else Text("no", style="dim"),
            str(command),
        )
    console.print(table)


def print_duplicates(groups: Sequence[DuplicateGroup[ConfigEntry]]) -> None:
    if not groups:
        console.print("[green]No duplicate configurations.[/green]")
        return
    table = Table(title="Duplicate Configurations", show_header=True, header_style="bold")
    table.add_column("Tool")
    table.add_column("Name", style="bold")
    table.add_column("Kept", style="green")
    table.add_column("Duplicates", style="yellow")
    for group in groups:
        table.add_row(
            group.original.tool_id,
            group.original.name,
            group.original.id,
            ", ".join(d.id for d in group.duplicates),
        )
    console.print(table)


def print_tools(profiles: Sequence[ToolProfile], adapter_tools: Sequence[str]) -> None:
    table = Table(title="Supported Tools", show_header=True, header_style="bold")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Collection Format", justify="center")
    table.add_column("Default Path", style="dim")
    for profile in profiles:
        table.add_row(
            profile.id,
            profile.name,
            profile.adapter_tool.value if profile.adapter_tool else "-",
            profile.default_path if profile.candidate_paths else "-",
        )
    console.print(table)
    console.print("Migration formats: " + ", ".join(adapter_tools))


def print_write_result(result: WriteResult) -> None:
    prefix = "[dry-run] " if result.dry_run else ""
    if not result.written:
        console.print(f"{prefix}[dim]Nothing to write to {result.target_path}.[/dim]")
    else:
        verb = "Would write" if result.dry_run else "Wrote"
        console.print(f"{prefix}{verb} {len(result.written)} server(s) to {result.target_path}")
    if result.backup_path:
        console.print(f"{prefix}Backup: {result.backup_path}")
    if result.skipped:
        console.print(f"[yellow]Skipped existing: {', '.join(result.skipped)}[/yellow]")


def print_migration_result(result: MigrationResult, source: str, target: str) -> None:
    if result.cancelled:
        verdict = Text("CANCELLED", style="dim")
    elif result.success and not result.failed_count:
        verdict = Text("SUCCESS", style="bold green")
    elif result.success:
        verdict = Text("COMPLETED WITH ERRORS", style="yellow")
    else:
        verdict = Text("FAILED", style="bold red")
    header = Text.assemble(
        ("Migration: ", "bold"), (f"{source} -> {target}", ""),
        ("  Status: ", "bold"), verdict,
    )
    console.print(Panel(header, title=result.task_id))
    console.print(
        f"[green]{result.migrated_count} migrated[/green] | "
        f"[red]{result.failed_count} failed[/red] | {result.duration:.2f}s"
    )
    for error in result.errors:
        console.print(f"  [red]x[/red] {error}")
    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")


def print_history(tasks: Sequence[MigrationTask], stats: MigrationStats) -> None:
    if tasks:
        table = Table(title="Migration History", show_header=True, header_style="bold")
        table.add_column("Task", style="dim")
        table.add_column("Source")
        table.add_column("Target")
        table.add_column("Items", justify="right")
        table.add_column("Status", justify="center")
        table.add_column("Finished", style="dim")
        for task in tasks:
            table.add_row(
                task.id,
                task.source_tool,
                task.target_tool,
                str(len(task.items)),
                status_text(task.status.value),
                task.completed_at.strftime("%Y-%m-%d %H:%M:%S") if task.completed_at else "-",
            )
        console.print(table)
    else:
        console.print("[dim]No migrations recorded.[/dim]")
    console.print(
        f"[bold]{stats.total_tasks}[/bold] tasks | "
        f"[green]{stats.completed_tasks} completed[/green] | "
        f"[red]{stats.failed_tasks} failed[/red] | "
        f"{stats.cancelled_tasks} cancelled | "
        f"success rate {stats.success_rate:.1f}%"
    )


def print_backups(backups: Sequence[Backup]) -> None:
    if not backups:
        console.print("[dim]No backups.[/dim]")
        return
    table = Table(title="Backups", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Configs", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Created", style="dim")
    for backup in backups:
        table.add_row(
            backup.id,
            backup.name,
            str(backup.config_count),
            f"{backup.size} B",
            backup.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


def print_scan_paths(paths: dict[str, list[str]]) -> None:
    if not paths:
        console.print("[dim]No custom scan paths.[/dim]")
        return
    table = Table(title="Custom Scan Paths", show_header=True, header_style="bold")
    table.add_column("Tool", style="bold")
    table.add_column("Path")
    for tool_id, tool_paths in sorted(paths.items()):
        for path in tool_paths:
            table.add_row(tool_id, path)
    console.print(table)
