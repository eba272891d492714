"""mcpbridge CLI -- Discover, manage and migrate MCP server configurations.

Entry point for the ``mcpbridge`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    scan     -- Discover MCP configurations of installed AI coding tools.
    import   -- Import a tool's native collection document.
    configs  -- List, export, import, deduplicate and write saved configs.
    migrate  -- Convert saved configurations between tool formats.
    history  -- Show, export or import migration history.
    tools    -- List known tools and migration formats.
    paths    -- Add or remove extra scan paths per tool.
    backup   -- Snapshot and restore the saved configuration state.

Usage::

    mcpbridge scan                         # Scan every known tool
    mcpbridge scan --tool cursor --save    # Save Cursor's servers
    mcpbridge configs list
    mcpbridge configs write cursor --dry-run
    mcpbridge migrate cursor kilocode --save
    mcpbridge history
    mcpbridge paths add cursor ~/work/.cursor
    mcpbridge backup create before-cleanup
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from mcpbridge import __version__
from mcpbridge.cli.backup_cmd import backup_group
from mcpbridge.cli.configs_cmd import configs_group
from mcpbridge.cli.context import AppContext
from mcpbridge.cli.import_cmd import import_command
from mcpbridge.cli.migrate_cmd import history_command, migrate_command
from mcpbridge.cli.paths_cmd import paths_group
from mcpbridge.cli.scan import scan_command
from mcpbridge.cli.tools_cmd import tools_command
from mcpbridge.exceptions import MCPBridgeError
from mcpbridge.settings import Settings


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="mcpbridge")
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory for saved state (default: ~/.mcpbridge or $MCPBRIDGE_HOME).")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Settings file (TOML with a [mcpbridge] table).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, config_path: Path | None, verbose: bool) -> None:
    """mcpbridge: Discover, manage and migrate MCP server configurations.

    Finds the MCP servers configured in locally installed AI coding tools,
    keeps them in one place and converts them between tool formats.
    """
    try:
        settings = Settings.load(config_path)
        if data_dir is not None:
            settings = settings.merged({"data_dir": data_dir})
        _configure_logging("DEBUG" if verbose else settings.log_level)
        ctx.obj = AppContext.create(settings)
    except MCPBridgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)


# Register all subcommands
cli.add_command(scan_command)
cli.add_command(import_command)
cli.add_command(configs_group)
cli.add_command(migrate_command)
cli.add_command(history_command)
cli.add_command(tools_command)
cli.add_command(paths_group)
cli.add_command(backup_group)
