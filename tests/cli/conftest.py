"""Shared fixtures for CLI tests.

Every invocation runs against a temporary home directory and data
directory, so commands never touch the real tool configurations.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest
from click.testing import CliRunner, Result

from mcpbridge.cli.main import cli


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def invoke(home: Path, data_dir: Path) -> Callable[..., Result]:
    """Run the ``mcpbridge`` group with an isolated environment."""
    runner = CliRunner()
    env = {
        "HOME": str(home),
        "MCPBRIDGE_HOME": str(data_dir),
        "MCPBRIDGE_BATCH_DELAY": "0",
    }

    def _invoke(*args: str) -> Result:
        return runner.invoke(cli, list(args), env=env)

    return _invoke


@pytest.fixture
def cursor_config(home: Path) -> Path:
    """A Cursor ``mcp.json`` with two servers."""
    path = home / ".cursor" / "mcp.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({
        "mcpServers": {
            "memory": {"command": "npx", "args": ["-y", "@modelcontextprotocol/server-memory"]},
            "git": {"command": "uvx", "args": ["mcp-server-git"]},
        }
    }))
    return path
