"""Shared fixtures for mcpbridge tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mcpbridge.capabilities import MemoryStore
from mcpbridge.model.models import MCPCollection
from mcpbridge.settings import Settings

from tests.helpers import FakeFileAccess, make_collection


@pytest.fixture
def fake_files() -> FakeFileAccess:
    return FakeFileAccess()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fast_settings(tmp_path: Path) -> Settings:
    """Settings with no inter-batch pause and an isolated data directory."""
    return Settings(batch_delay=0, data_dir=tmp_path / "data")


@pytest.fixture
def sample_collection() -> MCPCollection:
    return make_collection()
