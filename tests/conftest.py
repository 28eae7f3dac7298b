"""Test fixtures for binquadkey tests."""

from __future__ import annotations

import importlib
import random
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from binquadkey import config
from binquadkey.core.types import TileCoord


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_tiles() -> list[TileCoord]:
    """Deterministic spread of tiles across every zoom level 1-23."""
    rng = random.Random(1234)
    tiles = []
    for zoom in range(1, 24):
        limit = 1 << zoom
        tiles.append(TileCoord(zoom, 0, 0))
        tiles.append(TileCoord(zoom, limit - 1, limit - 1))
        for _ in range(8):
            tiles.append(TileCoord(zoom, rng.randrange(limit), rng.randrange(limit)))
    return tiles


@pytest.fixture
def reload_config(monkeypatch):
    """Reload ``binquadkey.config`` under patched environment variables.

    Yields a function taking ``NAME=value`` keyword arguments; the module is
    reloaded from a clean environment afterwards.
    """
    names = ("BINQUADKEY_DEFAULT_RADIX", "BINQUADKEY_BATCH_SIZE", "BINQUADKEY_LOG_LEVEL")

    def _reload(**env: str):
        for name in names:
            monkeypatch.delenv(name, raising=False)
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return importlib.reload(config)

    yield _reload

    for name in names:
        monkeypatch.delenv(name, raising=False)
    importlib.reload(config)
