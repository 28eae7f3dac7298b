"""Shared type definitions for the binquadkey core module."""

from __future__ import annotations

from typing import NamedTuple


class TileCoord(NamedTuple):
    """Coordinate of a tile in the quadtree.

    Attributes:
        zoom: Level of detail (0 = root)
        x: Column index (0-based)
        y: Row index (0-based)
    """

    zoom: int
    x: int
    y: int
