"""Quadkey codec: packed value type, errors and batch operations."""

from .errors import FormatError, QuadkeyError, RangeError
from .quadkey import PREFIX_MASKS, Quadkey, is_quadkey
from .types import TileCoord

__all__ = [
    "Quadkey",
    "PREFIX_MASKS",
    "is_quadkey",
    "TileCoord",
    "QuadkeyError",
    "FormatError",
    "RangeError",
]
