"""binquadkey - map tile quadkeys packed into 64-bit unsigned integers."""

__version__ = "0.1.0"

from binquadkey.core import (
    FormatError,
    Quadkey,
    QuadkeyError,
    RangeError,
    TileCoord,
    is_quadkey,
)

__all__ = [
    "Quadkey",
    "TileCoord",
    "is_quadkey",
    "QuadkeyError",
    "FormatError",
    "RangeError",
]
