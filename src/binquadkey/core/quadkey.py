"""Binary quadkey value type.

A quadkey addresses a tile in a quadtree map pyramid. Here it is packed into a
single unsigned 64-bit integer:

- bits 63 down to ``64 - 2 * zoom`` hold the quadrant path, two bits per level,
  root level first. Each pair is ``(y_bit << 1) | x_bit`` for that level.
- bits 0-4 hold the zoom level itself.

For zoom <= 23 the path never reaches the zoom field, so both coexist and the
packed integer alone identifies the tile. Packed values sort in quadtree
pre-order: a tile sorts before all of its descendants.
"""

from __future__ import annotations

import operator
import struct
from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np

from binquadkey.config import (
    MAX_RADIX,
    MAX_ZOOM,
    MIN_RADIX,
    PACKED_BITS,
    QUADKEY_ALPHABET,
    UINT32_MASK,
    UINT64_MASK,
    ZOOM_MASK,
)
from binquadkey.core.errors import FormatError, RangeError
from binquadkey.core.types import TileCoord

_PACKED = struct.Struct(">Q")

#: Digits accepted by from_radix_string, lowercase
_RADIX_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _prefix_mask(zoom: int) -> int:
    """Mask keeping the top ``2 * zoom`` bits of a packed key."""
    return (UINT64_MASK << (PACKED_BITS - 2 * zoom)) & UINT64_MASK


#: Prefix masks indexed by zoom level 0..MAX_ZOOM (read-only after import)
PREFIX_MASKS: tuple[int, ...] = tuple(_prefix_mask(z) for z in range(MAX_ZOOM + 1))


def _as_int(value: Any, name: str) -> int:
    """Coerce an integer argument, rejecting bools and non-integers."""
    if isinstance(value, bool):
        raise FormatError(f"{name} must be an integer, not bool")
    try:
        return operator.index(value)
    except TypeError as e:
        raise FormatError(f"{name} must be an integer, got {type(value).__name__}") from e


def _check_zoom(zoom: int) -> int:
    zoom = _as_int(zoom, "Zoom")
    if not 0 <= zoom <= MAX_ZOOM:
        raise RangeError(f"Zoom {zoom} is outside 0-{MAX_ZOOM}")
    return zoom


def _digit_offset(index: int) -> int:
    """Bit offset of the quadrant pair for the ``index``-th level (0 = root)."""
    return PACKED_BITS - 2 * (index + 1)


@dataclass(frozen=True, order=True)
class Quadkey:
    """Immutable map tile address backed by a packed 64-bit integer.

    Use the ``from_*`` constructors rather than passing ``packed`` directly;
    direct construction still validates that the value is canonical.

    Attributes:
        packed: Unsigned 64-bit integer, the only stored state
    """

    packed: int = 0

    def __post_init__(self) -> None:
        packed = _as_int(self.packed, "Packed value")
        if not 0 <= packed <= UINT64_MASK:
            raise RangeError(f"Packed value {packed} does not fit in 64 unsigned bits")

        zoom = packed & ZOOM_MASK
        if zoom > MAX_ZOOM:
            raise RangeError(f"Zoom field {zoom} is outside 0-{MAX_ZOOM}")

        # Bits between the zoom field and the path must be clear
        stray = packed & ~PREFIX_MASKS[zoom] & ~ZOOM_MASK & UINT64_MASK
        if stray:
            raise FormatError(
                f"Packed value {packed:#018x} has bits set below its zoom {zoom} path"
            )
        object.__setattr__(self, "packed", packed)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_tile_xy(cls, x: int, y: int, zoom: int) -> Quadkey:
        """Pack tile column/row at a zoom level.

        Args:
            x: Tile column, ``0 <= x < 2 ** zoom``
            y: Tile row, ``0 <= y < 2 ** zoom``
            zoom: Level of detail (0-23)

        Returns:
            The corresponding Quadkey

        Raises:
            RangeError: If zoom, x or y is out of range
            FormatError: If zoom, x or y is not an integer
        """
        zoom = _check_zoom(zoom)
        x = _as_int(x, "Tile x")
        y = _as_int(y, "Tile y")
        limit = 1 << zoom
        if not (0 <= x < limit and 0 <= y < limit):
            raise RangeError(f"Tile ({x}, {y}) is outside the {limit}x{limit} grid at zoom {zoom}")

        packed = 0
        for level in range(zoom, 0, -1):
            bit = 1 << (level - 1)
            offset = _digit_offset(zoom - level)
            if x & bit:
                packed |= 1 << offset
            if y & bit:
                packed |= 1 << (offset + 1)
        return cls(packed | zoom)

    @classmethod
    def from_quadkey(cls, quadkey: str) -> Quadkey:
        """Pack a base-4 quadkey string such as ``"1202102332221212"``.

        Raises:
            FormatError: If the string contains characters other than 0-3
            RangeError: If the string is longer than 23 characters
        """
        if not isinstance(quadkey, str):
            raise FormatError(f"Quadkey must be a string, got {type(quadkey).__name__}")
        zoom = len(quadkey)
        if zoom > MAX_ZOOM:
            raise RangeError(f"Quadkey {quadkey!r} is deeper than zoom {MAX_ZOOM}")

        packed = 0
        for index, char in enumerate(quadkey):
            digit = QUADKEY_ALPHABET.find(char)
            if digit < 0:
                raise FormatError(
                    f"Invalid character {char!r} at position {index} in quadkey {quadkey!r}"
                )
            packed |= digit << _digit_offset(index)
        return cls(packed | zoom)

    @classmethod
    def from_packed(cls, value: int, zoom: int | None = None) -> Quadkey:
        """Wrap an existing packed integer.

        If ``zoom`` is omitted it is read from the low five bits. An explicit
        zoom is merged into a value whose zoom field is empty (stores that
        persist only the path), and must agree with it otherwise.

        Raises:
            RangeError: If the value or zoom is out of range
            FormatError: If the value is not canonical or contradicts ``zoom``
        """
        value = _as_int(value, "Packed value")
        if not 0 <= value <= UINT64_MASK:
            raise RangeError(f"Packed value {value} does not fit in 64 unsigned bits")

        if zoom is not None:
            zoom = _check_zoom(zoom)
            field = value & ZOOM_MASK
            if field == 0:
                value |= zoom
            elif field != zoom:
                raise FormatError(f"Packed value encodes zoom {field}, expected {zoom}")
        return cls(value)

    @classmethod
    def from_halves(cls, low: int, high: int) -> Quadkey:
        """Join two unsigned 32-bit halves into a packed key.

        Args:
            low: Lower 32 bits (holds the zoom field)
            high: Upper 32 bits (holds the first 16 levels of the path)
        """
        low = _as_int(low, "Low half")
        high = _as_int(high, "High half")
        for name, half in (("low", low), ("high", high)):
            if not 0 <= half <= UINT32_MASK:
                raise RangeError(f"{name} half {half} does not fit in 32 unsigned bits")
        return cls.from_packed((high << 32) | low)

    @classmethod
    def from_bytes(cls, data: bytes) -> Quadkey:
        """Read 8 big-endian bytes as produced by :meth:`to_bytes`."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise FormatError(f"Expected a bytes-like object, got {type(data).__name__}")
        if len(data) != _PACKED.size:
            raise FormatError(f"Expected {_PACKED.size} bytes, got {len(data)}")
        (value,) = _PACKED.unpack(bytes(data))
        return cls.from_packed(value)

    @classmethod
    def from_radix_string(cls, text: str, radix: int = 10) -> Quadkey:
        """Parse a packed integer written in ``radix`` (see :meth:`to_radix_string`).

        Only bare ASCII digits of the radix are accepted (either case); no sign,
        prefix, separator or surrounding whitespace.
        """
        radix = _check_radix(radix)
        if not isinstance(text, str):
            raise FormatError(f"Expected a string, got {type(text).__name__}")
        digits = _RADIX_DIGITS[:radix]
        if not text or not text.isascii() or any(c not in digits for c in text.lower()):
            raise FormatError(f"Cannot parse {text!r} as a base-{radix} integer")
        value = int(text, radix)
        return cls.from_packed(value)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def zoom(self) -> int:
        """Level of detail, read from the low five bits of ``packed``."""
        return self.packed & ZOOM_MASK

    @property
    def x(self) -> int:
        return self.tile().x

    @property
    def y(self) -> int:
        return self.tile().y

    @property
    def high_half(self) -> int:
        """Upper 32 bits of ``packed`` as an unsigned integer."""
        return self.packed >> 32

    @property
    def low_half(self) -> int:
        """Lower 32 bits of ``packed`` as an unsigned integer."""
        return self.packed & UINT32_MASK

    def _digits(self) -> Iterator[int]:
        """Yield quadrant digits root first."""
        for index in range(self.zoom):
            yield (self.packed >> _digit_offset(index)) & 3

    def tile(self) -> TileCoord:
        """Unpack to ``(zoom, x, y)``, the exact inverse of :meth:`from_tile_xy`."""
        x = y = 0
        for digit in self._digits():
            x = (x << 1) | (digit & 1)
            y = (y << 1) | (digit >> 1)
        return TileCoord(self.zoom, x, y)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_quadkey(self) -> str:
        """Return the base-4 quadkey string, one digit per level, root first."""
        return "".join(QUADKEY_ALPHABET[digit] for digit in self._digits())

    def to_radix_string(self, radix: int = 10) -> str:
        """Format ``packed`` as an unsigned integer in the given radix.

        Args:
            radix: 2-36, defaults to 10

        Returns:
            Lowercase digits without sign, prefix or padding

        Raises:
            RangeError: If radix is outside 2-36
        """
        radix = _check_radix(radix)
        if radix == 10:
            return str(self.packed)
        return np.base_repr(self.packed, base=radix).lower()

    def to_bytes(self) -> bytes:
        """Return ``packed`` as 8 bytes, most significant byte first."""
        return _PACKED.pack(self.packed)

    def __str__(self) -> str:
        return str(self.packed)

    def __repr__(self) -> str:
        return f"Quadkey({self.to_quadkey()!r}, packed={self.packed})"

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def is_ancestor_of(self, other: Quadkey) -> bool:
        """Whether ``other`` lies strictly inside this tile.

        Compares the top ``2 * zoom`` bits of both keys; a key is never its
        own ancestor.
        """
        if other.zoom <= self.zoom:
            return False
        mask = PREFIX_MASKS[self.zoom]
        return (self.packed & mask) == (other.packed & mask)

    def equals(self, other: Quadkey) -> bool:
        return self.packed == other.packed

    def ancestor(self, zoom: int) -> Quadkey:
        """Return the enclosing tile at a coarser (or equal) zoom."""
        zoom = _check_zoom(zoom)
        if zoom > self.zoom:
            raise RangeError(f"Zoom {zoom} is deeper than this key's zoom {self.zoom}")
        return Quadkey((self.packed & PREFIX_MASKS[zoom]) | zoom)

    def parent(self) -> Quadkey:
        if self.zoom == 0:
            raise RangeError("The root tile has no parent")
        return self.ancestor(self.zoom - 1)

    def children(self) -> tuple[Quadkey, Quadkey, Quadkey, Quadkey]:
        """Return the four tiles one level down, in digit order 0-3."""
        if self.zoom == MAX_ZOOM:
            raise RangeError(f"Tiles at zoom {MAX_ZOOM} have no children")
        zoom = self.zoom + 1
        base = (self.packed & PREFIX_MASKS[self.zoom]) | zoom
        offset = _digit_offset(self.zoom)
        return tuple(Quadkey(base | (digit << offset)) for digit in range(4))

    def descendant_range(self) -> tuple[int, int]:
        """Inclusive packed bounds covering this tile and all its descendants.

        Suitable for ``BETWEEN`` scans over a column of packed keys.
        """
        mask = PREFIX_MASKS[self.zoom]
        return self.packed, (self.packed & mask) | (~mask & UINT64_MASK)


def _check_radix(radix: int) -> int:
    radix = _as_int(radix, "Radix")
    if not MIN_RADIX <= radix <= MAX_RADIX:
        raise RangeError(f"Radix {radix} is outside {MIN_RADIX}-{MAX_RADIX}")
    return radix


def is_quadkey(obj: Any) -> bool:
    """Tests if the specified object is a Quadkey."""
    return isinstance(obj, Quadkey)
