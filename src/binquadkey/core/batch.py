"""Vectorised quadkey packing over numpy arrays.

Every function here mirrors a scalar operation on
:class:`~binquadkey.core.quadkey.Quadkey` and applies the same validation,
but works on whole columns of keys at once. Packed keys are always
``np.uint64`` arrays; coordinates and zoom levels come back as ``np.int64``.
"""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from binquadkey.config import MAX_ZOOM, UINT64_MASK, ZOOM_MASK
from binquadkey.core.errors import FormatError, RangeError
from binquadkey.core.quadkey import PREFIX_MASKS, Quadkey, _digit_offset

logger = logging.getLogger(__name__)

_ZOOM_MASK = np.uint64(ZOOM_MASK)
_TWO_BITS = np.uint64(3)
_ONE = np.uint64(1)

#: Bit offset of each level's quadrant pair, root first
_OFFSETS = np.array([_digit_offset(i) for i in range(MAX_ZOOM)], dtype=np.uint64)

#: Per-zoom mask of bits that must be clear in a canonical key
_STRAY_MASKS = np.array(
    [~mask & ~ZOOM_MASK & UINT64_MASK for mask in PREFIX_MASKS], dtype=np.uint64
)


def as_packed_array(values: Iterable[int] | np.ndarray) -> np.ndarray:
    """Convert packed integers to a validated ``uint64`` array.

    Raises:
        RangeError: If a value is negative, wider than 64 bits, or has a zoom
            field above 23
        FormatError: If a value is not canonical
    """
    # Plain sequences stay as Python ints; numpy would widen a list mixing
    # values above and below 2**63 to float64 and lose the low bits.
    if isinstance(values, np.ndarray):
        arr = values
    else:
        arr = np.array(list(values), dtype=object)
    if arr.size and arr.dtype.kind not in "iuO":
        raise FormatError(f"Packed keys must be integers, got dtype {arr.dtype}")

    if arr.dtype.kind == "O":
        for value in arr.flat:
            if isinstance(value, (bool, np.bool_)) or not isinstance(
                value, (int, np.integer)
            ):
                raise FormatError(f"Packed keys must be integers, got {value!r}")
            if not 0 <= value <= UINT64_MASK:
                raise RangeError(f"Packed key {value} does not fit in 64 unsigned bits")
    elif arr.dtype.kind == "i" and (arr < 0).any():
        raise RangeError("Packed keys cannot be negative")
    packed = arr.astype(np.uint64)

    zooms = (packed & _ZOOM_MASK).astype(np.int64)
    if (zooms > MAX_ZOOM).any():
        raise RangeError(f"Zoom field above {MAX_ZOOM} in packed keys")
    if (packed & _STRAY_MASKS[zooms]).any():
        raise FormatError("Packed keys have bits set below their zoom path")
    return packed


def zooms(packed: Iterable[int] | np.ndarray) -> np.ndarray:
    """Return the zoom level of every packed key."""
    return (as_packed_array(packed) & _ZOOM_MASK).astype(np.int64)


def encode_tiles(xs, ys, zoom) -> np.ndarray:
    """Pack arrays of tile columns and rows.

    ``xs``, ``ys`` and ``zoom`` are broadcast together, so a scalar zoom
    applies to every tile.

    Args:
        xs: Tile columns
        ys: Tile rows
        zoom: Zoom level(s), 0-23

    Returns:
        ``uint64`` array of packed keys with the broadcast shape

    Raises:
        RangeError: If a zoom, column or row is out of range
    """
    xs, ys, zs = np.broadcast_arrays(np.asarray(xs), np.asarray(ys), np.asarray(zoom))
    for name, arr in (("x", xs), ("y", ys), ("zoom", zs)):
        if arr.size and arr.dtype.kind not in "iu":
            raise RangeError(f"Tile {name} values must be integers, got dtype {arr.dtype}")

    zs = zs.astype(np.int64)
    if ((zs < 0) | (zs > MAX_ZOOM)).any():
        raise RangeError(f"Zoom levels must be within 0-{MAX_ZOOM}")
    limit = np.left_shift(np.int64(1), zs)
    if ((xs < 0) | (xs >= limit) | (ys < 0) | (ys >= limit)).any():
        raise RangeError("Tile coordinates fall outside the grid at their zoom")

    x64 = xs.astype(np.uint64)
    y64 = ys.astype(np.uint64)
    packed = zs.astype(np.uint64)
    for index in range(MAX_ZOOM):
        active = zs > index
        shift = np.where(active, zs - 1 - index, 0).astype(np.uint64)
        digit = (((y64 >> shift) & _ONE) << _ONE) | ((x64 >> shift) & _ONE)
        packed |= np.where(active, digit, np.uint64(0)) << _OFFSETS[index]

    logger.debug("Encoded %d tiles", packed.size)
    return packed


def decode_tiles(packed) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Unpack keys into ``(xs, ys, zooms)``, the inverse of :func:`encode_tiles`."""
    packed = as_packed_array(packed)
    zs = (packed & _ZOOM_MASK).astype(np.int64)
    xs = np.zeros(packed.shape, dtype=np.int64)
    ys = np.zeros(packed.shape, dtype=np.int64)
    for index in range(MAX_ZOOM):
        active = zs > index
        digit = ((packed >> _OFFSETS[index]) & _TWO_BITS).astype(np.int64)
        xs = np.where(active, (xs << 1) | (digit & 1), xs)
        ys = np.where(active, (ys << 1) | (digit >> 1), ys)

    logger.debug("Decoded %d tiles", packed.size)
    return xs, ys, zs


def encode_quadkeys(quadkeys: Iterable[str]) -> np.ndarray:
    """Pack a sequence of quadkey strings into a ``uint64`` array."""
    quadkeys = list(quadkeys)
    return np.fromiter(
        (Quadkey.from_quadkey(qk).packed for qk in quadkeys),
        dtype=np.uint64,
        count=len(quadkeys),
    )


def decode_quadkeys(packed) -> list[str]:
    """Return the quadkey string of every packed key (flattened)."""
    packed = as_packed_array(packed).ravel()
    zs = (packed & _ZOOM_MASK).astype(np.int64)

    # One ASCII digit per level, then view each row as a fixed-width string
    digits = ((packed[:, None] >> _OFFSETS) & _TWO_BITS).astype(np.uint8) + ord("0")
    rows = np.ascontiguousarray(digits).view(f"S{MAX_ZOOM}").ravel()
    return [row[:zoom].decode("ascii") for row, zoom in zip(rows, zs.tolist())]


def ancestor_mask(ancestor: Quadkey, packed) -> np.ndarray:
    """Boolean array: is ``ancestor`` an ancestor of each packed key."""
    packed = as_packed_array(packed)
    mask = np.uint64(PREFIX_MASKS[ancestor.zoom])
    prefix = np.uint64(ancestor.packed & PREFIX_MASKS[ancestor.zoom])
    deeper = (packed & _ZOOM_MASK) > np.uint64(ancestor.zoom)
    return deeper & ((packed & mask) == prefix)
