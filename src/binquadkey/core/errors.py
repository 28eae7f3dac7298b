"""Exceptions raised by the quadkey codec."""

from __future__ import annotations


class QuadkeyError(ValueError):
    """Base class for all codec errors."""


class FormatError(QuadkeyError):
    """Input is malformed: bad quadkey characters, wrong byte length, or a
    packed value that is not in canonical form."""


class RangeError(QuadkeyError):
    """A numeric argument is outside its valid range (zoom, tile x/y, radix,
    or the unsigned width of a packed value)."""
