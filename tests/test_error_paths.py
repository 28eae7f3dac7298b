"""Tests for codec error handling.

These tests verify that:
1. Malformed input raises FormatError before any key is produced
2. Out-of-range numbers raise RangeError instead of wrapping silently
3. Keys are safe to build and compare from several threads
"""

from __future__ import annotations

import random
import threading

import pytest

from binquadkey import FormatError, Quadkey, QuadkeyError, RangeError


class TestFormatErrors:
    """Tests for malformed input."""

    @pytest.mark.parametrize(
        "quadkey",
        ["0124", "12a", "1 2", "-1", "１２"],
        ids=["digit-4", "letter", "space", "sign", "fullwidth"],
    )
    def test_bad_quadkey_characters(self, quadkey: str):
        with pytest.raises(FormatError):
            Quadkey.from_quadkey(quadkey)

    def test_non_string_quadkey(self):
        with pytest.raises(FormatError):
            Quadkey.from_quadkey(1202)

    @pytest.mark.parametrize("length", [0, 7, 9, 16])
    def test_wrong_byte_length(self, length: int):
        with pytest.raises(FormatError):
            Quadkey.from_bytes(b"\x00" * length)

    def test_stray_bits_below_path(self):
        """Zoom 1 keeps only the top two path bits; bit 5 must be clear."""
        with pytest.raises(FormatError):
            Quadkey.from_packed((1 << 5) | 1)

    def test_stray_bits_on_direct_construction(self):
        with pytest.raises(FormatError):
            Quadkey(packed=1 << 40)

    def test_explicit_zoom_contradicts_field(self):
        key = Quadkey.from_quadkey("02103201302")
        with pytest.raises(FormatError):
            Quadkey.from_packed(key.packed, zoom=12)

    def test_unparsable_radix_string(self):
        with pytest.raises(FormatError):
            Quadkey.from_radix_string("xyz", 10)

    @pytest.mark.parametrize(
        ("text", "radix"),
        [
            ("0x2d64000000000007", 16),
            ("3_270_739_229_377_822_727", 10),
            ("+3270739229377822727", 10),
            (" 12", 10),
            ("", 10),
            ("\u0661\u0662", 10),
        ],
        ids=["hex-prefix", "underscores", "plus-sign", "whitespace", "empty", "arabic-indic"],
    )
    def test_radix_string_must_be_bare_digits(self, text: str, radix: int):
        with pytest.raises(FormatError):
            Quadkey.from_radix_string(text, radix)

    def test_radix_string_uppercase_digits(self):
        key = Quadkey.from_radix_string("2D64000000000007", 16)
        assert key == Quadkey.from_tile_xy(29, 50, 7)

    @pytest.mark.parametrize(
        "args",
        [(1, 0, True), (True, 0, 1), (0.5, 0, 1), ("1", 0, 1)],
        ids=["bool-zoom", "bool-x", "float-x", "str-x"],
    )
    def test_tile_arguments_must_be_integers(self, args: tuple):
        with pytest.raises(FormatError):
            Quadkey.from_tile_xy(*args)

    def test_bool_halves(self):
        with pytest.raises(FormatError):
            Quadkey.from_halves(True, 0)

    def test_bool_packed(self):
        with pytest.raises(FormatError):
            Quadkey.from_packed(True)

    def test_bytes_from_string(self):
        with pytest.raises(FormatError):
            Quadkey.from_bytes("abcdefgh")

    def test_errors_are_value_errors(self):
        """Callers catching ValueError still see codec errors."""
        with pytest.raises(ValueError):
            Quadkey.from_quadkey("4")
        assert issubclass(FormatError, QuadkeyError)
        assert issubclass(RangeError, QuadkeyError)


class TestRangeErrors:
    """Tests for out-of-range numeric input."""

    @pytest.mark.parametrize("zoom", [-1, 24, 32])
    def test_zoom_out_of_range(self, zoom: int):
        with pytest.raises(RangeError):
            Quadkey.from_tile_xy(0, 0, zoom)

    @pytest.mark.parametrize(
        "x, y, zoom",
        [(4, 0, 2), (0, 4, 2), (-1, 0, 2), (0, -1, 2), (1, 0, 0)],
        ids=["x-wide", "y-wide", "x-negative", "y-negative", "root-nonzero"],
    )
    def test_tile_outside_grid(self, x: int, y: int, zoom: int):
        with pytest.raises(RangeError):
            Quadkey.from_tile_xy(x, y, zoom)

    def test_quadkey_too_deep(self):
        with pytest.raises(RangeError):
            Quadkey.from_quadkey("0" * 24)

    @pytest.mark.parametrize("radix", [0, 1, 37, 64])
    def test_radix_out_of_range(self, radix: int):
        key = Quadkey.from_tile_xy(29, 50, 7)
        with pytest.raises(RangeError):
            key.to_radix_string(radix)

    @pytest.mark.parametrize("value", [-1, 2**64, 2**70])
    def test_packed_out_of_range(self, value: int):
        with pytest.raises(RangeError):
            Quadkey.from_packed(value)

    @pytest.mark.parametrize("zoom_field", [24, 30, 31])
    def test_zoom_field_out_of_range(self, zoom_field: int):
        with pytest.raises(RangeError):
            Quadkey.from_packed(zoom_field)

    def test_explicit_zoom_out_of_range(self):
        with pytest.raises(RangeError):
            Quadkey.from_packed(0, zoom=24)

    @pytest.mark.parametrize(
        "low, high",
        [(2**32, 0), (0, 2**32), (-1, 0), (0, -1)],
        ids=["low-wide", "high-wide", "low-negative", "high-negative"],
    )
    def test_halves_out_of_range(self, low: int, high: int):
        with pytest.raises(RangeError):
            Quadkey.from_halves(low, high)

    def test_root_has_no_parent(self):
        with pytest.raises(RangeError):
            Quadkey().parent()

    def test_deepest_zoom_has_no_children(self):
        with pytest.raises(RangeError):
            Quadkey.from_quadkey("0" * 23).children()

    def test_ancestor_deeper_than_key(self):
        with pytest.raises(RangeError):
            Quadkey.from_quadkey("12").ancestor(3)


class TestThreadSafety:
    """Tests for sharing keys across threads."""

    def test_concurrent_encode_and_compare(self):
        """Many threads packing and comparing keys should agree and not fail."""
        anchor = Quadkey.from_quadkey("1202")
        errors = []
        mismatches = []

        def worker(seed: int):
            rng = random.Random(seed)
            try:
                for _ in range(500):
                    zoom = rng.randint(1, 23)
                    x = rng.randrange(1 << zoom)
                    y = rng.randrange(1 << zoom)
                    key = Quadkey.from_tile_xy(x, y, zoom)
                    if Quadkey.from_quadkey(key.to_quadkey()) != key:
                        mismatches.append(key)
                    expected = key.to_quadkey().startswith("1202") and zoom > 4
                    if anchor.is_ancestor_of(key) != expected:
                        mismatches.append(key)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 0, f"Thread errors: {errors}"
        assert mismatches == []
