"""Tests for environment-driven configuration."""

from __future__ import annotations

import logging

from click.testing import CliRunner

from binquadkey import Quadkey
from binquadkey.cli import main


class TestEnvironmentOverrides:
    """Values read from BINQUADKEY_* variables."""

    def test_defaults(self, reload_config):
        config = reload_config()
        assert config.DEFAULT_RADIX == 10
        assert config.BATCH_SIZE == 65536
        assert config.LOG_LEVEL == "WARNING"

    def test_default_radix_override(self, reload_config):
        config = reload_config(BINQUADKEY_DEFAULT_RADIX="16")
        assert config.DEFAULT_RADIX == 16
        # Only the command-line tool follows the setting
        assert Quadkey.from_tile_xy(29, 50, 7).to_radix_string() == "3270739229377822727"
        result = CliRunner().invoke(main, ["encode", "29", "50", "7"])
        assert result.output.strip() == "2d64000000000007"

    def test_batch_size_override(self, reload_config):
        config = reload_config(BINQUADKEY_BATCH_SIZE="128")
        assert config.BATCH_SIZE == 128

    def test_log_level_is_uppercased(self, reload_config):
        config = reload_config(BINQUADKEY_LOG_LEVEL="debug")
        assert config.LOG_LEVEL == "DEBUG"


class TestValidation:
    """Out-of-range values fall back with a warning."""

    def test_invalid_integer(self, reload_config, caplog):
        with caplog.at_level(logging.WARNING, logger="binquadkey.config"):
            config = reload_config(BINQUADKEY_BATCH_SIZE="lots")
        assert config.BATCH_SIZE == 65536
        assert "Invalid integer" in caplog.text

    def test_radix_out_of_range(self, reload_config, caplog):
        with caplog.at_level(logging.WARNING, logger="binquadkey.config"):
            config = reload_config(BINQUADKEY_DEFAULT_RADIX="40")
        assert config.DEFAULT_RADIX == 10
        assert "DEFAULT_RADIX=40" in caplog.text

    def test_batch_size_clamped(self, reload_config):
        config = reload_config(BINQUADKEY_BATCH_SIZE="0")
        assert config.BATCH_SIZE == 1

    def test_unknown_log_level(self, reload_config):
        config = reload_config(BINQUADKEY_LOG_LEVEL="chatty")
        assert config.LOG_LEVEL == "WARNING"

    def test_layout_constants(self, reload_config):
        config = reload_config()
        assert config.MAX_ZOOM == 23
        assert config.ZOOM_MASK == 31
        assert config.UINT64_MASK == 2**64 - 1
        # Deepest path bit pair sits above the zoom field
        assert 64 - 2 * config.MAX_ZOOM >= config.ZOOM_BITS
