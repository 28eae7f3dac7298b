"""Centralized configuration for binquadkey.

Tunable parameters are defined here with sensible defaults.
Values can be overridden via environment variables.

Environment Variables:
    BINQUADKEY_DEFAULT_RADIX: Command-line radix for packed keys (default: 10)
    BINQUADKEY_BATCH_SIZE: Lines per numpy chunk in file conversion (default: 65536)
    BINQUADKEY_LOG_LEVEL: Log level for the command-line tool (default: WARNING)
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def _get_env_int(name: str, default: int) -> int:
    """Get an integer from environment variable with fallback."""
    value = os.environ.get(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Invalid integer for %s: %r, using default %d", name, value, default
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Get a string from environment variable with fallback."""
    return os.environ.get(name, default)


# =============================================================================
# Bit Layout
# =============================================================================

#: Deepest zoom level whose quadrant bits stay clear of the zoom field
MAX_ZOOM: int = 23

#: Number of low-order bits holding the zoom level
ZOOM_BITS: int = 5

#: Mask isolating the zoom field
ZOOM_MASK: int = (1 << ZOOM_BITS) - 1

#: Width of the packed representation
PACKED_BITS: int = 64

#: All 64 bits set
UINT64_MASK: int = (1 << PACKED_BITS) - 1

#: All 32 bits set
UINT32_MASK: int = (1 << 32) - 1

#: Characters allowed in a quadkey string, indexed by quadrant digit
QUADKEY_ALPHABET: str = "0123"

#: Supported radix range for numeric formatting
MIN_RADIX: int = 2
MAX_RADIX: int = 36


# =============================================================================
# Formatting
# =============================================================================

#: Radix for packed-key arguments and output of the command-line tool
DEFAULT_RADIX: int = _get_env_int("BINQUADKEY_DEFAULT_RADIX", 10)


# =============================================================================
# Batch Conversion
# =============================================================================

#: Number of input lines encoded per numpy chunk
BATCH_SIZE: int = _get_env_int("BINQUADKEY_BATCH_SIZE", 65536)


# =============================================================================
# Logging
# =============================================================================

#: Log level name for the command-line tool
LOG_LEVEL: str = _get_env_str("BINQUADKEY_LOG_LEVEL", "WARNING").upper()


# =============================================================================
# Validation
# =============================================================================


def _validate_config() -> None:
    """Validate configuration values and log warnings for out-of-range settings."""
    global DEFAULT_RADIX, BATCH_SIZE, LOG_LEVEL

    if not MIN_RADIX <= DEFAULT_RADIX <= MAX_RADIX:
        logger.warning(
            "DEFAULT_RADIX=%d is outside %d-%d, using 10",
            DEFAULT_RADIX,
            MIN_RADIX,
            MAX_RADIX,
        )
        DEFAULT_RADIX = 10

    if BATCH_SIZE < 1:
        logger.warning("BATCH_SIZE=%d is too low, clamping to 1", BATCH_SIZE)
        BATCH_SIZE = 1

    if not isinstance(logging.getLevelName(LOG_LEVEL), int):
        logger.warning("Unknown LOG_LEVEL=%r, using WARNING", LOG_LEVEL)
        LOG_LEVEL = "WARNING"


_validate_config()
