"""
Configuration for otpvault – everything in capitals.

The sync crypto constants below are an inter-client contract: every client
that shares a vault must use exactly these values.

-----------------------------------------------------------------------------------

License     : MIT License (Modified: Non-Commercial Use Only)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# --------------------------------------------------------------------------- #
# TOTP defaults
# --------------------------------------------------------------------------- #
DEFAULT_ALGORITHM = "SHA1"
DEFAULT_DIGITS    = 6
DEFAULT_PERIOD    = 30                 # seconds per time step

MIN_DIGITS        = 6
MAX_DIGITS        = 8
MIN_PERIOD        = 15
MAX_PERIOD        = 60

SECRET_LENGTH     = 32                 # Base32 characters of a generated secret

# --------------------------------------------------------------------------- #
# Sync vault – must match the mobile app and the browser extension
# --------------------------------------------------------------------------- #
SYNC_SALT         = "OmniOTP_Sync_Salt_v1"
PBKDF2_ITERATIONS = 100_000
KEY_LENGTH        = 32                 # 256-bit AES key
IV_LENGTH         = 12                 # 96-bit GCM nonce
TAG_LENGTH        = 16
VAULT_VERSION     = 2

# --------------------------------------------------------------------------- #
# Local encrypted store
# --------------------------------------------------------------------------- #
DATA_FILE          = Path(os.environ.get("OTPVAULT_DATA_FILE", "otpvault_data.json"))

SALT_SIZE          = 32                 # bytes of Argon2 salt
# These three values change the local encryption! Keep them fixed so the
# master password derives the same key on every device.
ARGON_TIME_COST    = 20
ARGON_MEMORY_COST  = 1024 * 1024        # KiB -> 1 GiB
ARGON_PARALLELISM  = 4

# --------------------------------------------------------------------------- #
# Logging
# --------------------------------------------------------------------------- #
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_LEVEL  = os.environ.get("OTPVAULT_LOG_LEVEL", "INFO")


def configure_logging(level: int | str | None = None) -> None:
    """Set up root logging for an application embedding otpvault."""
    if level is None:
        level = LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
