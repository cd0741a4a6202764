"""
HexCrypt Configuration
======================

Run-time defaults for the command-line tool. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options, which always win

Environment variables (all optional):
    HEXCRYPT_DISCARD: Keystream bytes dropped before use (default 256)
    HEXCRYPT_PRESERVE_RECORDS: "1"/"true"/"yes" to keep every record as read
    HEXCRYPT_KEY_FILE: Key file used when none is given on the command line
    HEXCRYPT_RECORD_SIZE: Data bytes per record when building images (1-255)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from hexcrypt.crypto.arcfour import DEFAULT_DISCARD
from hexcrypt.ihex.builder import DEFAULT_RECORD_SIZE
from hexcrypt.ihex.records import MAX_PAYLOAD


TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class HexCryptConfig:
    """
    Configuration for hexcrypt runs.

    Attributes:
        discard_bytes: Keystream bytes dropped before masking (default: 256)
        preserve_records: Keep every record as read instead of re-deriving
            the file from the address map (default: False)
        key_file: Default key file (default: None)
        record_size: Data bytes per record for newly built images (default: 16)
    """

    discard_bytes: int = DEFAULT_DISCARD
    preserve_records: bool = False
    key_file: Optional[Path] = None
    record_size: int = DEFAULT_RECORD_SIZE

    @classmethod
    def from_env(cls) -> "HexCryptConfig":
        """
        Create a HexCryptConfig from environment variables.

        Invalid values are ignored and the default kept.
        """
        config = cls()

        if discard := os.environ.get("HEXCRYPT_DISCARD"):
            try:
                value = int(discard)
                if value >= 0:
                    config.discard_bytes = value
            except ValueError:
                pass  # Ignore invalid values

        if preserve := os.environ.get("HEXCRYPT_PRESERVE_RECORDS"):
            config.preserve_records = preserve.strip().lower() in TRUE_VALUES

        if key_file := os.environ.get("HEXCRYPT_KEY_FILE"):
            config.key_file = Path(key_file)

        if record_size := os.environ.get("HEXCRYPT_RECORD_SIZE"):
            try:
                value = int(record_size)
                if 1 <= value <= MAX_PAYLOAD:
                    config.record_size = value
            except ValueError:
                pass

        return config
