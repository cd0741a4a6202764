"""
Payload Encryption
==================

- **ARC4Keystream**: resumable ARC4 keystream generator
- **cipher_image**: XOR a keystream into every data payload of an image
- **cipher_hex_file**: file-to-file encipher/decipher
- **load_key**: read raw key material from a file

The cipher is its own inverse: running it twice with the same key restores
the original payloads.
"""

from hexcrypt.crypto.arcfour import (
    DEFAULT_DISCARD,
    ARC4Keystream,
)

from hexcrypt.crypto.cipher import (
    CipherSummary,
    cipher_hex_file,
    cipher_image,
    load_key,
)

__all__ = [
    "DEFAULT_DISCARD",
    "ARC4Keystream",
    "CipherSummary",
    "cipher_hex_file",
    "cipher_image",
    "load_key",
]
