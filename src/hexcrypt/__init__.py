"""
HexCrypt - Encrypt and Decrypt the Data in Intel HEX Files
==========================================================

This package reads and writes Intel HEX memory images and enciphers the
payload of their data records with an ARC4 keystream. Addresses and record
types are untouched and checksums are recomputed, so an enciphered file is
still a valid hex file that programmers and bootloaders can transport; the
target decrypts the data itself.

Main Components
---------------
- **ihex**: Intel HEX records, images, decoder and encoder
- **crypto**: ARC4 keystream and the image cipher pass
- **cli**: the `hexcrypt` command-line tool

Quick Start
-----------
Encrypt a file:
    >>> from hexcrypt import parse_hex_file, write_hex_file, cipher_image
    >>> image = parse_hex_file("firmware.hex")
    >>> cipher_image(image, b"my secret key")
    >>> write_hex_file(image, "firmware.enc.hex")

Running the same steps on the output with the same key restores the data.

Or use the command-line tool:
    $ hexcrypt cipher -k secret.key firmware.hex firmware.enc.hex

Security Note
-------------
ARC4 gives confidentiality only: nothing detects tampering with the
enciphered data. The first 256 keystream bytes are discarded to defeat the
known key-recovery attack on the start of the keystream.
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from hexcrypt.errors import (
    HexCryptError,
    HexIOError,
    TruncatedInputError,
    HexParseError,
    FormatError,
    ChecksumError,
    RecordError,
    KeyMaterialError,
    SourceLocation,
)

from hexcrypt.ihex import (
    RecordType,
    HexRecord,
    HexImage,
    OrderedImage,
    HexBuilder,
    DecodeResult,
    decode,
    try_decode,
    encode,
    parse_hex,
    parse_hex_file,
    write_hex_file,
)

from hexcrypt.crypto import (
    ARC4Keystream,
    cipher_image,
    cipher_hex_file,
    load_key,
)

from hexcrypt.config import HexCryptConfig

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "HexCryptError",
    "HexIOError",
    "TruncatedInputError",
    "HexParseError",
    "FormatError",
    "ChecksumError",
    "RecordError",
    "KeyMaterialError",
    "SourceLocation",
    # Intel HEX
    "RecordType",
    "HexRecord",
    "HexImage",
    "OrderedImage",
    "HexBuilder",
    "DecodeResult",
    "decode",
    "try_decode",
    "encode",
    "parse_hex",
    "parse_hex_file",
    "write_hex_file",
    # Cipher
    "ARC4Keystream",
    "cipher_image",
    "cipher_hex_file",
    "load_key",
    # Configuration
    "HexCryptConfig",
]
