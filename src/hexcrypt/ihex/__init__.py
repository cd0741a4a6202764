"""
Intel HEX File Handling
=======================

This module reads and writes Intel HEX files, the line-oriented text format
used by programmers and bootloaders to carry memory images.

This module provides:
- **Record model**: HexRecord and RecordType
- **Images**: HexImage (address-keyed) and OrderedImage (record-preserving)
- **Decoder**: parse_hex_file(), decode(), try_decode()
- **Encoder**: write_hex_file(), encode(), HexBuilder
- **Checksum utilities**: two's-complement record checksums

Quick Start
-----------
Round-trip a file:

    >>> from hexcrypt.ihex import parse_hex_file, write_hex_file
    >>> image = parse_hex_file("firmware.hex")
    >>> write_hex_file(image, "copy.hex")

Supported record types: 00 (Data), 01 (End Of File) and
04 (Extended Linear Address).
"""

# =============================================================================
# Public API Exports
# =============================================================================

from hexcrypt.ihex.records import (
    RecordType,
    HexRecord,
    MAX_PAYLOAD,
    MAX_RECORD_BYTES,
)

from hexcrypt.ihex.checksum import (
    calculate_checksum,
    checksum_residue,
    verify_checksum,
)

from hexcrypt.ihex.image import (
    HexImage,
    OrderedImage,
)

from hexcrypt.ihex.parser import (
    DecodeResult,
    decode,
    decode_image,
    decode_line,
    decode_ordered,
    iter_records,
    parse_hex,
    parse_hex_file,
    read_hex_lines,
    try_decode,
)

from hexcrypt.ihex.builder import (
    HexBuilder,
    encode,
    encode_image,
    encode_ordered,
    iter_image_records,
    write_hex_file,
)

__all__ = [
    # Records
    "RecordType",
    "HexRecord",
    "MAX_PAYLOAD",
    "MAX_RECORD_BYTES",
    # Checksum
    "calculate_checksum",
    "checksum_residue",
    "verify_checksum",
    # Images
    "HexImage",
    "OrderedImage",
    # Decoder
    "DecodeResult",
    "decode",
    "decode_image",
    "decode_line",
    "decode_ordered",
    "iter_records",
    "parse_hex",
    "parse_hex_file",
    "read_hex_lines",
    "try_decode",
    # Encoder
    "HexBuilder",
    "encode",
    "encode_image",
    "encode_ordered",
    "iter_image_records",
    "write_hex_file",
]
