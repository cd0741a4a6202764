"""
Intel HEX Checksum Calculations
===============================

Every Intel HEX record ends with an 8-bit checksum chosen so that the sum
of all record bytes (length, address high, address low, type, payload and
the checksum itself) is zero modulo 256:

    checksum = (-(length + addr_hi + addr_lo + type + sum(payload))) & 0xFF

Example
-------
The data record ':020000000102FB' carries the bytes

    02 00 00 00 01 02 | FB

The first six bytes sum to 0x05, and 0x05 + 0xFB = 0x100, so the record
validates. The end-of-file record ':00000001FF' works the same way:
0x01 + 0xFF = 0x100.
"""

from typing import Final, Iterable


# Mask for 8-bit values
CHECKSUM_MASK: Final[int] = 0xFF


def calculate_checksum(data: Iterable[int]) -> int:
    """
    Calculate the two's-complement checksum of record bytes.

    Args:
        data: The record bytes preceding the checksum (length, address,
              type and payload)

    Returns:
        The checksum byte (0x00 to 0xFF)

    Example:
        >>> hex(calculate_checksum(bytes([0x00, 0x00, 0x00, 0x01])))
        '0xff'
    """
    return (-sum(data)) & CHECKSUM_MASK


def checksum_residue(record: Iterable[int]) -> int:
    """
    Return the 8-bit sum of a complete record, checksum included.

    A valid record has a residue of zero.
    """
    return sum(record) & CHECKSUM_MASK


def verify_checksum(record: Iterable[int]) -> bool:
    """
    Verify a complete record (checksum byte included).

    Args:
        record: All record bytes, the trailing checksum byte included

    Returns:
        True if the bytes sum to zero modulo 256
    """
    return checksum_residue(record) == 0


def expected_checksum(record: bytes) -> int:
    """
    Return the checksum a complete record should have carried.

    Used to build hints for checksum errors.
    """
    return calculate_checksum(record[:-1])
