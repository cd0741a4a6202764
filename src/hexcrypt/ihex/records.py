"""
Intel HEX Record Definitions
============================

This module defines the data structures for Intel HEX records, the lines
that make up a hex file.

Record Format
-------------
Each record is one text line:

    :LLAAAATT<payload>CC

    ':'      Start marker
    LL       Payload length (1 byte, 0-255)
    AAAA     16-bit address (big-endian), offset within the current bank
    TT       Record type
    payload  LL bytes
    CC       Checksum: two's complement of the sum of all preceding bytes

Every byte is written as two hexadecimal digits, so a record holds at
most 5 + 255 = 260 bytes.

Record Types
------------
- $00: Data
- $01: End Of File (no payload, terminates the file)
- $04: Extended Linear Address (2-byte payload, bits 16-31 of addresses)

Other types (segment addresses, start addresses) are not supported.

Reference
---------
- Intel Hexadecimal Object File Format Specification, Rev. A (1988)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Final, Optional
import struct

from hexcrypt.errors import RecordError
from hexcrypt.ihex.checksum import calculate_checksum


# =============================================================================
# Constants
# =============================================================================

RECORD_MARKER: Final[str] = ":"
LINE_TERMINATOR: Final[str] = "\r\n"

# length(1) + address(2) + type(1) + checksum(1)
RECORD_OVERHEAD: Final[int] = 5
MAX_PAYLOAD: Final[int] = 255
MAX_RECORD_BYTES: Final[int] = RECORD_OVERHEAD + MAX_PAYLOAD

# ':' + 5 bytes as hex digits, the shortest valid record (EOF)
MIN_LINE_LENGTH: Final[int] = 1 + RECORD_OVERHEAD * 2

ADDRESS_MASK: Final[int] = 0xFFFF
BANK_MASK: Final[int] = 0xFFFF0000


# =============================================================================
# Enumeration Types
# =============================================================================

class RecordType(IntEnum):
    """
    Intel HEX record type identifiers.

    Only the linear addressing subset is recognized; anything else is a
    parse error.
    """
    DATA = 0x00
    END_OF_FILE = 0x01
    EXTENDED_LINEAR_ADDRESS = 0x04

    @classmethod
    def is_supported(cls, type_byte: int) -> bool:
        """Check if a type byte is one of the recognized record types."""
        return type_byte in cls._value2member_map_

    @classmethod
    def get_name(cls, type_byte: int) -> str:
        """Get a human-readable name for a type byte."""
        names = {
            cls.DATA: "Data",
            cls.END_OF_FILE: "End Of File",
            cls.EXTENDED_LINEAR_ADDRESS: "Extended Linear Address",
        }
        return names.get(type_byte, f"Unknown (0x{type_byte:02X})")


# =============================================================================
# Record
# =============================================================================

@dataclass
class HexRecord:
    """
    One Intel HEX record.

    The length field is not stored: it is always the size of the payload.
    The checksum is stored so that a record read from a file can be written
    back exactly as it was; when omitted it is computed from the other
    fields.

    Attributes:
        record_type: The record type
        address: 16-bit address within the current bank
        payload: Record data (mutable, modified in place by the cipher)
        checksum: Stored checksum byte

    Example:
        >>> record = HexRecord(RecordType.DATA, 0x0000, bytearray(b"\\x01\\x02"))
        >>> record.to_line()
        ':020000000102FB\\r\\n'
    """
    record_type: RecordType
    address: int = 0
    payload: bytearray = field(default_factory=bytearray)
    checksum: Optional[int] = None

    def __post_init__(self) -> None:
        if not RecordType.is_supported(self.record_type):
            raise RecordError(f"unsupported record type 0x{int(self.record_type):02X}")
        self.record_type = RecordType(self.record_type)
        self.payload = bytearray(self.payload)

        if not 0 <= self.address <= ADDRESS_MASK:
            raise RecordError(f"address 0x{self.address:X} does not fit in 16 bits")
        if len(self.payload) > MAX_PAYLOAD:
            raise RecordError(
                f"payload of {len(self.payload)} bytes exceeds {MAX_PAYLOAD} bytes"
            )
        if self.record_type == RecordType.END_OF_FILE and self.payload:
            raise RecordError("end-of-file record cannot carry data")
        if self.record_type == RecordType.EXTENDED_LINEAR_ADDRESS and len(self.payload) != 2:
            raise RecordError("extended linear address record needs exactly 2 bytes")

        if self.checksum is None:
            self.checksum = self.compute_checksum()
        elif not 0 <= self.checksum <= 0xFF:
            raise RecordError(f"checksum 0x{self.checksum:X} does not fit in 8 bits")

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def data(cls, address: int, payload: bytes) -> "HexRecord":
        """Create a data record at a 16-bit address."""
        return cls(RecordType.DATA, address, bytearray(payload))

    @classmethod
    def end_of_file(cls) -> "HexRecord":
        """Create the terminating ':00000001FF' record."""
        return cls(RecordType.END_OF_FILE, 0)

    @classmethod
    def extended_linear_address(cls, absolute_address: int) -> "HexRecord":
        """Create an extended linear address record for the bank holding an address."""
        bank = (absolute_address >> 16) & 0xFFFF
        return cls(RecordType.EXTENDED_LINEAR_ADDRESS, 0, bytearray(struct.pack(">H", bank)))

    @classmethod
    def from_bytes(cls, data: bytes) -> "HexRecord":
        """
        Build a record from its decoded bytes, checksum included.

        The stored checksum is kept as-is; callers wanting validation use
        has_valid_checksum() or the line decoder.

        Raises:
            RecordError: If the bytes do not form a structurally valid record
        """
        if len(data) < RECORD_OVERHEAD:
            raise RecordError(f"record too short: {len(data)} bytes")
        length, address, type_byte = struct.unpack(">BHB", data[:4])
        if len(data) != RECORD_OVERHEAD + length:
            raise RecordError(
                f"declared length {length} does not match {len(data) - RECORD_OVERHEAD} payload bytes"
            )
        return cls(type_byte, address, bytearray(data[4:-1]), data[-1])

    # -------------------------------------------------------------------------
    # Fields and checksum
    # -------------------------------------------------------------------------

    @property
    def length(self) -> int:
        """Payload byte count (the LL field)."""
        return len(self.payload)

    @property
    def bank(self) -> int:
        """For extended linear address records, the upper 16 address bits as a 32-bit value."""
        if self.record_type != RecordType.EXTENDED_LINEAR_ADDRESS:
            raise RecordError("only extended linear address records define a bank")
        return (self.payload[0] << 24) | (self.payload[1] << 16)

    def _header_bytes(self) -> bytes:
        return struct.pack(">BHB", self.length, self.address, self.record_type)

    def compute_checksum(self) -> int:
        """Compute the checksum from the current field values."""
        return calculate_checksum(self._header_bytes() + bytes(self.payload))

    def refresh_checksum(self) -> None:
        """Replace the stored checksum with the one computed from the current fields."""
        self.checksum = self.compute_checksum()

    def has_valid_checksum(self) -> bool:
        """True if the stored checksum matches the current field values."""
        return self.checksum == self.compute_checksum()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        """Serialize to raw record bytes, stored checksum last."""
        result = bytearray(self._header_bytes())
        result.extend(self.payload)
        result.append(self.checksum)
        assert len(result) <= MAX_RECORD_BYTES
        return bytes(result)

    def to_line(self) -> str:
        """Serialize to a text line: marker, uppercase hex digits, CRLF."""
        return RECORD_MARKER + self.to_bytes().hex().upper() + LINE_TERMINATOR

    def get_type_name(self) -> str:
        """Get a human-readable name for this record's type."""
        return RecordType.get_name(self.record_type)
