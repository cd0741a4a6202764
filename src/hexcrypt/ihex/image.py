"""
Memory Images
=============

A decoded hex file is held in memory as an image. Two representations are
provided:

HexImage (address-keyed)
    Maps each absolute 32-bit address to the payload of the data record
    found there. Extended linear address and end-of-file records are not
    stored; the encoder regenerates them. This is the default model: it
    keeps only what the file means, not how it was laid out.

OrderedImage (record-preserving)
    Keeps every record in file order, control records and stored checksums
    included, so that a file can be written back line for line. Use it when
    redundant or out-of-order extended address records must survive.

Both images expose apply_keystream(), which XORs keystream bytes into every
data payload in stream order: ascending address for HexImage, file order
for OrderedImage.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Protocol
import logging

from hexcrypt.errors import RecordError
from hexcrypt.ihex.records import (
    ADDRESS_MASK,
    BANK_MASK,
    MAX_PAYLOAD,
    HexRecord,
    RecordType,
)

logger = logging.getLogger(__name__)


class Keystream(Protocol):
    """Anything that hands out keystream bytes on demand."""

    def next(self, count: int) -> bytes:
        ...


def _xor_into(payload: bytearray, stream: bytes) -> None:
    for i, value in enumerate(stream):
        payload[i] ^= value


# =============================================================================
# Address-keyed Image
# =============================================================================

@dataclass
class HexImage:
    """
    Address-keyed memory image.

    Attributes:
        segments: Absolute address -> payload of the data record stored there

    Example:
        >>> image = HexImage()
        >>> image.add(0xABCD1234, b"\\x01\\x02")
        True
        >>> image.banks()
        [2882338816]
    """
    segments: dict[int, bytearray] = field(default_factory=dict)

    def add(self, address: int, payload: bytes, replace: bool = False) -> bool:
        """
        Store a payload at an absolute address.

        Args:
            address: Absolute 32-bit address
            payload: Up to 255 bytes
            replace: Overwrite an existing payload at the same address

        Returns:
            True if the payload was stored, False if the address was already
            taken and replace is False

        Raises:
            RecordError: If the address or payload size is out of range
        """
        if not 0 <= address <= 0xFFFFFFFF:
            raise RecordError(f"address 0x{address:X} does not fit in 32 bits")
        if len(payload) > MAX_PAYLOAD:
            raise RecordError(
                f"payload of {len(payload)} bytes exceeds {MAX_PAYLOAD} bytes"
            )
        if address in self.segments and not replace:
            return False
        self.segments[address] = bytearray(payload)
        return True

    def get(self, address: int) -> Optional[bytes]:
        """Return the payload stored at an address, or None."""
        payload = self.segments.get(address)
        return bytes(payload) if payload is not None else None

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[tuple[int, bytearray]]:
        """Iterate (address, payload) pairs in ascending address order."""
        for address in sorted(self.segments):
            yield address, self.segments[address]

    def __contains__(self, address: int) -> bool:
        return address in self.segments

    def addresses(self) -> list[int]:
        """All stored addresses, ascending."""
        return sorted(self.segments)

    def iter_payloads(self) -> Iterator[bytearray]:
        """Yield data payloads in stream order (ascending address)."""
        for _, payload in self:
            yield payload

    def total_bytes(self) -> int:
        """Total number of payload bytes in the image."""
        return sum(len(payload) for payload in self.segments.values())

    def address_range(self) -> Optional[tuple[int, int]]:
        """Lowest address and one past the highest byte, or None if empty."""
        if not self.segments:
            return None
        low = min(self.segments)
        high = max(address + len(payload) for address, payload in self.segments.items())
        return low, high

    def banks(self) -> list[int]:
        """Distinct address banks (upper 16 bits, as 32-bit values) in use."""
        return sorted({address & BANK_MASK for address in self.segments})

    def apply_keystream(self, keystream: Keystream) -> int:
        """
        XOR keystream bytes into every payload, ascending address order.

        Returns:
            Number of payload bytes processed
        """
        processed = 0
        for _, payload in self:
            _xor_into(payload, keystream.next(len(payload)))
            processed += len(payload)
        logger.debug(f"Applied keystream to {len(self.segments)} segments ({processed} bytes)")
        return processed


# =============================================================================
# Record-preserving Image
# =============================================================================

@dataclass
class OrderedImage:
    """
    Record-preserving image: every record of the source file, in order.

    Attributes:
        records: Records in file order, ending with the end-of-file record
    """
    records: list[HexRecord] = field(default_factory=list)

    def append(self, record: HexRecord) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[HexRecord]:
        return iter(self.records)

    def data_records(self) -> Iterator[HexRecord]:
        """Yield data records in file order."""
        for record in self.records:
            if record.record_type == RecordType.DATA:
                yield record

    def iter_payloads(self) -> Iterator[bytearray]:
        """Yield data payloads in stream order (file order)."""
        for record in self.data_records():
            yield record.payload

    def iter_absolute(self) -> Iterator[tuple[int, HexRecord]]:
        """
        Yield (absolute address, record) for every data record.

        The bank starts at zero and follows the extended linear address
        records in file order.
        """
        bank = 0
        for record in self.records:
            if record.record_type == RecordType.EXTENDED_LINEAR_ADDRESS:
                bank = record.bank
            elif record.record_type == RecordType.DATA:
                yield bank | record.address, record

    def has_end_of_file(self) -> bool:
        """True if the last record is the end-of-file record."""
        return bool(self.records) and self.records[-1].record_type == RecordType.END_OF_FILE

    def total_bytes(self) -> int:
        return sum(record.length for record in self.data_records())

    def invalid_checksums(self) -> list[int]:
        """Indices of records whose stored checksum does not match their fields."""
        return [i for i, record in enumerate(self.records) if not record.has_valid_checksum()]

    def apply_keystream(self, keystream: Keystream) -> int:
        """
        XOR keystream bytes into every data payload, file order.

        Each modified record gets its checksum recomputed. Control records
        are left untouched.

        Returns:
            Number of payload bytes processed
        """
        processed = 0
        for record in self.data_records():
            _xor_into(record.payload, keystream.next(record.length))
            record.refresh_checksum()
            processed += record.length
        logger.debug(f"Applied keystream to {len(self.records)} records ({processed} bytes)")
        return processed

    def to_image(self) -> HexImage:
        """
        Collapse into an address-keyed image.

        Duplicate addresses keep the first payload, like the decoder does.
        """
        image = HexImage()
        for address, record in self.iter_absolute():
            if not image.add(address, record.payload):
                logger.warning(f"Duplicate data at 0x{address:08X} dropped")
        return image


def split_address(address: int) -> tuple[int, int]:
    """Split an absolute address into (bank, 16-bit offset)."""
    return address & BANK_MASK, address & ADDRESS_MASK
