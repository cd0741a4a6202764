"""
Intel HEX Encoder and Builder
=============================

This module turns memory images back into Intel HEX text, and provides the
HexBuilder class for creating images from raw binary data.

Encoding
--------
HexImage (address-keyed):
    Data records are written in ascending address order. Whenever the upper
    16 bits of the address change, an Extended Linear Address record is
    written first. A single End Of File record closes the file. Every
    record gets a freshly computed checksum.

OrderedImage (record-preserving):
    Every stored record is written as it is, stored checksum included.

All records are written as ':' followed by uppercase hex digits and a CRLF
line terminator.

Usage
-----
    >>> from hexcrypt.ihex import HexBuilder
    >>> builder = HexBuilder(record_size=16)
    >>> builder.add_data(0x08000000, firmware_bytes)
    >>> builder.build_to_file("firmware.hex")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Union
import logging

from hexcrypt.errors import HexIOError, RecordError
from hexcrypt.ihex.image import HexImage, OrderedImage, split_address
from hexcrypt.ihex.records import MAX_PAYLOAD, HexRecord

logger = logging.getLogger(__name__)

DEFAULT_RECORD_SIZE = 16

BANK_SIZE = 0x10000


# =============================================================================
# Encoding
# =============================================================================

def iter_image_records(image: HexImage) -> Iterator[HexRecord]:
    """
    Yield the records that represent an address-keyed image.

    The active bank starts at zero, so an image living entirely below
    0x10000 produces no Extended Linear Address record at all.
    """
    active_bank = 0
    for address, payload in image:
        bank, offset = split_address(address)
        if bank != active_bank:
            yield HexRecord.extended_linear_address(address)
            active_bank = bank
        yield HexRecord.data(offset, payload)

    yield HexRecord.end_of_file()


def encode_image(image: HexImage) -> str:
    """Encode an address-keyed image as hex text."""
    return "".join(record.to_line() for record in iter_image_records(image))


def encode_ordered(image: OrderedImage) -> str:
    """Encode a record-preserving image, each record written verbatim."""
    return "".join(record.to_line() for record in image)


def encode(image: Union[HexImage, OrderedImage]) -> str:
    """Encode either image variant as hex text."""
    if isinstance(image, OrderedImage):
        return encode_ordered(image)
    return encode_image(image)


def write_hex_file(image: Union[HexImage, OrderedImage], filepath: Union[str, Path]) -> int:
    """
    Encode an image and write it to disk.

    Args:
        image: The image to write
        filepath: Output path

    Returns:
        Number of bytes written

    Raises:
        HexIOError: If the file cannot be written
    """
    filepath = Path(filepath)
    data = encode(image).encode("ascii")
    try:
        filepath.write_bytes(data)
    except OSError as e:
        raise HexIOError(f"Can't write output file {filepath}: {e}") from e

    logger.debug(f"Wrote {len(data)} bytes to {filepath}")
    return len(data)


# =============================================================================
# Builder
# =============================================================================

@dataclass
class HexBuilder:
    """
    Builder for address-keyed images.

    Long data is split into records of at most record_size bytes. Records
    never cross a 64KB bank boundary, so every record stays addressable
    from a single Extended Linear Address record.

    Attributes:
        record_size: Maximum payload bytes per data record (1-255)
        image: The image being built
    """
    record_size: int = DEFAULT_RECORD_SIZE
    image: HexImage = field(default_factory=HexImage)

    def __post_init__(self) -> None:
        if not 1 <= self.record_size <= MAX_PAYLOAD:
            raise RecordError(
                f"record size {self.record_size} out of range (1-{MAX_PAYLOAD})"
            )

    def add_data(self, address: int, data: bytes) -> int:
        """
        Add data at an absolute address.

        Args:
            address: Absolute 32-bit start address
            data: Bytes to add

        Returns:
            Number of records added

        Raises:
            RecordError: If the data does not fit below 4GB or overlaps
                existing records
        """
        if address < 0 or address + len(data) > 0x100000000:
            raise RecordError(
                f"{len(data)} bytes at 0x{address:X} do not fit in 32-bit address space"
            )

        added = 0
        offset = 0
        while offset < len(data):
            current = address + offset
            bank_end = (current | (BANK_SIZE - 1)) + 1
            chunk = data[offset:offset + min(self.record_size, bank_end - current)]
            if not self.image.add(current, chunk):
                raise RecordError(f"data already present at 0x{current:08X}")
            offset += len(chunk)
            added += 1

        logger.debug(f"Added {len(data)} bytes at 0x{address:08X} in {added} records")
        return added

    def add_binary_file(self, filepath: Union[str, Path], address: int = 0) -> int:
        """
        Add the contents of a raw binary file at an address.

        Raises:
            HexIOError: If the file cannot be read
        """
        filepath = Path(filepath)
        try:
            data = filepath.read_bytes()
        except OSError as e:
            raise HexIOError(f"Can't read input file {filepath}: {e}") from e
        return self.add_data(address, data)

    def get_record_count(self) -> int:
        """Number of data records added so far."""
        return len(self.image)

    def build(self) -> str:
        """Encode the image as hex text."""
        return encode_image(self.image)

    def build_to_file(self, filepath: Union[str, Path]) -> int:
        """Write the image to disk, returning the number of bytes written."""
        return write_hex_file(self.image, filepath)
