"""
Intel HEX Decoder
=================

This module reads Intel HEX text into memory images.

Decoding Rules
--------------
Each line is checked in this order, and the first failure aborts decoding
of the whole file:

1. The line starts with ':' and holds at least 11 characters
2. Every character after ':' is a hex digit (case-insensitive); a single
   trailing carriage return is accepted
3. All decoded bytes sum to zero modulo 256 (ChecksumError otherwise)
4. The byte count equals 5 + the length field
5. The record type is Data, End Of File or Extended Linear Address, and
   control records carry the right payload size

Decoding stops at the End Of File record; lines after it are never read.
Input that ends without one raises TruncatedInputError.

Usage Examples
--------------
Reading a file:
    >>> from hexcrypt.ihex import parse_hex_file
    >>> image = parse_hex_file("firmware.hex")
    >>> for address, payload in image:
    ...     print(f"{address:08X}: {payload.hex()}")

Decoding without exceptions:
    >>> result = try_decode(lines)
    >>> if not result.ok:
    ...     print(result.error)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union
import logging
import string

from hexcrypt.errors import (
    ChecksumError,
    FormatError,
    HexCryptError,
    HexIOError,
    SourceLocation,
    TruncatedInputError,
)
from hexcrypt.ihex.checksum import checksum_residue, expected_checksum
from hexcrypt.ihex.image import HexImage, OrderedImage
from hexcrypt.ihex.records import (
    MIN_LINE_LENGTH,
    RECORD_MARKER,
    RECORD_OVERHEAD,
    HexRecord,
    RecordType,
)

logger = logging.getLogger(__name__)

HEX_DIGITS = frozenset(string.hexdigits)

# 1-indexed columns of the record fields, used for error locations
LENGTH_COLUMN = 2
TYPE_COLUMN = 8
PAYLOAD_COLUMN = 10

AnyImage = Union[HexImage, OrderedImage]


# =============================================================================
# Line Decoding
# =============================================================================

def _printable(text: str) -> str:
    """Make a line safe to echo in a diagnostic without shifting columns."""
    return "".join(c if c.isprintable() else "?" for c in text)


def decode_line(text: str, line_number: int = 1, filename: str = "<input>") -> HexRecord:
    """
    Decode and validate one hex line.

    Args:
        text: The line, without its '\\n' terminator (a trailing '\\r' is allowed)
        line_number: 1-indexed line number for error reporting
        filename: File name for error reporting

    Returns:
        The decoded record

    Raises:
        FormatError: If the line breaks the record grammar
        ChecksumError: If the record bytes do not sum to zero
    """
    end = len(text) - 1 if text.endswith("\r") else len(text)
    shown = _printable(text[:end])

    def location(column: int) -> SourceLocation:
        return SourceLocation(filename, line_number, column)

    if end < MIN_LINE_LENGTH or not text.startswith(RECORD_MARKER):
        raise FormatError(
            "not starting with ':' or too short",
            location(1),
            shown,
        )

    for index in range(1, end):
        if text[index] not in HEX_DIGITS:
            raise FormatError(
                "not an hexadecimal character",
                location(index + 1),
                shown,
            )

    digits = text[1:end]
    if len(digits) % 2:
        raise FormatError(
            "odd number of hexadecimal digits",
            location(end),
            shown,
        )
    raw = bytes.fromhex(digits)

    residue = checksum_residue(raw)
    if residue:
        raise ChecksumError(
            "checksum error",
            location(end - 1),
            shown,
            hint=f"expected checksum 0x{expected_checksum(raw):02X}, found 0x{raw[-1]:02X}",
            residue=residue,
        )

    count = raw[0]
    if count + RECORD_OVERHEAD != len(raw):
        raise FormatError(
            "mismatched length",
            location(LENGTH_COLUMN),
            shown,
            hint=f"length field says {count} bytes, record carries {len(raw) - RECORD_OVERHEAD}",
        )

    record_type = raw[3]
    if record_type == RecordType.END_OF_FILE and count != 0:
        raise FormatError("end-of-file record has data", location(PAYLOAD_COLUMN), shown)
    if record_type == RecordType.EXTENDED_LINEAR_ADDRESS and count != 2:
        raise FormatError(
            "wrong size for extended address record",
            location(PAYLOAD_COLUMN),
            shown,
        )
    if not RecordType.is_supported(record_type):
        raise FormatError(
            "unhandled record type",
            location(TYPE_COLUMN),
            shown,
            hint="only types 00 (data), 01 (end of file) and 04 (extended linear address) are supported",
        )

    return HexRecord.from_bytes(raw)


def iter_records(
    lines: Iterable[str], filename: str = "<input>"
) -> Iterator[tuple[int, HexRecord]]:
    """
    Decode lines into records, stopping after the End Of File record.

    Args:
        lines: Source lines; a trailing '\\n' on each line is ignored
        filename: File name for error reporting

    Yields:
        (line_number, record) pairs, End Of File record included

    Raises:
        FormatError, ChecksumError: On the first invalid line
        TruncatedInputError: If the lines run out before End Of File
    """
    line_number = 0
    for line_number, text in enumerate(lines, start=1):
        if text.endswith("\n"):
            text = text[:-1]
        record = decode_line(text, line_number, filename)
        yield line_number, record
        if record.record_type == RecordType.END_OF_FILE:
            logger.debug(f"End of file record at line {line_number}")
            return

    raise TruncatedInputError(filename, line_number)


# =============================================================================
# Image Decoding
# =============================================================================

def decode_image(lines: Iterable[str], filename: str = "<input>") -> HexImage:
    """
    Decode lines into an address-keyed image.

    Data payloads are stored at (bank | address), where the bank is the
    value of the most recent Extended Linear Address record (zero before
    the first one). When two records share an absolute address the first
    one is kept.
    """
    image = HexImage()
    bank = 0
    for line_number, record in iter_records(lines, filename):
        if record.record_type == RecordType.DATA:
            address = bank | record.address
            if not image.add(address, record.payload):
                logger.warning(
                    f"{filename}:{line_number}: duplicate data at 0x{address:08X} ignored"
                )
        elif record.record_type == RecordType.EXTENDED_LINEAR_ADDRESS:
            bank = record.bank
            logger.debug(f"Line {line_number}: address bank 0x{bank:08X}")

    logger.debug(f"Decoded {len(image)} data records ({image.total_bytes()} bytes)")
    return image


def decode_ordered(lines: Iterable[str], filename: str = "<input>") -> OrderedImage:
    """Decode lines into a record-preserving image, every record kept as read."""
    image = OrderedImage()
    for _, record in iter_records(lines, filename):
        image.append(record)

    logger.debug(f"Decoded {len(image)} records ({image.total_bytes()} data bytes)")
    return image


def decode(
    lines: Iterable[str],
    preserve_records: bool = False,
    filename: str = "<input>",
) -> AnyImage:
    """Decode lines into a HexImage, or an OrderedImage if preserve_records is set."""
    if preserve_records:
        return decode_ordered(lines, filename)
    return decode_image(lines, filename)


@dataclass
class DecodeResult:
    """
    Outcome of try_decode(): either an image or the error that stopped decoding.

    Attributes:
        image: The decoded image (None on failure)
        error: The failure (None on success)
    """
    image: Optional[AnyImage] = None
    error: Optional[HexCryptError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> AnyImage:
        """Return the image, or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.image


def try_decode(
    lines: Iterable[str],
    preserve_records: bool = False,
    filename: str = "<input>",
) -> DecodeResult:
    """
    Decode lines, returning failures as a value instead of raising.

    A partially decoded image is never returned.
    """
    try:
        return DecodeResult(image=decode(lines, preserve_records, filename))
    except HexCryptError as e:
        logger.debug(f"Decode failed: {e}")
        return DecodeResult(error=e)


# =============================================================================
# File Adapters
# =============================================================================

def split_lines(text: str) -> list[str]:
    """
    Split text on '\\n' only.

    Carriage returns stay attached to their line so that the decoder can
    accept them at the end of a line and reject them anywhere else.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_hex_lines(filepath: Union[str, Path]) -> list[str]:
    """
    Read a hex file as a list of lines.

    The file is read as bytes and decoded as Latin-1, so any stray byte
    reaches the hex digit check and is reported with its column.

    Raises:
        HexIOError: If the file cannot be read
    """
    filepath = Path(filepath)
    try:
        data = filepath.read_bytes()
    except OSError as e:
        raise HexIOError(f"Can't read input file {filepath}: {e}") from e
    return split_lines(data.decode("latin-1"))


def parse_hex(text: str, preserve_records: bool = False, filename: str = "<input>") -> AnyImage:
    """Decode hex file contents held in a string."""
    return decode(split_lines(text), preserve_records, filename)


def parse_hex_file(filepath: Union[str, Path], preserve_records: bool = False) -> AnyImage:
    """
    Read and decode a hex file from disk.

    Args:
        filepath: Path to the hex file
        preserve_records: Return an OrderedImage instead of a HexImage

    Raises:
        HexIOError: If the file cannot be read or ends before End Of File
        FormatError, ChecksumError: If a line is invalid
    """
    filepath = Path(filepath)
    lines = read_hex_lines(filepath)
    try:
        return decode(lines, preserve_records, str(filepath))
    except HexCryptError as e:
        logger.error(f"Failed to parse {filepath}: {e.__class__.__name__}")
        raise
