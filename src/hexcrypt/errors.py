"""
HexCrypt Error Hierarchy
========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from HexCryptError, allowing callers to catch every
HexCrypt-related failure with a single except clause if desired.

Exception Hierarchy
-------------------
HexCryptError (base)
├── HexIOError - input/output file cannot be opened, read or written
│   └── TruncatedInputError - input ended before the end-of-file record
├── HexParseError (line-level decode failures)
│   ├── FormatError - line violates the record grammar
│   └── ChecksumError - record bytes do not sum to zero
├── RecordError - record built in code violates the record invariants
└── KeyMaterialError - key is empty or cannot be loaded

Design Philosophy
-----------------
Parse errors capture the location (filename, line, column) and the offending
line text, so that the message can point straight at the bad character:

    firmware.hex:12:8: error: unhandled record type
        :020000021200EA
               ^

FormatError and ChecksumError propagate the same way, but are distinct
classes so that tooling can tell transmission corruption apart from
structural malformation.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class HexCryptError(Exception):
    """
    Base exception for all HexCrypt errors.

        try:
            image = parse_hex_file("firmware.hex")
        except HexCryptError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Location of a character in a hex file, for error reporting.

    Attributes:
        filename: Name of the hex file (or "<input>" for in-memory lines)
        line: Line number (1-indexed)
        column: Column number (1-indexed, the ':' marker is column 1)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# I/O Exceptions
# =============================================================================

class HexIOError(HexCryptError):
    """
    The underlying byte source or sink failed.

    Raised when a hex file or key file cannot be opened, read or written.
    The original OSError (if any) is chained as __cause__.
    """
    pass


class TruncatedInputError(HexIOError):
    """
    Input ended before an end-of-file record was seen.

    A hex file without its terminating ':00000001FF' record is treated as
    truncated rather than silently accepted.
    """

    def __init__(self, filename: str = "<input>", lines_read: int = 0):
        self.filename = filename
        self.lines_read = lines_read
        super().__init__(
            f"{filename}: unexpected end of input after {lines_read} lines "
            f"(no end-of-file record)"
        )


# =============================================================================
# Parse Exceptions
# =============================================================================

class HexParseError(HexCryptError):
    """
    Base exception for errors found while decoding a hex line.

    Attributes:
        message: The error description
        location: Where in the file the error occurred (optional)
        source_line: The text of the offending line (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.source_line = source_line
        self.hint = hint
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        return self.location.line if self.location else None

    @property
    def column(self) -> Optional[int]:
        return self.location.column if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            firmware.hex:3:14: error: checksum error
                :0200000001020C
                             ^
            hint: expected checksum 0xFB, found 0x0C
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class FormatError(HexParseError):
    """
    A line does not follow the Intel HEX record grammar.

    Examples:
        - Line does not start with ':' or is too short
        - Non-hexadecimal character
        - Declared length does not match the number of bytes
        - Unsupported record type
        - End-of-file record carrying data
        - Extended linear address record without exactly 2 bytes
    """
    pass


class ChecksumError(HexParseError):
    """
    A record's bytes (checksum included) do not sum to zero modulo 256.

    This usually means the file was corrupted in transit or edited by hand.
    """

    def __init__(
        self,
        message: str = "checksum error",
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
        residue: Optional[int] = None,
    ):
        self.residue = residue
        if hint is None and residue is not None:
            hint = f"record bytes sum to 0x{residue:02X} instead of 0x00"
        super().__init__(message, location=location, source_line=source_line, hint=hint)


# =============================================================================
# Model and Key Exceptions
# =============================================================================

class RecordError(HexCryptError):
    """
    A record constructed in code violates the record invariants.

    Raised for payloads longer than 255 bytes, addresses beyond 16 bits,
    unknown record types, or control records with the wrong payload size.
    """
    pass


class KeyMaterialError(HexCryptError):
    """
    Key bytes are missing or empty.

    ARC4 needs at least one key byte; an empty key file is rejected before
    any keystream is generated.
    """
    pass
