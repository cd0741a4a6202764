"""
hexcrypt - Intel HEX Payload Cipher Command-Line Interface
==========================================================

This module implements the command-line interface for enciphering the data
in Intel HEX files. Addresses are unchanged, checksums are updated.

Commands
--------
- **cipher**: Encrypt or decrypt the data records of a hex file
- **info**: Show what a hex file contains
- **validate**: Check a hex file for format and checksum errors
- **convert**: Rewrite a hex file in canonical form
- **frombin**: Create a hex file from a raw binary

Usage Examples
--------------
Encrypt a firmware image (the same command decrypts):
    $ hexcrypt cipher -k secret.key firmware.hex firmware.enc.hex

Keep every record exactly as laid out in the input:
    $ hexcrypt cipher --preserve-records -k secret.key in.hex out.hex

Check a file:
    $ hexcrypt validate firmware.hex

The key file is a raw binary file; its whole content is the key and it can
be of any size.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from hexcrypt import __version__
from hexcrypt.cli.errors import ExitCode, handle_cli_exception
from hexcrypt.config import HexCryptConfig
from hexcrypt.crypto import cipher_hex_file, load_key
from hexcrypt.errors import HexCryptError
from hexcrypt.ihex import (
    HexBuilder,
    parse_hex_file,
    read_hex_lines,
    try_decode,
    write_hex_file,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the verbosity flag and the configuration loaded from the
    environment.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.config: HexCryptConfig = HexCryptConfig.from_env()

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def parse_int(value: str) -> int:
    """Parse a decimal or hex ('0x' or '$' prefix) integer."""
    value = value.strip()
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value, 0)


class AddressType(click.ParamType):
    """Click parameter type for 32-bit addresses in decimal or hex."""
    name = "address"

    def convert(self, value, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        if isinstance(value, int):
            return value
        try:
            address = parse_int(value)
        except ValueError:
            self.fail(f"Invalid address '{value}'", param, ctx)
        if not 0 <= address <= 0xFFFFFFFF:
            self.fail(f"Address '{value}' does not fit in 32 bits", param, ctx)
        return address


ADDRESS = AddressType()


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.version_option(__version__, "--version", "-V", prog_name="hexcrypt")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Encrypt and decrypt the data in Intel HEX files.

    Addresses and record types are kept, so the output is still a valid
    hex file; only data bytes and checksums change.

    \b
    Commands:
      cipher    Encrypt or decrypt a hex file
      info      Show hex file contents
      validate  Check hex file format
      convert   Rewrite a hex file in canonical form
      frombin   Create a hex file from a raw binary
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Cipher Command
# =============================================================================

@main.command("cipher")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-k", "--key",
    "key_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Raw binary key file (default: $HEXCRYPT_KEY_FILE)",
)
@click.option(
    "--preserve-records/--no-preserve-records",
    default=None,
    help="Keep every input record, line for line (default: rebuild from addresses)",
)
@click.option(
    "--discard",
    type=click.IntRange(min=0),
    default=None,
    help="Keystream bytes to drop before use (default: 256)",
)
@pass_context
def cmd_cipher(
    ctx: Context,
    input_file: Path,
    output_file: Path,
    key_file: Optional[Path],
    preserve_records: Optional[bool],
    discard: Optional[int],
) -> None:
    """
    Encrypt or decrypt the data records of a hex file.

    ARC4 is symmetric, so running the command again with the same key on
    the output restores the input data.

    \b
    Examples:
      hexcrypt cipher -k secret.key firmware.hex firmware.enc.hex
      hexcrypt cipher -k secret.key firmware.enc.hex firmware.hex
    """
    config = ctx.config
    key_file = key_file or config.key_file
    if key_file is None:
        handle_cli_exception(
            click.BadParameter("no key file given (use -k or HEXCRYPT_KEY_FILE)")
        )
    if preserve_records is None:
        preserve_records = config.preserve_records
    if discard is None:
        discard = config.discard_bytes

    try:
        key = load_key(key_file)
        summary = cipher_hex_file(
            input_file,
            key,
            output_file,
            preserve_records=preserve_records,
            discard=discard,
        )

        if ctx.verbose:
            click.echo(f"Key: {len(key)} bytes from {key_file}")
            click.echo(f"Mode: {'record-preserving' if preserve_records else 'address map'}")
            click.echo(f"Discarded keystream bytes: {discard}")
        click.echo(
            f"Wrote {output_file} ({summary.records} data records, "
            f"{summary.payload_bytes} bytes ciphered)"
        )

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_info(ctx: Context, input_file: Path) -> None:
    """
    Show what a hex file contains.

    \b
    Output includes:
      - Record counts
      - Address range and banks in use
      - Total data bytes
    """
    try:
        ordered = parse_hex_file(input_file, preserve_records=True)
        image = ordered.to_image()

        click.echo(f"Hex File Information: {input_file}")
        click.echo("=" * 40)
        click.echo(f"Records:     {len(ordered)}")
        click.echo(f"Data:        {sum(1 for _ in ordered.data_records())} records")
        click.echo(f"Data bytes:  {ordered.total_bytes()}")

        address_range = image.address_range()
        if address_range is None:
            click.echo("Range:       (empty)")
        else:
            low, high = address_range
            click.echo(f"Range:       0x{low:08X} - 0x{high - 1:08X}")

        banks = image.banks()
        click.echo(f"Banks:       {len(banks)}")
        if ctx.verbose:
            for bank in banks:
                click.echo(f"  0x{bank >> 16:04X}xxxx")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_validate(ctx: Context, input_file: Path) -> None:
    """
    Check a hex file for format and checksum errors.

    Exits with status 1 and a pointer to the first bad character if the
    file is invalid.

    \b
    Example:
      hexcrypt validate firmware.hex
    """
    try:
        lines = read_hex_lines(input_file)
    except HexCryptError as e:
        handle_cli_exception(e, verbose=ctx.verbose)

    result = try_decode(lines, preserve_records=True, filename=str(input_file))
    if not result.ok:
        click.echo("Validation FAILED:")
        click.echo(str(result.error))
        sys.exit(ExitCode.FAILURE)

    image = result.image
    click.echo(f"Validation PASSED: {input_file}")
    if ctx.verbose:
        click.echo(f"  Records parsed: {len(image)}")
        unread = len(lines) - len(image)
        if unread:
            click.echo(f"  Lines after end-of-file record: {unread}")


# =============================================================================
# Convert Command
# =============================================================================

@main.command("convert")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@pass_context
def cmd_convert(ctx: Context, input_file: Path, output_file: Path) -> None:
    """
    Rewrite a hex file in canonical form.

    Records are sorted by address, redundant extended address records are
    dropped, and hex digits are written in uppercase with CRLF endings.
    """
    try:
        image = parse_hex_file(input_file)
        written = write_hex_file(image, output_file)
        click.echo(f"Wrote {output_file} ({len(image)} data records, {written} bytes)")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Frombin Command
# =============================================================================

@main.command("frombin")
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-a", "--address",
    type=ADDRESS,
    default="0",
    help="Load address, decimal or hex (default: 0)",
)
@click.option(
    "-r", "--record-size",
    type=click.IntRange(1, 255),
    default=None,
    help="Data bytes per record (default: 16)",
)
@pass_context
def cmd_frombin(
    ctx: Context,
    input_file: Path,
    output_file: Path,
    address: int,
    record_size: Optional[int],
) -> None:
    """
    Create a hex file from a raw binary.

    \b
    Example:
      hexcrypt frombin -a 0x08000000 firmware.bin firmware.hex
    """
    try:
        builder = HexBuilder(record_size=record_size or ctx.config.record_size)
        builder.add_binary_file(input_file, address)
        written = builder.build_to_file(output_file)
        click.echo(
            f"Wrote {output_file} ({builder.get_record_count()} data records, "
            f"{written} bytes)"
        )

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
