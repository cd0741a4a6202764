"""
Hex Image Cipher
================

Enciphers the payload of every data record of a hex image with an ARC4
keystream. Addresses and record types are left alone, so the result is
still a valid hex file that standard tools can read; only the data bytes
(and therefore the checksums) change.

Because XOR with the same keystream undoes itself, the same call with the
same key deciphers. This holds as long as the records are visited in the
same order with the same lengths, which the decode/encode round trip
guarantees.

Usage
-----
    >>> from hexcrypt.crypto import cipher_image, load_key
    >>> image = parse_hex_file("firmware.hex")
    >>> cipher_image(image, load_key("secret.key"))
    >>> write_hex_file(image, "firmware.enc.hex")
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Union
import logging

from hexcrypt.crypto.arcfour import DEFAULT_DISCARD, ARC4Keystream
from hexcrypt.errors import HexIOError, KeyMaterialError
from hexcrypt.ihex.builder import write_hex_file
from hexcrypt.ihex.image import HexImage, OrderedImage
from hexcrypt.ihex.parser import parse_hex_file

logger = logging.getLogger(__name__)


def cipher_image(
    image: Union[HexImage, OrderedImage],
    key: bytes,
    discard: int = DEFAULT_DISCARD,
) -> int:
    """
    Encipher or decipher an image in place.

    A fresh keystream is set up from the key and its first `discard` bytes
    are thrown away. Each data payload then consumes exactly as many
    keystream bytes as it holds. Record-preserving images get their
    checksums recomputed; address-keyed images get them on encode.

    Args:
        image: The decoded image, modified in place
        key: Raw key bytes (at least one)
        discard: Leading keystream bytes to drop

    Returns:
        Number of payload bytes processed

    Raises:
        KeyMaterialError: If the key is empty
    """
    if discard < 0:
        raise ValueError(f"discard must be non-negative, got {discard}")

    keystream = ARC4Keystream(key)
    keystream.skip(discard)
    processed = image.apply_keystream(keystream)

    logger.info(f"Ciphered {processed} payload bytes with a {len(key)}-byte key")
    return processed


def load_key(filepath: Union[str, Path]) -> bytes:
    """
    Read a key file. The whole file is used as key material.

    Raises:
        HexIOError: If the file cannot be read
        KeyMaterialError: If the file is empty
    """
    filepath = Path(filepath)
    try:
        key = filepath.read_bytes()
    except OSError as e:
        raise HexIOError(f"Can't read key file {filepath}: {e}") from e

    if not key:
        raise KeyMaterialError(f"Key file {filepath} is empty")

    logger.debug(f"Loaded {len(key)}-byte key from {filepath}")
    return key


@dataclass
class CipherSummary:
    """
    What a cipher_hex_file() run did.

    Attributes:
        records: Data records processed
        payload_bytes: Payload bytes enciphered
        bytes_written: Size of the output file
    """
    records: int
    payload_bytes: int
    bytes_written: int


def cipher_hex_file(
    input_path: Union[str, Path],
    key: bytes,
    output_path: Union[str, Path],
    preserve_records: bool = False,
    discard: int = DEFAULT_DISCARD,
) -> CipherSummary:
    """
    Read a hex file, encipher (or decipher) its payloads, and write the result.

    The output is written only after the whole input has been decoded and
    ciphered, so a failed run never leaves a partial output file behind.
    """
    image = parse_hex_file(input_path, preserve_records=preserve_records)
    processed = cipher_image(image, key, discard=discard)
    written = write_hex_file(image, output_path)

    if isinstance(image, OrderedImage):
        records = sum(1 for _ in image.data_records())
    else:
        records = len(image)
    return CipherSummary(records=records, payload_bytes=processed, bytes_written=written)
