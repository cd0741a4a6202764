"""
ARC4 Keystream Generator
========================

This module implements the ARC4 (RC4) keystream generator used to encipher
hex file payloads.

Technical Details
-----------------
- State: a 256-byte permutation plus two indices i and j
- Key schedule: for i in 0..255, j = (j + S[i] + key[i % len(key)]) % 256,
  then swap S[i] and S[j]
- Output: i = (i + 1) % 256, j = (j + S[i]) % 256, swap, emit
  S[(S[i] + S[j]) % 256]

The generator is resumable: the indices live on the object, so
next(3) followed by next(5) yields the same bytes as a single next(8).

Security Note
-------------
The first bytes of an ARC4 keystream leak information about the key. When
plaintext/ciphertext pairs are available (as they are for firmware images
with well-known headers), the key can be recovered from them. Callers must
discard the first DEFAULT_DISCARD bytes with skip() before masking any data.
ARC4 provides confidentiality only, with no integrity protection.

Usage
-----
    from hexcrypt.crypto.arcfour import ARC4Keystream

    stream = ARC4Keystream(b"secret key")
    stream.skip(256)
    mask = stream.next(16)
"""

from typing import Final

from hexcrypt.errors import KeyMaterialError


# Number of leading keystream bytes thrown away before use
DEFAULT_DISCARD: Final[int] = 256

STATE_SIZE: Final[int] = 256


class ARC4Keystream:
    """
    Stateful ARC4 keystream generator.

    Attributes:
        position: Total number of keystream bytes drawn so far
    """

    def __init__(self, key: bytes):
        """
        Run the key schedule.

        Args:
            key: Raw key bytes, at least one byte, any length

        Raises:
            KeyMaterialError: If the key is empty
        """
        if not key:
            raise KeyMaterialError("ARC4 key must contain at least one byte")

        state = list(range(STATE_SIZE))
        j = 0
        key_length = len(key)
        for i in range(STATE_SIZE):
            j = (j + state[i] + key[i % key_length]) % STATE_SIZE
            state[i], state[j] = state[j], state[i]

        self._state = state
        self._i = 0
        self._j = 0
        self.position = 0

    def next(self, count: int) -> bytes:
        """
        Generate the next count keystream bytes.

        Args:
            count: Number of bytes to generate (0 is allowed)

        Returns:
            The keystream bytes
        """
        if count < 0:
            raise ValueError(f"cannot generate {count} keystream bytes")

        state = self._state
        i = self._i
        j = self._j
        out = bytearray(count)
        for idx in range(count):
            i = (i + 1) % STATE_SIZE
            j = (j + state[i]) % STATE_SIZE
            state[i], state[j] = state[j], state[i]
            out[idx] = state[(state[i] + state[j]) % STATE_SIZE]

        self._i = i
        self._j = j
        self.position += count
        return bytes(out)

    def skip(self, count: int) -> None:
        """Advance the keystream by count bytes, discarding the output."""
        self.next(count)

    def __repr__(self) -> str:
        return f"ARC4Keystream(position={self.position})"
