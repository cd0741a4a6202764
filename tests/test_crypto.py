"""
Payload Cipher Unit Tests
=========================

Tests for the ARC4 keystream and the image cipher pass.

Test Categories
---------------
1. Keystream: published ARC4 vectors, resumability, key handling
2. Image cipher: involution, keystream order, control records
3. File cipher: key files and file-to-file runs
"""

import pytest

from hexcrypt.crypto import (
    DEFAULT_DISCARD,
    ARC4Keystream,
    cipher_hex_file,
    cipher_image,
    load_key,
)
from hexcrypt.errors import ChecksumError, HexIOError, KeyMaterialError
from hexcrypt.ihex import (
    HexImage,
    RecordType,
    decode_image,
    decode_ordered,
    encode_image,
    encode_ordered,
    parse_hex_file,
)


# =============================================================================
# Test Fixtures
# =============================================================================

KEY = b"I'm an unsafe key\x00"


def xor(data: bytes, stream: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(data, stream))


@pytest.fixture
def banked_lines() -> list[str]:
    """A 32-bit file with data in two address banks."""
    return [
        ":020000040800F2\r\n",
        ":04000000DEADBEEFC4\r\n",
        ":020000040801F1\r\n",
        ":03001000010203E7\r\n",
        ":00000001FF\r\n",
    ]


@pytest.fixture
def hex_file(tmp_path, banked_lines):
    """The banked file written to disk."""
    path = tmp_path / "firmware.hex"
    path.write_bytes("".join(banked_lines).encode("ascii"))
    return path


@pytest.fixture
def key_file(tmp_path):
    """A raw binary key file."""
    path = tmp_path / "secret.key"
    path.write_bytes(KEY)
    return path


# =============================================================================
# Keystream Tests
# =============================================================================

class TestARC4Keystream:
    """Tests for the ARC4 generator."""

    def test_keystream_vector(self):
        """Key 'Key' produces the published keystream."""
        stream = ARC4Keystream(b"Key")
        assert stream.next(10) == bytes.fromhex("EB9F7781B734CA72A719")

    @pytest.mark.parametrize("key,plaintext,ciphertext", [
        (b"Key", b"Plaintext", "BBF316E8D940AF0AD3"),
        (b"Wiki", b"pedia", "1021BF0420"),
        (b"Secret", b"Attack at dawn", "45A01F645FC35B383552544B9BF5"),
    ])
    def test_encryption_vectors(self, key: bytes, plaintext: bytes, ciphertext: str):
        """Published ARC4 test vectors."""
        stream = ARC4Keystream(key)
        assert xor(plaintext, stream.next(len(plaintext))) == bytes.fromhex(ciphertext)

    def test_resumable(self):
        """Split requests continue where the previous one stopped."""
        whole = ARC4Keystream(KEY).next(300)
        stream = ARC4Keystream(KEY)
        parts = stream.next(3) + stream.next(0) + stream.next(200) + stream.next(97)
        assert parts == whole

    def test_skip(self):
        """skip() advances the stream without output."""
        whole = ARC4Keystream(KEY).next(272)
        stream = ARC4Keystream(KEY)
        stream.skip(256)
        assert stream.next(16) == whole[256:]
        assert stream.position == 272

    def test_deterministic(self):
        """Two generators with the same key agree."""
        assert ARC4Keystream(KEY).next(64) == ARC4Keystream(KEY).next(64)

    def test_key_sensitivity(self):
        """A one-byte key change changes the keystream."""
        assert ARC4Keystream(b"key1").next(16) != ARC4Keystream(b"key2").next(16)

    def test_long_key(self):
        """Keys longer than the state are accepted; bytes past 256 are unused."""
        long_key = bytes(range(256)) + b"ignored"
        assert ARC4Keystream(long_key).next(8) == ARC4Keystream(bytes(range(256))).next(8)

    def test_empty_key(self):
        """An empty key is rejected."""
        with pytest.raises(KeyMaterialError):
            ARC4Keystream(b"")

    def test_negative_count(self):
        """Negative byte counts are a programming error."""
        with pytest.raises(ValueError):
            ARC4Keystream(KEY).next(-1)


# =============================================================================
# Image Cipher Tests
# =============================================================================

class TestCipherImage:
    """Tests for cipher_image()."""

    def test_involution(self, banked_lines):
        """Ciphering twice with the same key restores the image."""
        original = decode_image(banked_lines)
        image = decode_image(banked_lines)
        cipher_image(image, KEY)
        assert image != original
        cipher_image(image, KEY)
        assert image == original

    def test_ordered_involution(self, banked_lines):
        """The record-preserving round trip restores the file byte for byte."""
        image = decode_ordered(banked_lines)
        cipher_image(image, KEY)
        ciphered = encode_ordered(image)
        assert ciphered != "".join(banked_lines)

        restored = decode_ordered(ciphered.splitlines())
        cipher_image(restored, KEY)
        assert encode_ordered(restored) == "".join(banked_lines)

    def test_keystream_order(self, banked_lines):
        """Payloads consume the keystream after the discard, ascending address."""
        image = decode_image(banked_lines)
        processed = cipher_image(image, KEY)
        assert processed == 7

        stream = ARC4Keystream(KEY)
        stream.skip(DEFAULT_DISCARD)
        mask = stream.next(7)
        assert image.get(0x08000000) == xor(bytes.fromhex("DEADBEEF"), mask[:4])
        assert image.get(0x08010010) == xor(bytes([1, 2, 3]), mask[4:])

    def test_insertion_order_irrelevant(self):
        """Address-keyed images are ciphered in address order, not insertion order."""
        forward = HexImage()
        forward.add(0x0000, b"\x00" * 4)
        forward.add(0x0100, b"\x00" * 4)
        backward = HexImage()
        backward.add(0x0100, b"\x00" * 4)
        backward.add(0x0000, b"\x00" * 4)
        cipher_image(forward, KEY)
        cipher_image(backward, KEY)
        assert forward == backward

    def test_discard_changes_output(self, banked_lines):
        """The discard count selects where the keystream starts."""
        skipped = decode_image(banked_lines)
        unskipped = decode_image(banked_lines)
        cipher_image(skipped, KEY)
        cipher_image(unskipped, KEY, discard=0)
        assert skipped != unskipped

        stream = ARC4Keystream(KEY)
        assert unskipped.get(0x08000000) == xor(bytes.fromhex("DEADBEEF"), stream.next(4))

    def test_negative_discard(self, banked_lines):
        """A negative discard is rejected."""
        with pytest.raises(ValueError):
            cipher_image(decode_image(banked_lines), KEY, discard=-1)

    def test_empty_key(self, banked_lines):
        """Empty keys are rejected before anything is modified."""
        image = decode_image(banked_lines)
        with pytest.raises(KeyMaterialError):
            cipher_image(image, b"")
        assert image == decode_image(banked_lines)

    def test_addresses_preserved(self, banked_lines):
        """Addresses and lengths never change."""
        image = decode_image(banked_lines)
        cipher_image(image, KEY)
        assert image.addresses() == [0x08000000, 0x08010010]
        assert [len(payload) for _, payload in image] == [4, 3]

    def test_control_records_untouched(self, banked_lines):
        """ELA and EOF lines are written unchanged."""
        image = decode_ordered(banked_lines)
        cipher_image(image, KEY)
        lines = encode_ordered(image).splitlines(keepends=True)
        for before, after in zip(banked_lines, lines):
            if before[7:9] in ("01", "04"):
                assert after == before

    def test_checksums_recomputed(self, banked_lines):
        """Every ciphered record carries a valid checksum."""
        image = decode_ordered(banked_lines)
        cipher_image(image, KEY)
        assert image.invalid_checksums() == []
        for record in image:
            if record.record_type == RecordType.DATA:
                assert record.has_valid_checksum()

    def test_encoded_output_decodes(self, banked_lines):
        """The enciphered file is a valid hex file."""
        image = decode_image(banked_lines)
        cipher_image(image, KEY)
        assert decode_image(encode_image(image).splitlines()) == image

    def test_variants_agree(self, banked_lines):
        """For a canonical file both image variants encipher identically."""
        keyed = decode_image(banked_lines)
        ordered = decode_ordered(banked_lines)
        cipher_image(keyed, KEY)
        cipher_image(ordered, KEY)
        assert ordered.to_image() == keyed


# =============================================================================
# File Cipher Tests
# =============================================================================

class TestCipherFile:
    """Tests for load_key() and cipher_hex_file()."""

    def test_load_key(self, key_file):
        """The whole file is the key, trailing NUL included."""
        assert load_key(key_file) == KEY
        assert len(load_key(key_file)) == 18

    def test_load_empty_key(self, tmp_path):
        """An empty key file is rejected."""
        path = tmp_path / "empty.key"
        path.write_bytes(b"")
        with pytest.raises(KeyMaterialError):
            load_key(path)

    def test_load_missing_key(self, tmp_path):
        """A missing key file raises HexIOError."""
        with pytest.raises(HexIOError):
            load_key(tmp_path / "missing.key")

    def test_file_round_trip(self, tmp_path, hex_file, key_file):
        """Enciphering then deciphering restores the file."""
        key = load_key(key_file)
        enciphered = tmp_path / "enc.hex"
        restored = tmp_path / "dec.hex"

        summary = cipher_hex_file(hex_file, key, enciphered)
        assert summary.records == 2
        assert summary.payload_bytes == 7
        assert summary.bytes_written == enciphered.stat().st_size
        assert enciphered.read_bytes() != hex_file.read_bytes()

        cipher_hex_file(enciphered, key, restored)
        assert restored.read_bytes() == hex_file.read_bytes()

    def test_preserve_records(self, tmp_path, key_file):
        """Redundant ELA records survive in record-preserving mode."""
        source = tmp_path / "redundant.hex"
        source.write_bytes(b":020000040000FA\r\n:020000000102FB\r\n:00000001FF\r\n")
        key = load_key(key_file)

        cipher_hex_file(source, key, tmp_path / "keyed.hex")
        cipher_hex_file(source, key, tmp_path / "ordered.hex", preserve_records=True)
        keyed = (tmp_path / "keyed.hex").read_text()
        ordered = (tmp_path / "ordered.hex").read_text()
        assert not keyed.startswith(":020000040000FA")
        assert ordered.startswith(":020000040000FA")

        assert parse_hex_file(tmp_path / "keyed.hex") == parse_hex_file(tmp_path / "ordered.hex")

    def test_invalid_input_leaves_no_output(self, tmp_path, key_file):
        """A bad input file raises before anything is written."""
        source = tmp_path / "bad.hex"
        source.write_bytes(b":0200000001020C\r\n:00000001FF\r\n")
        output = tmp_path / "out.hex"
        with pytest.raises(ChecksumError):
            cipher_hex_file(source, load_key(key_file), output)
        assert not output.exists()
