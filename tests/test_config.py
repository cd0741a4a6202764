"""
Configuration Tests
===================

Tests for HexCryptConfig defaults and environment overrides.
"""

from pathlib import Path

import pytest

from hexcrypt.config import HexCryptConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without hexcrypt variables set."""
    for name in ("HEXCRYPT_DISCARD", "HEXCRYPT_PRESERVE_RECORDS",
                 "HEXCRYPT_KEY_FILE", "HEXCRYPT_RECORD_SIZE"):
        monkeypatch.delenv(name, raising=False)


class TestHexCryptConfig:
    """Tests for HexCryptConfig.from_env()."""

    def test_defaults(self):
        """Without environment variables the defaults apply."""
        config = HexCryptConfig.from_env()
        assert config.discard_bytes == 256
        assert config.preserve_records is False
        assert config.key_file is None
        assert config.record_size == 16

    def test_overrides(self, monkeypatch):
        """Every variable is honoured."""
        monkeypatch.setenv("HEXCRYPT_DISCARD", "768")
        monkeypatch.setenv("HEXCRYPT_PRESERVE_RECORDS", "true")
        monkeypatch.setenv("HEXCRYPT_KEY_FILE", "/keys/firmware.key")
        monkeypatch.setenv("HEXCRYPT_RECORD_SIZE", "32")

        config = HexCryptConfig.from_env()
        assert config.discard_bytes == 768
        assert config.preserve_records is True
        assert config.key_file == Path("/keys/firmware.key")
        assert config.record_size == 32

    @pytest.mark.parametrize("value,expected", [
        ("1", True),
        ("YES", True),
        (" on ", True),
        ("0", False),
        ("no", False),
    ])
    def test_preserve_records_values(self, monkeypatch, value: str, expected: bool):
        """Boolean variables accept the usual spellings."""
        monkeypatch.setenv("HEXCRYPT_PRESERVE_RECORDS", value)
        assert HexCryptConfig.from_env().preserve_records is expected

    @pytest.mark.parametrize("name,value", [
        ("HEXCRYPT_DISCARD", "lots"),
        ("HEXCRYPT_DISCARD", "-1"),
        ("HEXCRYPT_RECORD_SIZE", "0"),
        ("HEXCRYPT_RECORD_SIZE", "256"),
        ("HEXCRYPT_RECORD_SIZE", "sixteen"),
    ])
    def test_invalid_values_ignored(self, monkeypatch, name: str, value: str):
        """Values that do not parse or are out of range keep the default."""
        monkeypatch.setenv(name, value)
        config = HexCryptConfig.from_env()
        assert config == HexCryptConfig()
