"""
Tests for KeyDeriver.

Tests cover:
- Salt generation and adoption (raw and base64)
- Named construction paths
- Passphrase updates
- Key derivation determinism and salt uniqueness
- Error paths (KeySpecInvalid, CryptoUnavailable)
"""
import base64
import hashlib

import pytest
from cryptography.exceptions import UnsupportedAlgorithm

from daisypass.vault import crypto
from daisypass.vault.config import DEFAULT_SALT_LENGTH, KEY_LENGTH, PBKDF2_ITERATIONS
from daisypass.vault.errors import CryptoUnavailable, KeySpecInvalid
from daisypass.vault.keys import KeyDeriver
from daisypass.vault.models import DerivedKey

PASSPHRASE = "sdsdvc@$sd34jmd"
FIXED_SALT = bytes(range(16))


@pytest.fixture
def deriver():
    """A deriver with a fixed salt."""
    return KeyDeriver.with_stored_salt(PASSPHRASE, FIXED_SALT)


# --- Construction ---

class TestConstruction:
    """Tests for the construction paths."""

    def test_generated_salt_has_default_length(self):
        d = KeyDeriver.with_generated_salt(PASSPHRASE)
        assert len(d.salt) == DEFAULT_SALT_LENGTH

    def test_plain_constructor_generates_salt(self):
        d = KeyDeriver(PASSPHRASE)
        assert len(d.salt) == DEFAULT_SALT_LENGTH

    def test_duplicate_passphrase_gets_different_salts(self):
        first = KeyDeriver.with_generated_salt(PASSPHRASE)
        second = KeyDeriver.with_generated_salt(PASSPHRASE)
        assert first.salt != second.salt
        assert first.salt_encoded != second.salt_encoded

    def test_stored_salt_adopted_verbatim(self, deriver):
        assert deriver.salt == FIXED_SALT

    def test_stored_salt_encoded(self):
        encoded = base64.b64encode(FIXED_SALT).decode("ascii")
        d = KeyDeriver.with_stored_salt(PASSPHRASE, encoded)
        assert d.salt == FIXED_SALT
        assert d.salt_encoded == encoded

    def test_stored_salt_any_length(self):
        d = KeyDeriver.with_stored_salt(PASSPHRASE, b"\x01\x02")
        assert d.salt == b"\x01\x02"

    def test_from_header(self, deriver):
        header = deriver.header()
        d = KeyDeriver.from_header(PASSPHRASE, header)
        assert d.salt == FIXED_SALT

    def test_invalid_passphrase_fails_fast(self):
        with pytest.raises(KeySpecInvalid):
            KeyDeriver.with_generated_salt("TestPassword")

    def test_invalid_encoded_salt(self):
        with pytest.raises(KeySpecInvalid):
            KeyDeriver.with_stored_salt(PASSPHRASE, "not base64!!")

    def test_repr_hides_passphrase(self, deriver):
        text = repr(deriver)
        assert PASSPHRASE not in text
        assert "16 bytes" in text


# --- Salt Handling ---

class TestSalt:
    """Tests for generate_salt and the salt setters."""

    def test_generate_salt_default_length(self):
        assert len(KeyDeriver.generate_salt()) == DEFAULT_SALT_LENGTH

    def test_generate_salt_custom_length(self, deriver):
        assert len(deriver.generate_salt(8)) == 8

    def test_generate_salt_is_random(self):
        assert KeyDeriver.generate_salt() != KeyDeriver.generate_salt()

    def test_generate_salt_does_not_change_state(self, deriver):
        deriver.generate_salt()
        assert deriver.salt == FIXED_SALT

    @pytest.mark.parametrize("length", [0, -1])
    def test_generate_salt_rejects_non_positive(self, length):
        with pytest.raises(ValueError):
            KeyDeriver.generate_salt(length)

    def test_set_salt_copies(self, deriver):
        buffer = bytearray(b"\xaa" * 16)
        deriver.set_salt(buffer)
        buffer[0] = 0
        assert deriver.salt == b"\xaa" * 16

    def test_set_salt_rejects_text(self, deriver):
        with pytest.raises(KeySpecInvalid):
            deriver.set_salt("abcdef")

    def test_set_salt_encoded(self, deriver):
        deriver.set_salt_encoded(base64.b64encode(b"\x07" * 16).decode("ascii"))
        assert deriver.salt == b"\x07" * 16

    def test_set_salt_encoded_invalid(self, deriver):
        with pytest.raises(KeySpecInvalid):
            deriver.set_salt_encoded("***")
        assert deriver.salt == FIXED_SALT


# --- Passphrase Handling ---

class TestPassphrase:
    """Tests for set_passphrase and clear."""

    def test_rejected_passphrase_keeps_state(self, deriver):
        before = deriver.derive_key()
        assert deriver.set_passphrase("abc123@") is False
        assert deriver.set_passphrase("") is False
        assert deriver.derive_key() == before

    def test_accepted_passphrase_is_trimmed(self, deriver):
        assert deriver.set_passphrase("  abcdefghij@123456789  ") is True
        trimmed = KeyDeriver.with_stored_salt("abcdefghij@123456789", FIXED_SALT)
        assert deriver.derive_key() == trimmed.derive_key()

    def test_original_examples(self, deriver):
        assert deriver.set_passphrase("abcdefghij@1234567890") is False
        assert deriver.set_passphrase("abcdefghij@12 3") is False
        assert deriver.set_passphrase("abcde123456@") is True
        assert deriver.set_passphrase("@325642asc!#") is True

    def test_clear(self, deriver):
        deriver.clear()
        assert deriver.has_passphrase is False
        with pytest.raises(KeySpecInvalid):
            deriver.derive_key()


# --- Key Derivation ---

class TestDeriveKey:
    """Tests for derive_key."""

    def test_returns_256_bit_key(self, deriver):
        key = deriver.derive_key()
        assert isinstance(key, DerivedKey)
        assert len(key) == KEY_LENGTH

    def test_deterministic(self, deriver):
        assert deriver.derive_key() == deriver.derive_key()

    def test_matches_pbkdf2_hmac_sha256(self, deriver):
        expected = hashlib.pbkdf2_hmac(
            "sha256", PASSPHRASE.encode("utf-8"), FIXED_SALT,
            PBKDF2_ITERATIONS, KEY_LENGTH,
        )
        assert deriver.derive_key().export() == expected

    def test_same_passphrase_independent_salts(self):
        first = KeyDeriver.with_generated_salt(PASSPHRASE)
        second = KeyDeriver.with_generated_salt(PASSPHRASE)
        assert first.derive_key() != second.derive_key()

    def test_passphrase_changes_key(self, deriver):
        other = KeyDeriver.with_stored_salt("abcde123456@", FIXED_SALT)
        assert deriver.derive_key() != other.derive_key()

    def test_reopen_with_stored_salt(self):
        created = KeyDeriver.with_generated_salt(PASSPHRASE)
        reopened = KeyDeriver.with_stored_salt(PASSPHRASE, created.salt_encoded)
        assert created.derive_key() == reopened.derive_key()

    def test_empty_salt(self, deriver):
        deriver.set_salt(b"")
        with pytest.raises(KeySpecInvalid):
            deriver.derive_key()
        with pytest.raises(KeySpecInvalid):
            deriver.header()

    def test_crypto_unavailable(self, deriver, monkeypatch):
        def unsupported(*args, **kwargs):
            raise UnsupportedAlgorithm("PBKDF2 disabled")

        monkeypatch.setattr(crypto, "PBKDF2HMAC", unsupported)
        with pytest.raises(CryptoUnavailable):
            deriver.derive_key()
