"""Vault — Passphrase-derived keys and encrypted secret storage records.

Security Note (Threat Model):
    The derived key and decrypted secrets live in process memory while a
    vault is unlocked. ``DerivedKey.wipe()`` zeroes the key buffer, but
    copies made by the interpreter (the passphrase string, intermediate
    bytes) cannot be reliably erased. Protection against memory dumps
    requires hardware-backed key storage, which is out of scope.
"""

from .cipher import SecretCipher
from .config import (
    DEFAULT_SALT_LENGTH,
    KEY_LENGTH,
    PBKDF2_ITERATIONS,
    VaultHeader,
)
from .errors import (
    CryptoUnavailable,
    DecryptionFailed,
    InvalidKey,
    KeySpecInvalid,
    VaultError,
)
from .keys import KeyDeriver
from .models import DerivedKey, EncryptedSecret, SecretEntry
from .session import VaultSession
from .validator import PassphraseValidator, validate_passphrase

__all__ = [
    "SecretCipher",
    "KeyDeriver",
    "PassphraseValidator",
    "validate_passphrase",
    "DerivedKey",
    "EncryptedSecret",
    "SecretEntry",
    "VaultHeader",
    "VaultSession",
    "VaultError",
    "InvalidKey",
    "CryptoUnavailable",
    "KeySpecInvalid",
    "DecryptionFailed",
    "DEFAULT_SALT_LENGTH",
    "KEY_LENGTH",
    "PBKDF2_ITERATIONS",
]
