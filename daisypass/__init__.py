"""DaisyPass.

Master-passphrase key derivation and secret encryption for password vaults.
"""
from .version import __version__
from .vault import (
    KeyDeriver,
    SecretCipher,
    SecretEntry,
    EncryptedSecret,
    VaultSession,
    validate_passphrase,
)

__all__ = [
    "__version__",
    "KeyDeriver",
    "SecretCipher",
    "SecretEntry",
    "EncryptedSecret",
    "VaultSession",
    "validate_passphrase",
]
