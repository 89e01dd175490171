"""
Vault Errors — Exception taxonomy for the vault engine.

Passphrase validation failures are not exceptions: they surface as a boolean
``False`` from the validator and from ``KeyDeriver.set_passphrase``.
Every other failure is raised, chained to the underlying cause.
"""


class VaultError(Exception):
    """Base class for every error raised by the vault engine."""


class InvalidKey(VaultError, ValueError):
    """Key material is absent, empty, of the wrong length, or already wiped."""


class CryptoUnavailable(VaultError, RuntimeError):
    """A required algorithm is not provided by the cryptographic backend.

    This is an environment problem; retrying will not help.
    """


class KeySpecInvalid(VaultError, ValueError):
    """The passphrase or salt handed to key derivation is malformed."""


class DecryptionFailed(VaultError, ValueError):
    """Ciphertext could not be decrypted with this key.

    Raised for corrupted or truncated ciphertext, an altered IV, malformed
    padding, or a wrong key (which usually means a wrong passphrase).
    """
