"""
Key Deriver — Turns a master passphrase and a salt into the vault key.

Two construction paths:
- ``KeyDeriver.with_generated_salt(passphrase)`` — new vault, fresh salt
- ``KeyDeriver.with_stored_salt(passphrase, salt)`` — reopen a vault with
  the salt read back from storage, reproducing the same key

Security Note:
    The passphrase is kept only until ``clear()`` is called. Never log the
    passphrase or the derived key; only salt lengths and parameters.
"""
import logging

from .config import (
    DEFAULT_SALT_LENGTH,
    PBKDF2_ITERATIONS,
    VaultHeader,
    decode_bytes,
    encode_bytes,
)
from .crypto import pbkdf2_derive, random_bytes
from .errors import KeySpecInvalid
from .models import DerivedKey
from .validator import PassphraseValidator

logger = logging.getLogger("daisypass.vault")


class KeyDeriver:
    """Owns a validated passphrase and a salt; derives the vault key.

    Construction fails fast with ``KeySpecInvalid`` when the passphrase does
    not pass ``PassphraseValidator``. Without a salt, a fresh random salt of
    ``DEFAULT_SALT_LENGTH`` bytes is generated and adopted.

    Instances are not synchronized: the setters mutate state, so use one
    instance per session or serialize writes.
    """

    def __init__(
        self,
        passphrase: str,
        salt: bytes | None = None,
        validator: PassphraseValidator | None = None,
    ):
        self._validator = validator or PassphraseValidator()
        self._passphrase: str | None = None
        self._salt: bytes = b""
        if not self.set_passphrase(passphrase):
            raise KeySpecInvalid("Passphrase does not meet the strength rules")
        if salt is None:
            salt = self.generate_salt()
            logger.debug("Generated new %d-byte vault salt", len(salt))
        self.set_salt(salt)

    # ------------------------------------------------------------------
    # Named constructors
    # ------------------------------------------------------------------

    @classmethod
    def with_generated_salt(cls, passphrase: str) -> "KeyDeriver":
        """Create a deriver for a new vault with a fresh random salt."""
        return cls(passphrase)

    @classmethod
    def with_stored_salt(cls, passphrase: str, salt: bytes | str) -> "KeyDeriver":
        """Create a deriver for an existing vault from its stored salt.

        Args:
            passphrase: The master passphrase.
            salt: Stored salt as raw bytes or base64 text. Adopted verbatim.

        Raises:
            KeySpecInvalid: If the passphrase is rejected or the encoded
                salt cannot be decoded.
        """
        if isinstance(salt, str):
            salt = _decode_salt(salt)
        return cls(passphrase, salt=salt)

    @classmethod
    def from_header(cls, passphrase: str, header: VaultHeader) -> "KeyDeriver":
        """Create a deriver for the vault described by a stored header."""
        return cls(passphrase, salt=header.salt)

    # ------------------------------------------------------------------
    # Passphrase and salt
    # ------------------------------------------------------------------

    def set_passphrase(self, candidate: str) -> bool:
        """Trim, validate and adopt a passphrase.

        Returns:
            True if adopted; False if rejected, leaving prior state unchanged.
        """
        if not self._validator.validate(candidate):
            return False
        self._passphrase = candidate.strip()
        return True

    @property
    def has_passphrase(self) -> bool:
        return bool(self._passphrase)

    def set_salt(self, salt: bytes | bytearray | memoryview) -> None:
        """Adopt a salt verbatim. No length check is made here.

        Raises:
            KeySpecInvalid: If ``salt`` is not a bytes-like object.
        """
        if not isinstance(salt, (bytes, bytearray, memoryview)):
            raise KeySpecInvalid(
                f"Salt must be bytes, got {type(salt).__name__}"
            )
        self._salt = bytes(salt)

    def set_salt_encoded(self, salt_b64: str) -> None:
        """Adopt a salt given in its base64 stored form."""
        self._salt = _decode_salt(salt_b64)

    @property
    def salt(self) -> bytes:
        return self._salt

    @property
    def salt_encoded(self) -> str:
        return encode_bytes(self._salt)

    @staticmethod
    def generate_salt(length: int = DEFAULT_SALT_LENGTH) -> bytes:
        """Return ``length`` random bytes. Does not change any deriver state.

        Raises:
            ValueError: If length is not positive.
        """
        return random_bytes(length)

    def header(self) -> VaultHeader:
        """Return the public header a storage layer persists for this vault.

        Raises:
            KeySpecInvalid: If the salt is empty.
        """
        if not self._salt:
            raise KeySpecInvalid("Salt cannot be empty")
        return VaultHeader(salt=self._salt)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def derive_key(self) -> DerivedKey:
        """Derive the 256-bit vault key with PBKDF2-HMAC-SHA256.

        Deterministic for the same passphrase and salt.

        Raises:
            KeySpecInvalid: If the passphrase was cleared or the salt is empty.
            CryptoUnavailable: If the backend lacks PBKDF2 or SHA-256.
        """
        if not self._passphrase:
            raise KeySpecInvalid("Passphrase is not set")
        if not self._salt:
            raise KeySpecInvalid("Salt cannot be empty")
        logger.debug(
            "Deriving vault key: iterations=%d salt_length=%d",
            PBKDF2_ITERATIONS, len(self._salt),
        )
        raw = pbkdf2_derive(self._passphrase.encode("utf-8"), self._salt)
        return DerivedKey(raw)

    def clear(self) -> None:
        """Drop the passphrase. ``derive_key`` fails until a new one is set."""
        self._passphrase = None

    def __repr__(self) -> str:
        return (
            f"<KeyDeriver [passphrase:{'set' if self._passphrase else 'unset'}, "
            f"salt:{len(self._salt)} bytes]>"
        )


def _decode_salt(salt_b64: str) -> bytes:
    try:
        return decode_bytes(salt_b64)
    except ValueError as err:
        raise KeySpecInvalid(f"Invalid encoded salt: {err}") from err
