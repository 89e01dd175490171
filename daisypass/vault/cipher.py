"""
Secret Cipher — Encrypts and decrypts stored secrets with the vault key.

Each ``encrypt`` call draws a fresh random IV, so identical plaintexts never
produce identical records.
"""
import logging

from .crypto import decrypt_cbc, encrypt_cbc, generate_iv
from .errors import DecryptionFailed, InvalidKey
from .models import DerivedKey, EncryptedSecret

logger = logging.getLogger("daisypass.vault")


class SecretCipher:
    """Encrypts and decrypts secret strings under one vault key.

    Args:
        key: A ``DerivedKey`` (kept by reference, so wiping it disables
            this cipher) or raw 32-byte key material (copied).

    Raises:
        InvalidKey: If the key is absent, empty, of the wrong length, or
            already wiped.
    """

    def __init__(self, key: DerivedKey | bytes | None):
        if key is None:
            raise InvalidKey("Cipher key cannot be None")
        if not isinstance(key, DerivedKey):
            key = DerivedKey(key)
        if key.wiped:
            raise InvalidKey("Key material has been wiped")
        self._key = key
        logger.debug("Secret cipher ready (%d-bit key)", len(key) * 8)

    @property
    def key(self) -> DerivedKey:
        return self._key

    def encrypt(self, plaintext: str) -> EncryptedSecret:
        """Encrypt a secret string.

        Args:
            plaintext: The secret; encoded as UTF-8.

        Returns:
            EncryptedSecret holding the ciphertext and its fresh IV.

        Raises:
            InvalidKey: If the key has been wiped.
        """
        iv = generate_iv()
        ciphertext = encrypt_cbc(self._key.view(), iv, plaintext.encode("utf-8"))
        return EncryptedSecret(ciphertext=ciphertext, iv=iv)

    def decrypt(self, secret: EncryptedSecret) -> str:
        """Recover the secret string from an ``EncryptedSecret``.

        Raises:
            DecryptionFailed: If the record is truncated, altered, was
                produced under another key, or does not decode as UTF-8.
            InvalidKey: If the key has been wiped.
        """
        plaintext = decrypt_cbc(self._key.view(), secret.iv, secret.ciphertext)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise DecryptionFailed("Decrypted secret is not valid UTF-8") from err

    def __repr__(self) -> str:
        return f"<SecretCipher key={self._key!r}>"
