"""
VaultSession — One unlocked vault: a derived key plus its cipher.

Provides the public API a storage layer works with:
- ``create(passphrase)`` / ``open(passphrase, salt)`` — unlock a vault
- ``header`` — the public record to persist alongside the entries
- ``add()`` / ``reveal()`` / ``rotate()`` / ``check()`` — entry operations
- ``close()`` — wipe the key; also done on context-manager exit

Security Note:
    Never log plaintext or ciphertext values. Only log labels and
    operations. Decrypted values exist in process memory while in use.
"""
import logging

from .cipher import SecretCipher
from .config import VaultHeader
from .errors import DecryptionFailed, InvalidKey
from .keys import KeyDeriver
from .models import EncryptedSecret, SecretEntry

logger = logging.getLogger("daisypass.vault")


class VaultSession:
    """Unlocked vault bound to one master passphrase and salt.

    The key is derived once at construction and wiped by ``close()``.
    Using the session after it was closed raises ``InvalidKey``.
    """

    def __init__(self, deriver: KeyDeriver):
        self._header = deriver.header()
        self._deriver = deriver
        self._key = deriver.derive_key()
        self._cipher = SecretCipher(self._key)
        self._closed = False
        logger.info(
            "Vault unlocked (salt_length=%d)", len(self._header.salt),
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, passphrase: str) -> "VaultSession":
        """Unlock a brand new vault with a freshly generated salt."""
        return cls(KeyDeriver.with_generated_salt(passphrase))

    @classmethod
    def open(
        cls, passphrase: str, stored: VaultHeader | bytes | str,
    ) -> "VaultSession":
        """Unlock an existing vault.

        Args:
            passphrase: The master passphrase.
            stored: The vault header, or the raw or base64-encoded salt.

        Raises:
            KeySpecInvalid: If the passphrase is rejected or the salt is
                malformed.
        """
        if isinstance(stored, VaultHeader):
            return cls(KeyDeriver.from_header(passphrase, stored))
        return cls(KeyDeriver.with_stored_salt(passphrase, stored))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def header(self) -> VaultHeader:
        return self._header

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidKey("Vault session is closed")

    # ------------------------------------------------------------------
    # Entry operations
    # ------------------------------------------------------------------

    def encrypt(self, secret: str) -> EncryptedSecret:
        self._ensure_open()
        return self._cipher.encrypt(secret)

    def add(
        self,
        label: str,
        secret: str,
        url: str | None = None,
        username: str | None = None,
        notes: str | None = None,
    ) -> SecretEntry:
        """Encrypt a secret and wrap it in a new entry.

        Raises:
            pydantic.ValidationError: If the label is empty or too long.
        """
        entry = SecretEntry(
            label=label,
            secret=self.encrypt(secret),
            url=url,
            username=username,
            notes=notes,
        )
        logger.debug("Vault add: label=%s", entry.label)
        return entry

    def reveal(self, entry: SecretEntry) -> str:
        """Decrypt and return the secret of an entry.

        Raises:
            DecryptionFailed: If the entry was not encrypted under this key
                or has been tampered with.
        """
        self._ensure_open()
        return self._cipher.decrypt(entry.secret)

    def rotate(self, entry: SecretEntry, new_secret: str) -> SecretEntry:
        """Replace an entry's secret with a newly encrypted value."""
        entry.replace_secret(self.encrypt(new_secret))
        logger.debug("Vault rotate: label=%s", entry.label)
        return entry

    def check(self, entry: SecretEntry) -> bool:
        """Return True if the entry decrypts under this session's key.

        A False result usually means the vault was opened with the wrong
        passphrase.
        """
        try:
            self.reveal(entry)
        except DecryptionFailed:
            logger.warning("Vault check failed: label=%s", entry.label)
            return False
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Wipe the vault key and forget the passphrase."""
        if self._closed:
            return
        self._key.wipe()
        self._deriver.clear()
        self._closed = True
        logger.info("Vault locked")

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<VaultSession [{'closed' if self._closed else 'open'}]>"
