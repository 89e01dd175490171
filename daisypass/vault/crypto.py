"""
Vault Crypto Core — Key derivation and authenticated AES-CBC primitives.

Implements the two layers of the vault engine:
- Passphrase layer: PBKDF2-HMAC-SHA256(passphrase, salt, 100k) → 256-bit key
- Secret layer: AES-256-CBC/PKCS7 with a random IV, then HMAC-SHA256 over
  [iv][aes_ciphertext] with a MAC key from HKDF(key, "daisypass-secret-mac").
  Stored ciphertext format: [aes_ciphertext][tag 32B]

Security Note:
    Never log passphrases, keys, plaintext or ciphertext values.
    IVs are random 128-bit and unique per encryption.
"""
import os
import secrets
import logging

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .config import (
    IV_LENGTH,
    KEY_LENGTH,
    MAC_CONTEXT,
    MAC_LENGTH,
    PBKDF2_ITERATIONS,
)
from .errors import CryptoUnavailable, DecryptionFailed

logger = logging.getLogger("daisypass.vault")

_BLOCK_BITS = algorithms.AES.block_size


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

def random_bytes(length: int) -> bytes:
    """Return ``length`` bytes from the OS CSPRNG.

    Raises:
        ValueError: If length is not a positive integer.
    """
    if length <= 0:
        raise ValueError(f"Random byte length must be positive, got {length}")
    return secrets.token_bytes(length)


def generate_iv() -> bytes:
    """Generate a fresh one-block IV."""
    return os.urandom(IV_LENGTH)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def pbkdf2_derive(passphrase: bytes, salt: bytes) -> bytes:
    """Derive a 32-byte key from a passphrase with PBKDF2-HMAC-SHA256.

    The iteration count is the compiled ``PBKDF2_ITERATIONS`` constant.

    Args:
        passphrase: UTF-8 encoded passphrase.
        salt: Salt bytes for this vault.

    Returns:
        32-byte derived key.

    Raises:
        CryptoUnavailable: If the backend does not provide PBKDF2/SHA-256.
    """
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=PBKDF2_ITERATIONS,
        )
    except UnsupportedAlgorithm as err:
        raise CryptoUnavailable(
            f"PBKDF2-HMAC-SHA256 is not available: {err}"
        ) from err
    return kdf.derive(passphrase)


def derive_subkey(key: bytes | memoryview, context: str) -> bytes:
    """Derive a 32-byte subkey from a vault key using HKDF-SHA256.

    Args:
        key: Vault key material.
        context: Context string for domain separation.

    Returns:
        32-byte subkey.
    """
    try:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=None,  # the vault key is already uniformly random
            info=context.encode("utf-8"),
        )
    except UnsupportedAlgorithm as err:
        raise CryptoUnavailable(f"HKDF-SHA256 is not available: {err}") from err
    return hkdf.derive(key)


# ---------------------------------------------------------------------------
# Authenticated AES-CBC
# ---------------------------------------------------------------------------

def _aes_cbc(key: bytes | memoryview, iv: bytes) -> Cipher:
    try:
        return Cipher(algorithms.AES(key), modes.CBC(iv))
    except UnsupportedAlgorithm as err:
        raise CryptoUnavailable(f"AES-CBC is not available: {err}") from err


def _tag(mac_key: bytes, iv: bytes, ciphertext: bytes) -> hmac.HMAC:
    mac = hmac.HMAC(mac_key, hashes.SHA256())
    mac.update(iv)
    mac.update(ciphertext)
    return mac


def encrypt_cbc(key: bytes | memoryview, iv: bytes, plaintext: bytes) -> bytes:
    """Encrypt plaintext with AES-256-CBC and append an HMAC-SHA256 tag.

    Format: [aes_ciphertext][tag 32B]

    Args:
        key: 32-byte vault key.
        iv: 16-byte IV, fresh for every call.
        plaintext: Data to encrypt.

    Returns:
        Ciphertext with the authentication tag appended.
    """
    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = _aes_cbc(key, iv).encryptor()
    ct = encryptor.update(padded) + encryptor.finalize()
    mac_key = derive_subkey(key, MAC_CONTEXT)
    return ct + _tag(mac_key, iv, ct).finalize()


def decrypt_cbc(key: bytes | memoryview, iv: bytes, ciphertext: bytes) -> bytes:
    """Verify and decrypt ciphertext produced by ``encrypt_cbc``.

    The tag is checked in constant time before anything is decrypted.

    Args:
        key: 32-byte vault key.
        iv: The IV used during encryption.
        ciphertext: Ciphertext in format [aes_ciphertext][tag 32B].

    Returns:
        Decrypted plaintext bytes.

    Raises:
        DecryptionFailed: On a bad length, a bad tag (wrong key, altered IV
            or ciphertext), or malformed padding.
    """
    block = _BLOCK_BITS // 8
    if len(iv) != IV_LENGTH:
        raise DecryptionFailed(
            f"IV must be {IV_LENGTH} bytes, got {len(iv)}"
        )
    body_len = len(ciphertext) - MAC_LENGTH
    if body_len < block or body_len % block:
        raise DecryptionFailed(
            f"Invalid ciphertext length: {len(ciphertext)} bytes"
        )
    ct, tag = ciphertext[:body_len], ciphertext[body_len:]
    mac_key = derive_subkey(key, MAC_CONTEXT)
    try:
        _tag(mac_key, iv, ct).verify(tag)
    except InvalidSignature as err:
        logger.debug("Secret authentication failed (%d bytes)", len(ciphertext))
        raise DecryptionFailed(
            "Ciphertext failed authentication: wrong key or tampered data"
        ) from err
    try:
        decryptor = _aes_cbc(key, iv).decryptor()
        padded = decryptor.update(ct) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as err:
        raise DecryptionFailed(f"Malformed ciphertext: {err}") from err
