"""
Vault Configuration — Compiled algorithm parameters and the vault header.

The key-derivation and cipher parameters are constants of this module. They
are never read from the environment or from stored data: a stored
``VaultHeader`` only records them, and loading a header that disagrees with
the constants is rejected.

Security Note:
    The header is public. It holds the salt but never key material.
"""
import base64
import binascii
import logging
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import KeySpecInvalid

logger = logging.getLogger("daisypass.vault")

PBKDF2_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
DEFAULT_SALT_LENGTH = 16
IV_LENGTH = 16  # one AES block
MAC_LENGTH = 32  # HMAC-SHA256 tag
MAC_CONTEXT = "daisypass-secret-mac"

KDF_NAME = "pbkdf2-hmac-sha256"
CIPHER_NAME = "aes-256-cbc-hmac-sha256"


def encode_bytes(data: bytes) -> str:
    """Encode bytes as standard base64 text for storage."""
    return base64.b64encode(data).decode("ascii")


def decode_bytes(text: str) -> bytes:
    """Decode standard base64 text produced by ``encode_bytes``.

    Raises:
        ValueError: If ``text`` is not valid base64.
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, TypeError) as err:
        raise ValueError(f"Invalid base64 data: {err}") from err


class VaultHeader(BaseModel):
    """Public, per-vault parameters persisted next to the entries."""

    salt: bytes
    kdf: str = KDF_NAME
    iterations: int = PBKDF2_ITERATIONS
    key_length: int = KEY_LENGTH
    cipher: str = CIPHER_NAME

    model_config = {"frozen": True}

    @field_validator("salt")
    @classmethod
    def validate_salt(cls, v: bytes) -> bytes:
        """Salt must not be empty."""
        if not v:
            raise ValueError("Vault salt cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_parameters(self) -> "VaultHeader":
        """Ensure the recorded parameters match the compiled ones."""
        expected = {
            "kdf": KDF_NAME,
            "iterations": PBKDF2_ITERATIONS,
            "key_length": KEY_LENGTH,
            "cipher": CIPHER_NAME,
        }
        for name, value in expected.items():
            if getattr(self, name) != value:
                raise ValueError(
                    f"Unsupported vault {name}: {getattr(self, name)!r} "
                    f"(expected {value!r})"
                )
        return self

    @property
    def salt_encoded(self) -> str:
        return encode_bytes(self.salt)

    def to_dict(self) -> dict[str, Any]:
        """Return the header with the salt base64-encoded."""
        return {
            "salt": self.salt_encoded,
            "kdf": self.kdf,
            "iterations": self.iterations,
            "key_length": self.key_length,
            "cipher": self.cipher,
        }

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultHeader":
        """Build a header from its stored dict form.

        Raises:
            KeySpecInvalid: If the salt cannot be decoded or the
                parameters differ from the compiled constants.
        """
        try:
            fields = dict(data)
            fields["salt"] = decode_bytes(fields["salt"])
            header = cls(**fields)
        except (KeyError, ValueError, ValidationError) as err:
            raise KeySpecInvalid(f"Invalid vault header: {err}") from err
        logger.debug(
            "Loaded vault header: kdf=%s iterations=%d salt_length=%d",
            header.kdf, header.iterations, len(header.salt),
        )
        return header

    @classmethod
    def from_json(cls, data: bytes | str) -> "VaultHeader":
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise KeySpecInvalid(f"Invalid vault header: {err}") from err
        if not isinstance(parsed, dict):
            raise KeySpecInvalid("Invalid vault header: expected a JSON object")
        return cls.from_dict(parsed)
