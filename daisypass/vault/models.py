"""
Vault Models — Key material wrapper and the records handed to storage.

- ``DerivedKey``: owns the 256-bit vault key in a buffer it can zero.
- ``EncryptedSecret``: immutable (ciphertext, iv) pair.
- ``SecretEntry``: non-secret metadata plus one ``EncryptedSecret``.

Security Note:
    ``DerivedKey`` never appears in a repr and is never serialized.
    The records below carry no key material.
"""
import hmac
from typing import Any

import orjson
from pydantic import BaseModel, Field, field_validator

from .config import KEY_LENGTH, decode_bytes, encode_bytes
from .errors import DecryptionFailed, InvalidKey

_MAX_LABEL_LENGTH = 255


class DerivedKey:
    """256-bit vault key, exclusively owned by this wrapper.

    The key lives in a private ``bytearray``; callers get a read-only
    ``view()`` or an explicit ``export()`` copy. ``wipe()`` overwrites the
    buffer with zeros, after which the key can no longer be used.
    Can be used as a context manager that wipes on exit.
    """

    __slots__ = ("_material", "_wiped")

    def __init__(self, material: bytes | bytearray | memoryview):
        if not isinstance(material, (bytes, bytearray, memoryview)):
            raise InvalidKey("Key material must be a bytes-like object")
        if len(material) == 0:
            raise InvalidKey("Key material cannot be empty")
        if len(material) != KEY_LENGTH:
            raise InvalidKey(
                f"Key material must be exactly {KEY_LENGTH} bytes, "
                f"got {len(material)}"
            )
        self._material = bytearray(material)
        self._wiped = False

    @property
    def wiped(self) -> bool:
        return self._wiped

    def view(self) -> memoryview:
        """Return a read-only view of the key bytes.

        Raises:
            InvalidKey: If the key has been wiped.
        """
        if self._wiped:
            raise InvalidKey("Key material has been wiped")
        return memoryview(self._material).toreadonly()

    def export(self) -> bytes:
        """Return an immutable copy of the key. The copy cannot be wiped."""
        return bytes(self.view())

    def wipe(self) -> None:
        """Overwrite the key material with zeros."""
        for i in range(len(self._material)):
            self._material[i] = 0
        self._wiped = True

    def __len__(self) -> int:
        return len(self._material)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DerivedKey):
            return NotImplemented
        if self._wiped or other._wiped:
            return False
        return hmac.compare_digest(self._material, other._material)

    __hash__ = None  # mutable (wipe), so not hashable

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else "active"
        return f"<DerivedKey [{len(self._material) * 8}-bit, {state}]>"

    def __enter__(self) -> "DerivedKey":
        return self

    def __exit__(self, *exc_info) -> None:
        self.wipe()


class EncryptedSecret(BaseModel):
    """Ciphertext and the IV that produced it.

    Only meaningful together with the key that produced it. Two encryptions
    of the same plaintext under the same key never compare equal.
    """

    ciphertext: bytes = Field(repr=False)
    iv: bytes = Field(repr=False)

    model_config = {"frozen": True, "strict": True}

    @property
    def ciphertext_b64(self) -> str:
        return encode_bytes(self.ciphertext)

    @property
    def iv_b64(self) -> str:
        return encode_bytes(self.iv)

    @classmethod
    def from_encoded(cls, ciphertext_b64: str, iv_b64: str) -> "EncryptedSecret":
        """Rebuild a secret from its base64 stored form.

        Raises:
            DecryptionFailed: If either field is not valid base64.
        """
        try:
            return cls(
                ciphertext=decode_bytes(ciphertext_b64),
                iv=decode_bytes(iv_b64),
            )
        except ValueError as err:
            raise DecryptionFailed(f"Unreadable encrypted secret: {err}") from err

    def to_dict(self) -> dict[str, str]:
        return {"ciphertext": self.ciphertext_b64, "iv": self.iv_b64}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EncryptedSecret":
        if not isinstance(data, dict):
            raise DecryptionFailed(
                f"Unreadable encrypted secret: expected a mapping, "
                f"got {type(data).__name__}"
            )
        try:
            return cls.from_encoded(data["ciphertext"], data["iv"])
        except KeyError as err:
            raise DecryptionFailed(
                f"Unreadable encrypted secret: missing field {err}"
            ) from err

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_json(cls, data: bytes | str) -> "EncryptedSecret":
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise DecryptionFailed(f"Unreadable encrypted secret: {err}") from err
        if not isinstance(parsed, dict):
            raise DecryptionFailed(
                "Unreadable encrypted secret: expected a JSON object"
            )
        return cls.from_dict(parsed)


class SecretEntry(BaseModel):
    """A stored secret with its non-secret metadata.

    The metadata is never inspected by the vault engine. Fields are
    re-validated on assignment.
    """

    label: str
    secret: EncryptedSecret
    url: str | None = None
    username: str | None = None
    notes: str | None = None

    model_config = {"validate_assignment": True}

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        """Label is required, trimmed, at most 255 characters."""
        v = v.strip()
        if not v:
            raise ValueError("Entry label cannot be empty")
        if len(v) > _MAX_LABEL_LENGTH:
            raise ValueError(
                f"Entry label cannot exceed {_MAX_LABEL_LENGTH} characters"
            )
        return v

    def replace_secret(self, secret: EncryptedSecret) -> None:
        """Swap in a newly encrypted secret, e.g. after a password change."""
        self.secret = secret

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "url": self.url,
            "username": self.username,
            "notes": self.notes,
            "secret": self.secret.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SecretEntry":
        """Rebuild an entry from its stored dict form.

        Raises:
            DecryptionFailed: If the embedded secret is unreadable.
            pydantic.ValidationError: If the metadata is invalid.
        """
        if not isinstance(data, dict):
            raise DecryptionFailed(
                f"Unreadable entry: expected a mapping, got {type(data).__name__}"
            )
        if "secret" not in data:
            raise DecryptionFailed("Unreadable entry: missing secret")
        secret = EncryptedSecret.from_dict(data["secret"])
        return cls(
            label=data.get("label", ""),
            secret=secret,
            url=data.get("url"),
            username=data.get("username"),
            notes=data.get("notes"),
        )

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_json(cls, data: bytes | str) -> "SecretEntry":
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise DecryptionFailed(f"Unreadable entry: {err}") from err
        return cls.from_dict(parsed)
