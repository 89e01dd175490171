"""
Passphrase Validator — Strength rules for the master passphrase.

A passphrase is checked after stripping leading and trailing whitespace.
"""
import string
from typing import Any


class PassphraseValidator:
    """Pure predicate over a candidate master passphrase.

    Rules applied to the trimmed candidate:
    - between ``MIN_LENGTH`` and ``MAX_LENGTH`` characters (inclusive)
    - at least one ASCII letter, one ASCII digit and one special character
    - no character outside letters, digits and ``SPECIAL_CHARACTERS``
    """

    MIN_LENGTH = 12
    MAX_LENGTH = 20
    LETTERS = frozenset(string.ascii_letters)
    DIGITS = frozenset(string.digits)
    SPECIAL_CHARACTERS = frozenset("!@#$%^&*()_+-=[]{}|;:,.<>?/")
    ALLOWED = LETTERS | DIGITS | SPECIAL_CHARACTERS

    def validate(self, candidate: Any) -> bool:
        """Return True if ``candidate`` is an acceptable passphrase.

        Never raises: anything that is not a string is rejected.
        """
        if not isinstance(candidate, str):
            return False
        trimmed = candidate.strip()
        if not self.MIN_LENGTH <= len(trimmed) <= self.MAX_LENGTH:
            return False
        chars = set(trimmed)
        if not chars <= self.ALLOWED:
            return False
        return bool(
            chars & self.LETTERS
            and chars & self.DIGITS
            and chars & self.SPECIAL_CHARACTERS
        )


_default_validator = PassphraseValidator()


def validate_passphrase(candidate: Any) -> bool:
    """Validate ``candidate`` with the default rules."""
    return _default_validator.validate(candidate)
