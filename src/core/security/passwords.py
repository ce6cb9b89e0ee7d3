from __future__ import annotations

import base64
import hashlib
import re

import bcrypt

DEFAULT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
PASSWORD_SYMBOLS = "@$!%*?&"

_ALLOWED_PASSWORD = re.compile(rf"^[A-Za-z\d{re.escape(PASSWORD_SYMBOLS)}]+$")
_PASSWORD_CLASSES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"\d"),
    re.compile(rf"[{re.escape(PASSWORD_SYMBOLS)}]"),
)


def validate_password_strength(plaintext: str) -> bool:
    if not MIN_PASSWORD_LENGTH <= len(plaintext) <= MAX_PASSWORD_LENGTH:
        return False
    if not _ALLOWED_PASSWORD.match(plaintext):
        return False
    return all(pattern.search(plaintext) for pattern in _PASSWORD_CLASSES)


# bcrypt ignores input past 72 bytes, so it is fed a fixed-length SHA-256 digest.
def _encode(plaintext: str) -> bytes:
    return base64.b64encode(hashlib.sha256(plaintext.encode("utf-8")).digest())


class PasswordHasher:
    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plaintext: str) -> str:
        return bcrypt.hashpw(_encode(plaintext), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(plaintext), digest.encode("utf-8"))
        except ValueError:
            return False

    @property
    def dummy_hash(self) -> str:
        """Digest compared against when the account does not exist.

        Running bcrypt on that path keeps unknown-email and wrong-password
        logins at the same cost.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("timing-equalization-Placeholder1!")
        return self._dummy_hash
