"""Password hashing built on werkzeug's salted key-derivation helpers."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from .errors import HashingError

DEFAULT_METHOD = "scrypt"


class PasswordHasher:
    """Hash and verify passwords.

    Each hash embeds its method and a fresh random salt, so hashing the same
    password twice yields different strings. ``verify`` compares in constant
    time and reports a mismatch as ``False``.
    """

    def __init__(self, method: str = DEFAULT_METHOD):
        self.method = method

    def hash(self, password: str) -> str:
        try:
            return generate_password_hash(password, method=self.method)
        except (ValueError, OSError, MemoryError) as exc:
            raise HashingError(f"Password hashing failed: {exc}") from exc

    def verify(self, password: str, password_hash: str | None) -> bool:
        if not password_hash:
            return False
        try:
            return check_password_hash(password_hash, password)
        except ValueError:
            # Unknown or corrupted hash format.
            return False
