"""Password hashing and one-shot token helpers."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a password against a hash. A missing or malformed hash never matches."""
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False


def hash_token(token: str) -> str:
    """Hash a token using SHA256."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_token() -> tuple[str, str]:
    """Create a random token. Returns (plain token for the email link, hash to store)."""
    plain = secrets.token_hex(32)
    return plain, hash_token(plain)


def safe_compare_secrets(provided: str | None, expected: str | None) -> bool:
    """
    Constant-time secret comparison.

    Blank or missing values never match. Inputs of different lengths are
    padded so the comparison still runs over the full expected length.
    """
    if not provided or not expected:
        return False
    provided_bytes = provided.encode()
    expected_bytes = expected.encode()
    width = max(len(provided_bytes), len(expected_bytes))
    same_length = len(provided_bytes) == len(expected_bytes)
    matches = hmac.compare_digest(
        provided_bytes.ljust(width, b"\0"), expected_bytes.ljust(width, b"\0")
    )
    return same_length and matches
