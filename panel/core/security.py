"""Password hashing, opaque identifiers and signed cookie tokens."""

import base64
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from panel.core.config import settings

# Random bytes behind an account id: 120 bits, about the same as a UUID v4.
ACCOUNT_ID_BYTES = 15
SESSION_ID_BYTES = 20


# Argon2id with the configured cost; the encoded hash carries its own parameters.
_password_hasher = PasswordHasher(
    time_cost=settings.ARGON2_TIME_COST,
    memory_cost=settings.ARGON2_MEMORY_COST,
    parallelism=settings.ARGON2_PARALLELISM,
    hash_len=settings.ARGON2_HASH_LEN,
)


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    try:
        return _password_hasher.verify(hashed, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def generate_account_id() -> str:
    """Return a new lowercase base32 account id (24 chars), not derived from user input."""
    raw = secrets.token_bytes(ACCOUNT_ID_BYTES)
    return base64.b32encode(raw).decode("ascii").lower()


def generate_session_id() -> str:
    return secrets.token_hex(SESSION_ID_BYTES)


def _encode(payload: dict[str, Any]) -> str:
    secret = settings.SESSION_SECRET.get_secret_value()
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _decode(token: str) -> dict[str, Any]:
    secret = settings.SESSION_SECRET.get_secret_value()
    return jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])


def create_session_token(session_id: str, expires_at: datetime) -> str:
    """Sign the session id for the session cookie; the token expires with the session."""
    payload: dict[str, Any] = {
        "sub": session_id,
        "exp": expires_at,
        "iat": datetime.now(UTC),
    }
    return _encode(payload)


def decode_session_token(token: str) -> str:
    """
    Return the session id carried by a session cookie token.
    Raises jwt.PyJWTError on invalid or expired token.
    """
    payload = _decode(token)
    sub = payload.get("sub")
    if not sub or not isinstance(sub, str):
        raise jwt.InvalidTokenError("Session token has no subject")
    return sub


def create_flash_token(flash_type: str, message: str) -> str:
    """Sign a one-shot notification for the flash cookie."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "type": flash_type,
        "message": message,
        "exp": now + timedelta(seconds=settings.FLASH_EXPIRE_SECONDS),
        "iat": now,
    }
    return _encode(payload)


def decode_flash_token(token: str) -> dict[str, Any]:
    """Decode a flash cookie token. Raises jwt.PyJWTError when tampered or stale."""
    return _decode(token)
