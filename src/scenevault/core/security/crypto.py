"""Cryptographic utilities - password hashing, session tokens, and token hashing."""

import secrets
from hashlib import sha256

import argon2

from src.scenevault.core.config import get_settings

SESSION_TOKEN_BYTES = 32


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


def generate_session_token() -> str:
    """Return a fresh unguessable bearer token (64 hex chars)."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def _create_password_hasher() -> argon2.PasswordHasher:
    """Create password hasher with settings from config."""
    settings = get_settings()
    return argon2.PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


_password_hasher = _create_password_hasher()

# Verified against when the email is unknown, so a miss costs as much as a hit
DUMMY_PASSWORD_HASH = _password_hasher.hash(secrets.token_hex(16))


def hash_password(password: str) -> str:
    """Hash password using Argon2id. The salt is embedded in the result."""
    return _password_hasher.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash. Returns False on any error."""
    try:
        _password_hasher.verify(hashed, password)
        return True
    except (argon2.exceptions.VerificationError, argon2.exceptions.InvalidHashError):
        return False
