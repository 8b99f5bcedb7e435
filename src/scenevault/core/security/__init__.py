"""Security utilities - crypto and validators.

Re-exports all security-related functions for convenience.
"""

from src.scenevault.core.security.crypto import (
    DUMMY_PASSWORD_HASH,
    generate_session_token,
    hash_password,
    hash_token,
    verify_password,
)
from src.scenevault.core.security.headers import SecurityHeadersMiddleware
from src.scenevault.core.security.validators import (
    PROJECT_UID_REGEX,
    is_valid_project_uid,
    validate_project_uid,
    validate_storage_segment,
)

__all__ = [
    # Crypto
    "DUMMY_PASSWORD_HASH",
    "generate_session_token",
    "hash_password",
    "hash_token",
    "verify_password",
    # Headers
    "SecurityHeadersMiddleware",
    # Validators
    "PROJECT_UID_REGEX",
    "is_valid_project_uid",
    "validate_project_uid",
    "validate_storage_segment",
]
