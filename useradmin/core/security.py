"""
Security utilities for authentication and password handling.

This module provides:
- Salted password hashing with Argon2id (explicit per-user salt)
- Password strength validation
- JWT access token generation and validation
"""

import hmac
import logging
import re
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from argon2.low_level import Type, hash_secret_raw
from jose import JWTError, jwt

from useradmin.core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# Password Hashing with Argon2id
# =============================================================================
# Users store the hash and the salt in separate columns, so the raw Argon2id
# primitive is used instead of PasswordHasher's self-describing encoded form.
# Both values are stored hex-encoded.
# =============================================================================


def generate_salt() -> str:
    """
    Generate a random salt for password hashing.

    Returns:
        Hex-encoded random salt (settings.password_salt_bytes bytes)
    """
    return secrets.token_hex(settings.password_salt_bytes)


def hash_password(password: str, salt: str) -> str:
    """
    Hash a password with Argon2id using the given salt.

    Args:
        password: Plain text password to hash
        salt: Hex-encoded salt from generate_salt()

    Returns:
        Hex-encoded Argon2id digest

    Example:
        >>> salt = generate_salt()
        >>> digest = hash_password("Secret123", salt)
    """
    digest = hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=bytes.fromhex(salt),
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
        hash_len=settings.password_hash_len,
        type=Type.ID,
    )
    return digest.hex()


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    """
    Verify a password against a stored hash and salt.

    Args:
        password: Plain text password to verify
        password_hash: Stored hex-encoded digest
        salt: Stored hex-encoded salt

    Returns:
        True if password matches, False otherwise (including malformed salt)
    """
    try:
        candidate = hash_password(password, salt)
    except ValueError:
        logger.warning("Password verification failed: malformed salt")
        return False
    return hmac.compare_digest(candidate, password_hash)


def validate_password_strength(password: str) -> tuple[bool, str | None]:
    """
    Validate password strength against security requirements.

    Requirements:
    - Minimum 8 characters
    - At least 1 digit
    - At least 1 uppercase letter

    Args:
        password: Password to validate

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_password_strength("weak")
        (False, "Password must be at least 8 characters long")
        >>> validate_password_strength("Strong123")
        (True, None)
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one digit"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    return True, None


# =============================================================================
# JWT Token Management
# =============================================================================

ALGORITHM = "HS256"

TOKEN_TYPE_ACCESS = "access"


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to encode in the token.
              Must contain 'sub' (the principal's user id)
        expires_delta: Optional custom expiration time. If None,
                      uses settings.access_token_expire_minutes

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": TOKEN_TYPE_ACCESS,
            "jti": str(uuid.uuid4()),
        }
    )

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Dictionary of token claims

    Raises:
        JWTError: If token is invalid, expired, or malformed
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise


def verify_token_type(token_data: dict[str, Any], expected_type: str) -> bool:
    """Check the 'type' claim of decoded token data."""
    return token_data.get("type") == expected_type
