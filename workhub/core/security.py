"""
Security utilities for authentication and authorization
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import argon2
import bcrypt
from jose import JWTError, jwt
from passlib.context import CryptContext

from workhub.core.config import settings

logger = logging.getLogger(__name__)

_hasher = argon2.PasswordHasher()

# Scheme detection only; hashing and verification call argon2 and bcrypt directly
_schemes = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """Hash a password with argon2"""
    return _hasher.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash (argon2, or bcrypt for imported accounts)"""
    if not hashed_password:
        return False

    scheme = _schemes.identify(hashed_password)
    if scheme == "argon2":
        try:
            return _hasher.verify(hashed_password, plain_password)
        except argon2.exceptions.VerificationError:
            return False
        except argon2.exceptions.InvalidHashError:
            logger.warning("Stored argon2 hash is malformed")
            return False

    if scheme != "bcrypt":
        logger.warning("Stored password hash has an unknown format")
        return False

    # Accounts seeded by the previous system carry bcrypt ($2a$/$2b$) hashes
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        logger.warning("Stored password hash has an unknown format")
        return False


def validate_new_password(password: Optional[str]) -> Optional[str]:
    """
    Check a new password against the password rules

    Returns:
        Error message, or None if the password is acceptable
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    return None


def create_access_token(data: Dict, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token"""
    to_encode = data.copy()

    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def decode_token(token: str) -> Dict:
    """Decode and verify a JWT token"""
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise ValueError("Invalid token")
