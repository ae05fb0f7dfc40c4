"""
Security Service

Handles password hashing and access token operations.

1. Password hashing with bcrypt (passlib)
2. HS256 JWT issuance and validation (python-jose)

Usage:
    from bookstore.services.security import hash_password, verify_password

    hashed = hash_password("secret1")
    is_valid = verify_password("secret1", hashed)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from bookstore.config import get_settings

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# deprecated="auto" upgrades old hashes when they are next verified
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hash_password("secret1").startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a plain password against a stored bcrypt hash.

    Returns False (never raises) for a missing or malformed hash.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


# -------------------------------------------------------------------------
# Access Tokens
# -------------------------------------------------------------------------
TOKEN_TYPE = "access"


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed access token whose subject is the user id.

    Args:
        user_id: Primary key of the authenticated user
        expires_delta: Optional custom lifetime (defaults to TOKEN_EXPIRE_DAYS)

    Returns:
        Encoded JWT string
    """
    settings = get_settings()
    lifetime = expires_delta or timedelta(days=settings.token_expire_days)
    payload = {
        "sub": str(user_id),
        "type": TOKEN_TYPE,
        "iat": datetime.now(UTC),
        "exp": datetime.now(UTC) + lifetime,
    }
    return jwt.encode(payload, settings.token_secret, algorithm=settings.token_algorithm)


def decode_token(token: str) -> dict | None:
    """
    Decode and validate a token.

    Returns:
        Decoded payload if valid, None if invalid, expired or not an access token
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.token_secret,
            algorithms=[settings.token_algorithm],
        )
    except JWTError as e:
        logger.warning(f"Token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.warning(f"Unexpected token type: {payload.get('type')}")
        return None
    return payload
