"""
Authentication Service

Turns an Authorization header into an Identity and provides the role
gates every protected operation calls before touching data.

Any failure along the way (no header, bad signature, expired token,
unknown or inactive user) collapses to "no identity": anonymous callers
are rejected by the gates, never by the resolution step.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from bookstore.errors import AccessDenied, AuthenticationRequired
from bookstore.models.user import User, UserRole
from bookstore.services.security import decode_token

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """The caller attached to one request."""

    id: int
    email: str
    name: str
    role: str
    is_active: bool
    is_email_verified: bool
    last_login: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            is_active=user.is_active,
            is_email_verified=user.is_email_verified,
            last_login=user.last_login,
        )


def extract_token(header: Optional[str]) -> Optional[str]:
    """Strip the "Bearer " prefix; a bare token is accepted as-is."""
    if not header:
        return None
    header = header.strip()
    if header.startswith(BEARER_PREFIX):
        header = header[len(BEARER_PREFIX):].strip()
    return header or None


def resolve_identity(db: Session, header: Optional[str]) -> Optional[Identity]:
    """
    Resolve the Authorization header to an Identity.

    Returns:
        Identity for an active user with a valid token, None otherwise
    """
    token = extract_token(header)
    if token is None:
        return None

    payload = decode_token(token)
    if payload is None:
        return None

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.warning("Token subject is not a user id")
        return None

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Token refers to unknown user {user_id}")
        return None
    if not user.is_active:
        logger.info(f"Token presented for deactivated user {user_id}")
        return None

    return Identity.from_user(user)


# =============================================================================
# Gates
# =============================================================================

def require_authenticated(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise AuthenticationRequired()
    return identity


def require_admin(identity: Optional[Identity]) -> Identity:
    identity = require_authenticated(identity)
    if not identity.is_admin:
        raise AccessDenied()
    return identity


def require_owner_or_admin(identity: Optional[Identity], owner_id: int) -> Identity:
    identity = require_authenticated(identity)
    if identity.id != owner_id and not identity.is_admin:
        raise AccessDenied("Access denied. You can only access your own resources.")
    return identity
