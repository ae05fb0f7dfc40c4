"""
User Service

Registration, login, self-service profile management and user
administration.

Self-protection: an admin may not delete, deactivate or toggle the status
of their own account through the administrative operations. The
self-service operations (register, login, update_profile) are exempt.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import case, delete, func, select
from sqlalchemy.orm import Session, undefer

from bookstore.config import get_settings
from bookstore.errors import (
    AuthenticationRequired,
    DuplicateKey,
    InvalidOperation,
    NotFound,
    operation,
)
from bookstore.models import User, UserRole
from bookstore.schemas.user import (
    AdminUserUpdate,
    BulkUserUpdate,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    UserCreate,
    UserFilter,
    UserRegister,
)
from bookstore.services.auth import (
    Identity,
    require_admin,
    require_authenticated,
    require_owner_or_admin,
)
from bookstore.services.filters import (
    USER_SORT_FIELDS,
    apply_user_filters,
    resolve_sort,
    user_substring_search,
)
from bookstore.services.pagination import ADMIN_PAGE_SIZE, Page, PageRequest, paginate
from bookstore.services.payloads import coerce, column_values
from bookstore.services.security import create_access_token, hash_password, verify_password
from bookstore.utils.dates import utc_now

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
EMAIL_TAKEN = "User with this email already exists"


@dataclass(frozen=True)
class AuthResult:
    """Token plus the user it was issued for."""

    token: str
    user: User
    expires_in: str


@dataclass(frozen=True)
class UserStats:
    total_users: int
    active_users: int
    inactive_users: int
    verified_users: int
    unverified_users: int
    customers: int
    admins: int
    new_users_this_month: int


# =============================================================================
# Shared helpers
# =============================================================================

def load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User")
    return user


def find_by_email(db: Session, email: str, with_password: bool = False) -> User | None:
    stmt = select(User).where(func.lower(User.email) == email.strip().lower())
    if with_password:
        stmt = stmt.options(undefer(User.password_hash))
    return db.execute(stmt).scalar_one_or_none()


def issue_token(user: User) -> AuthResult:
    return AuthResult(
        token=create_access_token(user.id),
        user=user,
        expires_in=get_settings().token_lifetime_label,
    )


def _new_user(data: dict) -> User:
    password = data.pop("password")
    return User(password_hash=hash_password(password), **data)


def _protect_self(identity: Identity, user_id: int, message: str) -> None:
    if identity.id == user_id:
        raise InvalidOperation(message)


def start_of_month(now: datetime | None = None) -> datetime:
    now = now or utc_now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


# =============================================================================
# Queries
# =============================================================================

@operation("Error fetching user profile")
def me(db: Session, identity: Identity | None) -> User:
    identity = require_authenticated(identity)
    return load_user(db, identity.id)


@operation("Error fetching users")
def list_users(
    db: Session,
    identity: Identity | None,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
    filters: UserFilter | dict | None = None,
    search: str | None = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> Page[User]:
    require_admin(identity)
    request = PageRequest(page, limit)
    stmt = apply_user_filters(select(User), coerce(UserFilter, filters))
    condition = user_substring_search(search)
    if condition is not None:
        stmt = stmt.where(condition)
    order = resolve_sort(USER_SORT_FIELDS, sort_by, sort_order, User.created_at, User.id)
    return paginate(db, stmt, request, order)


@operation("Error fetching user")
def get_user(db: Session, identity: Identity | None, user_id: int) -> User:
    require_owner_or_admin(identity, user_id)
    return load_user(db, user_id)


@operation("Error fetching user stats")
def user_stats(db: Session, identity: Identity | None) -> UserStats:
    require_admin(identity)
    row = db.execute(
        select(
            func.count(User.id),
            func.count(case((User.is_active.is_(True), 1))),
            func.count(case((User.is_email_verified.is_(True), 1))),
            func.count(case((User.role == UserRole.CUSTOMER.value, 1))),
            func.count(case((User.role == UserRole.ADMIN.value, 1))),
            func.count(case((User.created_at >= start_of_month(), 1))),
        )
    ).one()
    total, active, verified, customers, admins, new_this_month = (value or 0 for value in row)
    return UserStats(
        total_users=total,
        active_users=active,
        inactive_users=total - active,
        verified_users=verified,
        unverified_users=total - verified,
        customers=customers,
        admins=admins,
        new_users_this_month=new_this_month,
    )


# =============================================================================
# Authentication
# =============================================================================

@operation("Registration failed")
def register(db: Session, payload: UserRegister | dict) -> AuthResult:
    """Create a customer account and log it in."""
    data = column_values(coerce(UserRegister, payload))
    if find_by_email(db, data["email"]) is not None:
        raise DuplicateKey("email", EMAIL_TAKEN)

    user = _new_user(data)
    user.role = UserRole.CUSTOMER.value
    db.add(user)
    db.commit()
    logger.info(f"User registered: id={user.id}")
    return issue_token(user)


@operation("Login failed")
def login(db: Session, payload: LoginRequest | dict) -> AuthResult:
    """
    Verify credentials and issue a token.

    A deactivated account is reported before the password is checked.
    """
    credentials = coerce(LoginRequest, payload)
    user = find_by_email(db, credentials.email, with_password=True)
    if user is None:
        raise AuthenticationRequired(INVALID_CREDENTIALS)
    if not user.is_active:
        raise InvalidOperation("Account is deactivated. Please contact support.")
    if not verify_password(credentials.password, user.password_hash):
        raise AuthenticationRequired(INVALID_CREDENTIALS)

    user.last_login = utc_now()
    db.commit()
    logger.info(f"User logged in: id={user.id}")
    return issue_token(user)


def logout() -> bool:
    """Tokens are stateless; the client simply discards its copy."""
    return True


# =============================================================================
# Self-service
# =============================================================================

@operation("Error updating profile")
def update_profile(db: Session, identity: Identity | None, payload: ProfileUpdate | dict) -> User:
    identity = require_authenticated(identity)
    data = column_values(coerce(ProfileUpdate, payload), exclude_unset=True)
    user = load_user(db, identity.id)
    for key, value in data.items():
        setattr(user, key, value)
    db.commit()
    return user


@operation("Error changing password")
def change_password(db: Session, identity: Identity | None, payload: PasswordChange | dict) -> bool:
    identity = require_authenticated(identity)
    change = coerce(PasswordChange, payload)

    stmt = select(User).where(User.id == identity.id).options(undefer(User.password_hash))
    user = db.execute(stmt).scalar_one_or_none()
    if user is None:
        raise NotFound("User")
    if not verify_password(change.current_password, user.password_hash):
        raise InvalidOperation("Current password is incorrect")

    user.password_hash = hash_password(change.new_password)
    db.commit()
    logger.info(f"Password changed for user id={user.id}")
    return True


# =============================================================================
# Administration
# =============================================================================

@operation("Error creating user")
def create_user(db: Session, identity: Identity | None, payload: UserCreate | dict) -> User:
    require_admin(identity)
    data = column_values(coerce(UserCreate, payload))
    if find_by_email(db, data["email"]) is not None:
        raise DuplicateKey("email", EMAIL_TAKEN)

    user = _new_user(data)
    db.add(user)
    db.commit()
    logger.info(f"User created by admin {identity.id}: id={user.id}")
    return user


@operation("Error updating user")
def update_user(
    db: Session,
    identity: Identity | None,
    user_id: int,
    payload: AdminUserUpdate | dict,
) -> User:
    identity = require_admin(identity)
    data = column_values(coerce(AdminUserUpdate, payload), exclude_unset=True)

    if data.get("email"):
        existing = find_by_email(db, data["email"])
        if existing is not None and existing.id != user_id:
            raise DuplicateKey("email")
    if data.get("is_active") is False:
        _protect_self(identity, user_id, "Cannot deactivate your own account")

    user = load_user(db, user_id)
    for key, value in data.items():
        setattr(user, key, value)
    db.commit()
    return user


@operation("Error deleting user")
def delete_user(db: Session, identity: Identity | None, user_id: int) -> bool:
    identity = require_admin(identity)
    _protect_self(identity, user_id, "Cannot delete your own account")
    user = load_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info(f"User deleted by admin {identity.id}: id={user_id}")
    return True


@operation("Error toggling user status")
def toggle_user_status(db: Session, identity: Identity | None, user_id: int) -> User:
    identity = require_admin(identity)
    _protect_self(identity, user_id, "Cannot change your own account status")
    user = load_user(db, user_id)
    user.is_active = not user.is_active
    db.commit()
    return user


@operation("Error bulk deleting users")
def bulk_delete_users(db: Session, identity: Identity | None, ids: list[int]) -> bool:
    identity = require_admin(identity)
    if identity.id in ids:
        raise InvalidOperation("Cannot delete your own account")
    db.execute(delete(User).where(User.id.in_(ids)))
    db.commit()
    logger.info(f"Bulk deleted users {ids} by admin {identity.id}")
    return True


@operation("Error bulk updating users")
def bulk_update_users(
    db: Session,
    identity: Identity | None,
    ids: list[int],
    payload: BulkUserUpdate | dict,
) -> list[User]:
    identity = require_admin(identity)
    if isinstance(payload, dict) and "email" in payload:
        raise InvalidOperation("Email cannot be changed in a bulk update")
    data = column_values(coerce(BulkUserUpdate, payload), exclude_unset=True)
    if data.get("is_active") is False and identity.id in ids:
        raise InvalidOperation("Cannot deactivate your own account")

    stmt = select(User).where(User.id.in_(ids)).order_by(User.id)
    users = list(db.execute(stmt).scalars().all())
    for user in users:
        for key, value in data.items():
            setattr(user, key, value)
    db.commit()
    return users
