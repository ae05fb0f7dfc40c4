"""
GraphQL User Types

Only exposes safe fields: the password hash never leaves the service
layer.
"""

from datetime import date, datetime

import strawberry

from bookstore.graphql.types.common import AddressInput, AddressType, MediaInput, MediaType


@strawberry.type
class UserType:
    """GraphQL type representing a user account."""

    id: int
    name: str
    email: str
    role: str
    phone: str | None = None
    address: AddressType | None = None
    full_address: str = ""
    avatar: MediaType | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    is_active: bool = True
    is_email_verified: bool = False
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@strawberry.type
class AuthPayload:
    """Response type for register and login."""

    token: str
    user: UserType
    expires_in: str


@strawberry.type
class UserConnection:
    """One page of users."""

    users: list[UserType]
    total_count: int
    has_next_page: bool
    has_previous_page: bool
    current_page: int
    total_pages: int


@strawberry.type
class UserStatsType:
    total_users: int
    active_users: int
    inactive_users: int
    verified_users: int
    unverified_users: int
    customers: int
    admins: int
    new_users_this_month: int


@strawberry.input
class RegisterInput:
    name: str
    email: str
    password: str
    phone: str | None = None


@strawberry.input
class LoginInput:
    email: str
    password: str


@strawberry.input
class UpdateProfileInput:
    name: str | None = strawberry.UNSET
    phone: str | None = strawberry.UNSET
    address: AddressInput | None = strawberry.UNSET
    avatar: MediaInput | None = strawberry.UNSET
    date_of_birth: date | None = strawberry.UNSET
    gender: str | None = strawberry.UNSET


@strawberry.input
class ChangePasswordInput:
    current_password: str
    new_password: str
    confirm_password: str


@strawberry.input
class CreateUserInput:
    """Admin-created account."""

    name: str
    email: str
    password: str
    phone: str | None = None
    role: str | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None


@strawberry.input
class AdminUpdateUserInput:
    name: str | None = strawberry.UNSET
    email: str | None = strawberry.UNSET
    phone: str | None = strawberry.UNSET
    address: AddressInput | None = strawberry.UNSET
    avatar: MediaInput | None = strawberry.UNSET
    date_of_birth: date | None = strawberry.UNSET
    gender: str | None = strawberry.UNSET
    role: str | None = strawberry.UNSET
    is_active: bool | None = strawberry.UNSET
    is_email_verified: bool | None = strawberry.UNSET


@strawberry.input
class UserFilterInput:
    role: str | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None
    gender: str | None = None
