"""
User Pydantic Schemas

Schemas:
- UserRegister: self-registration (role is always customer)
- UserCreate: admin-created accounts (role selectable)
- LoginRequest: email + password
- ProfileUpdate: fields a user may change on their own profile
- AdminUserUpdate: fields an admin may change on any account
- BulkUserUpdate: AdminUserUpdate without email
- PasswordChange: current/new/confirm
- UserFilter: sparse listing filter

Emails are normalized to lowercase so that uniqueness and login are
case-insensitive.
"""

from datetime import date

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from bookstore.models.user import Gender, UserRole
from bookstore.schemas.common import AddressSchema, MediaSchema

MIN_PASSWORD_LENGTH = 6


def not_null(v):
    if v is None:
        raise ValueError("cannot be null")
    return v


def lower_email(v: str | None) -> str | None:
    return v.strip().lower() if v else v


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Example payload:
    {
        "name": "Jane Doe",
        "email": "Jane@Example.org",
        "password": "secret1"
    }
    """

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    phone: str | None = Field(default=None, max_length=20)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return lower_email(v)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()


class UserCreate(UserRegister):
    """Admin-created account; the role may be chosen."""

    role: UserRole = UserRole.CUSTOMER
    is_active: bool = True
    is_email_verified: bool = False


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return lower_email(v)


class ProfileUpdate(BaseModel):
    """Self-service profile fields. Email, role and status are not editable here."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    address: AddressSchema | None = None
    avatar: MediaSchema | None = None
    date_of_birth: date | None = None
    gender: Gender | None = None

    @field_validator("name")
    @classmethod
    def reject_null(cls, v):
        return not_null(v)


class AdminUserUpdate(ProfileUpdate):
    email: EmailStr | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None

    @field_validator("email", "role", "is_active", "is_email_verified")
    @classmethod
    def reject_null_admin_fields(cls, v):
        return not_null(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return lower_email(v)


class BulkUserUpdate(ProfileUpdate):
    """Fields that may be applied to many accounts at once (never email)."""

    role: UserRole | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None

    @field_validator("role", "is_active", "is_email_verified")
    @classmethod
    def reject_null_admin_fields(cls, v):
        return not_null(v)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("New password and confirm password do not match")
        return self


class UserFilter(BaseModel):
    role: UserRole | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None
    gender: Gender | None = None
