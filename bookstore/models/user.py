"""
User Model

Customers and administrators share one table; `role` tells them apart.

The password hash is a deferred column: it is not loaded by ordinary
queries and only fetched when login or change_password touch it.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Date, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from bookstore.database import Base
from bookstore.utils.dates import utc_now


class UserRole(str, Enum):
    """
    Roles supported by the system.

    - CUSTOMER: default for self-registration
    - ADMIN: full catalog and user management
    """
    CUSTOMER = "customer"
    ADMIN = "admin"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


ADDRESS_PARTS = ("street", "city", "state", "zipCode", "country")


class User(Base):
    """
    User model representing registered accounts.

    Table: users

    Example:
        user = User(
            name="Jane Doe",
            email="jane@example.com",
            password_hash=hash_password("secret1"),
        )
    """

    __tablename__ = "users"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Always stored lowercase so lookups can compare case-insensitively
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Login email (lowercase)"
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        deferred=True,
        comment="Bcrypt password hash"
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.CUSTOMER.value,
        nullable=False,
        comment="customer or admin"
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # {"street", "city", "state", "zipCode", "country"}
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    # {"url", "publicId"}
    avatar: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # -------------------------------------------------------------------------
    # Account Status
    # -------------------------------------------------------------------------
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        index=True,
        nullable=False,
        comment="When the user registered"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def full_address(self) -> str:
        """Comma-joined non-empty address parts."""
        if not self.address:
            return ""
        parts = [self.address.get(key) for key in ADDRESS_PARTS]
        return ", ".join(str(part) for part in parts if part)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
