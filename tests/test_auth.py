"""
Tests for the auth subsystem: password hashing, tokens, identity
resolution, role gates and the TOKEN_SECRET startup check.
"""

from datetime import timedelta

import pytest
from jose import jwt
from pydantic import ValidationError

from bookstore.config import Settings, get_settings
from bookstore.errors import AccessDenied, AuthenticationRequired
from bookstore.services.auth import (
    Identity,
    extract_token,
    require_admin,
    require_authenticated,
    require_owner_or_admin,
    resolve_identity,
)
from bookstore.services.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("secret1")
        assert hashed != "secret1"
        assert hashed.startswith("$2")

    def test_verify(self):
        hashed = hash_password("secret1")
        assert verify_password("secret1", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_verify_missing_or_malformed_hash(self):
        assert verify_password("secret1", None) is False
        assert verify_password("secret1", "not-a-hash") is False


class TestTokens:
    def test_round_trip(self):
        payload = decode_token(create_access_token(42))
        assert payload["sub"] == "42"
        assert payload["type"] == "access"

    def test_default_lifetime_is_seven_days(self):
        payload = decode_token(create_access_token(1))
        assert payload["exp"] - payload["iat"] == pytest.approx(7 * 24 * 3600, abs=2)

    def test_expired_token(self):
        token = create_access_token(1, expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "1", "type": "access"}, "x" * 40, algorithm="HS256")
        assert decode_token(token) is None

    def test_wrong_type(self):
        settings = get_settings()
        token = jwt.encode({"sub": "1", "type": "refresh"}, settings.token_secret, algorithm="HS256")
        assert decode_token(token) is None


class TestIdentityResolution:
    def test_extract_token(self):
        assert extract_token("Bearer abc") == "abc"
        assert extract_token("abc") == "abc"
        assert extract_token("") is None
        assert extract_token(None) is None

    def test_valid_token(self, db_session, customer_user):
        token = create_access_token(customer_user.id)
        identity = resolve_identity(db_session, f"Bearer {token}")

        assert identity.id == customer_user.id
        assert identity.email == "customer@example.com"
        assert identity.role == "customer"
        assert identity.is_admin is False

    def test_bare_token(self, db_session, admin_user):
        identity = resolve_identity(db_session, create_access_token(admin_user.id))
        assert identity.is_admin is True

    def test_garbage_token(self, db_session):
        assert resolve_identity(db_session, "Bearer not.a.token") is None

    def test_unknown_user(self, db_session):
        assert resolve_identity(db_session, create_access_token(999)) is None

    def test_inactive_user(self, db_session, customer_user):
        customer_user.is_active = False
        db_session.commit()
        assert resolve_identity(db_session, create_access_token(customer_user.id)) is None


class TestGates:
    def make_identity(self, role="customer", user_id=1) -> Identity:
        return Identity(
            id=user_id,
            email="someone@example.com",
            name="Someone",
            role=role,
            is_active=True,
            is_email_verified=False,
        )

    def test_require_authenticated(self):
        with pytest.raises(AuthenticationRequired) as exc_info:
            require_authenticated(None)
        assert exc_info.value.message == "Authentication required. Please log in."

    def test_require_admin_rejects_customer(self):
        with pytest.raises(AccessDenied) as exc_info:
            require_admin(self.make_identity())
        assert exc_info.value.message == "Access denied. Admin privileges required."

    def test_require_admin_rejects_anonymous(self):
        with pytest.raises(AuthenticationRequired):
            require_admin(None)

    def test_owner_or_admin(self):
        owner = self.make_identity(user_id=5)
        assert require_owner_or_admin(owner, 5) is owner
        assert require_owner_or_admin(self.make_identity("admin", 1), 5).is_admin

        with pytest.raises(AccessDenied) as exc_info:
            require_owner_or_admin(owner, 6)
        assert "your own resources" in exc_info.value.message


class TestTokenSecretSetting:
    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(token_secret="too-short")

    def test_placeholder_rejected(self):
        with pytest.raises(ValidationError):
            Settings(token_secret="REPLACE_WITH_A_REAL_SECRET_VALUE_1234567890")

    def test_cors_origins_follow_env(self):
        secret = "s" * 40
        assert Settings(token_secret=secret, env="development").cors_origins == [
            "http://localhost:3000",
            "http://localhost:3001",
        ]
        production = Settings(token_secret=secret, env="production")
        assert production.cors_origins == ["https://your-frontend-domain.com"]
        assert production.expose_error_details is False
