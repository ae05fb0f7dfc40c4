"""
Tests for the user service: registration, login, profile management and
user administration with self-protection.
"""

import pytest

from bookstore.errors import (
    AccessDenied,
    AuthenticationRequired,
    DuplicateKey,
    InvalidOperation,
    ValidationFailed,
)
from bookstore.models import User
from bookstore.services import users as user_service
from bookstore.services.security import decode_token, verify_password


class TestRegisterAndLogin:
    def test_register_then_login(self, db_session):
        registered = user_service.register(
            db_session, {"name": "A", "email": "a@x.com", "password": "secret1"}
        )
        assert registered.user.role == "customer"
        assert registered.expires_in == "7 days"
        assert decode_token(registered.token)["sub"] == str(registered.user.id)

        logged_in = user_service.login(db_session, {"email": "a@x.com", "password": "secret1"})
        assert logged_in.token
        assert logged_in.user.role == "customer"
        assert logged_in.user.last_login is not None

    def test_wrong_password(self, db_session):
        user_service.register(db_session, {"name": "A", "email": "a@x.com", "password": "secret1"})

        with pytest.raises(AuthenticationRequired) as exc_info:
            user_service.login(db_session, {"email": "a@x.com", "password": "wrong"})
        assert exc_info.value.message == "Login failed: Invalid email or password"

    def test_unknown_email(self, db_session):
        with pytest.raises(AuthenticationRequired) as exc_info:
            user_service.login(db_session, {"email": "nobody@x.com", "password": "secret1"})
        assert exc_info.value.message == "Login failed: Invalid email or password"

    def test_email_is_case_insensitive(self, db_session):
        user_service.register(db_session, {"name": "A", "email": "Mixed@X.com", "password": "secret1"})

        result = user_service.login(db_session, {"email": "MIXED@x.COM", "password": "secret1"})
        assert result.user.email == "mixed@x.com"

    def test_deactivated_account(self, db_session, customer_user):
        customer_user.is_active = False
        db_session.commit()

        with pytest.raises(InvalidOperation) as exc_info:
            user_service.login(db_session, {"email": "customer@example.com", "password": "secret1"})
        assert exc_info.value.message == "Login failed: Account is deactivated. Please contact support."

    def test_duplicate_registration(self, db_session, customer_user):
        with pytest.raises(DuplicateKey) as exc_info:
            user_service.register(
                db_session, {"name": "Again", "email": "customer@example.com", "password": "secret1"}
            )
        assert exc_info.value.message == "User with this email already exists"

    def test_short_password(self, db_session):
        with pytest.raises(ValidationFailed) as exc_info:
            user_service.register(db_session, {"name": "A", "email": "a@x.com", "password": "12345"})
        assert exc_info.value.message.startswith("Registration failed: password")

    def test_register_ignores_role(self, db_session):
        result = user_service.register(
            db_session, {"name": "A", "email": "a@x.com", "password": "secret1", "role": "admin"}
        )
        assert result.user.role == "customer"

    def test_logout(self):
        assert user_service.logout() is True


class TestSelfService:
    def test_me(self, db_session, customer):
        assert user_service.me(db_session, customer).email == "customer@example.com"

    def test_me_anonymous(self, db_session):
        with pytest.raises(AuthenticationRequired) as exc_info:
            user_service.me(db_session, None)
        assert exc_info.value.message == "Error fetching user profile: Authentication required. Please log in."

    def test_update_profile(self, db_session, customer):
        user = user_service.update_profile(
            db_session,
            customer,
            {"phone": "0123456789", "address": {"street": "1 Main St", "city": "Hanoi", "zip_code": "10000"}},
        )
        assert user.phone == "0123456789"
        assert user.address["zipCode"] == "10000"
        assert user.full_address == "1 Main St, Hanoi, 10000"

    def test_change_password(self, db_session, customer):
        user_service.change_password(
            db_session,
            customer,
            {"current_password": "secret1", "new_password": "secret2", "confirm_password": "secret2"},
        )
        user = user_service.find_by_email(db_session, "customer@example.com", with_password=True)
        assert verify_password("secret2", user.password_hash)

    def test_change_password_wrong_current(self, db_session, customer):
        with pytest.raises(InvalidOperation) as exc_info:
            user_service.change_password(
                db_session,
                customer,
                {"current_password": "nope", "new_password": "secret2", "confirm_password": "secret2"},
            )
        assert exc_info.value.message == "Error changing password: Current password is incorrect"

    def test_change_password_mismatch(self, db_session, customer):
        with pytest.raises(ValidationFailed) as exc_info:
            user_service.change_password(
                db_session,
                customer,
                {"current_password": "secret1", "new_password": "secret2", "confirm_password": "secret3"},
            )
        assert "New password and confirm password do not match" in exc_info.value.message


class TestAdministration:
    def test_list_users_requires_admin(self, db_session, customer):
        with pytest.raises(AccessDenied):
            user_service.list_users(db_session, customer)

    def test_list_users_sorted(self, db_session, admin, customer_user):
        page = user_service.list_users(db_session, admin, sort_by="email", sort_order="asc")
        assert [u.email for u in page.items] == ["admin@example.com", "customer@example.com"]

    def test_list_users_search(self, db_session, admin, customer_user):
        page = user_service.list_users(db_session, admin, search="CUSTOMER")
        assert [u.email for u in page.items] == ["customer@example.com"]

    def test_get_user_owner_or_admin(self, db_session, admin, customer, admin_user, customer_user):
        assert user_service.get_user(db_session, customer, customer_user.id).id == customer_user.id
        assert user_service.get_user(db_session, admin, customer_user.id).id == customer_user.id
        with pytest.raises(AccessDenied):
            user_service.get_user(db_session, customer, admin_user.id)

    def test_create_user_with_role(self, db_session, admin):
        user = user_service.create_user(
            db_session, admin, {"name": "Staff", "email": "staff@example.com", "password": "secret1", "role": "admin"}
        )
        assert user.role == "admin"

    def test_update_user_email_taken(self, db_session, admin, customer_user):
        with pytest.raises(DuplicateKey) as exc_info:
            user_service.update_user(db_session, admin, customer_user.id, {"email": "admin@example.com"})
        assert exc_info.value.message == "Email already exists"

    def test_cannot_deactivate_self(self, db_session, admin):
        with pytest.raises(InvalidOperation):
            user_service.update_user(db_session, admin, admin.id, {"is_active": False})

    def test_cannot_delete_self(self, db_session, admin):
        with pytest.raises(InvalidOperation) as exc_info:
            user_service.delete_user(db_session, admin, admin.id)
        assert exc_info.value.message == "Error deleting user: Cannot delete your own account"
        assert db_session.get(User, admin.id) is not None

    def test_cannot_toggle_self(self, db_session, admin):
        with pytest.raises(InvalidOperation) as exc_info:
            user_service.toggle_user_status(db_session, admin, admin.id)
        assert exc_info.value.message == "Error toggling user status: Cannot change your own account status"

    def test_cannot_bulk_delete_self(self, db_session, admin, customer_user):
        with pytest.raises(InvalidOperation):
            user_service.bulk_delete_users(db_session, admin, [admin.id, customer_user.id])
        assert db_session.get(User, customer_user.id) is not None

    def test_cannot_bulk_deactivate_self(self, db_session, admin, customer_user):
        with pytest.raises(InvalidOperation):
            user_service.bulk_update_users(db_session, admin, [admin.id, customer_user.id], {"is_active": False})

    def test_bulk_update_rejects_email(self, db_session, admin, customer_user):
        with pytest.raises(InvalidOperation):
            user_service.bulk_update_users(db_session, admin, [customer_user.id], {"email": "x@example.com"})

    def test_toggle_and_delete_other_user(self, db_session, admin, customer_user):
        assert user_service.toggle_user_status(db_session, admin, customer_user.id).is_active is False
        assert user_service.delete_user(db_session, admin, customer_user.id) is True
        assert db_session.get(User, customer_user.id) is None

    def test_user_stats(self, db_session, admin, customer_user):
        stats = user_service.user_stats(db_session, admin)
        assert stats.total_users == 2
        assert stats.admins == 1
        assert stats.customers == 1
        assert stats.unverified_users == 2
        assert stats.new_users_this_month == 2
