"""
Tests for AuthService and UserService.
"""

import pytest

from authentication.services import AuthService, UserService
from authentication.tests.factories import DEFAULT_PASSWORD, UserFactory
from core.exceptions import NotFoundError, PermissionDeniedError


@pytest.mark.django_db
class TestAuthServiceRegister:
    """Tests for AuthService.register."""

    def test_register_creates_user(self):
        result = AuthService().register(
            phone_number="+15551230000", name="Alice", password="secret1"
        )

        assert result.success is True
        assert result.data.phone_number == "+15551230000"
        assert result.data.check_password("secret1")

    def test_register_reports_phone_collision(self):
        """
        Registering a taken number fails with PHONE_EXISTS.

        Why it matters: registration intentionally tells the user the number
        is already in use so they can log in instead.
        """
        UserFactory(phone_number="+15551230001")

        result = AuthService().register(
            phone_number="+1 555 123 0001", name="Alice", password="secret1"
        )

        assert result.success is False
        assert result.error == "Phone number already registered"
        assert result.error_code == "PHONE_EXISTS"


@pytest.mark.django_db
class TestAuthServiceLogin:
    """Tests for AuthService.login."""

    def test_login_with_valid_credentials(self, user):
        result = AuthService().login(user.phone_number, DEFAULT_PASSWORD)

        assert result.success is True
        assert result.data == user

    def test_login_messages_do_not_reveal_registration(self, user):
        """
        Unknown number and wrong password produce the same failure.

        Why it matters: a distinguishable message would let anyone probe
        which phone numbers have accounts.
        """
        wrong_password = AuthService().login(user.phone_number, "not-the-password")
        unknown_number = AuthService().login("+19999999999", DEFAULT_PASSWORD)

        assert wrong_password.success is False
        assert unknown_number.success is False
        assert wrong_password.error == unknown_number.error
        assert wrong_password.error_code == unknown_number.error_code == "INVALID_CREDENTIALS"

    def test_login_rejects_deactivated_user(self, deactivated_user):
        result = AuthService().login(deactivated_user.phone_number, DEFAULT_PASSWORD)

        assert result.success is False

    def test_issue_tokens_returns_pair(self, user):
        tokens = AuthService.issue_tokens(user)

        assert set(tokens) == {"access", "refresh"}


@pytest.mark.django_db
class TestUserService:
    """Tests for profile reads, updates and search."""

    def test_get_profile_missing_user_raises(self):
        with pytest.raises(NotFoundError):
            UserService().get_profile(999999)

    def test_update_profile_changes_allowed_fields(self, user):
        updated = UserService().update_profile(
            user_id=user.id,
            actor_id=user.id,
            data={"name": "Alice Updated", "about": "busy"},
        )

        updated.refresh_from_db()
        assert updated.name == "Alice Updated"
        assert updated.about == "busy"

    def test_update_profile_of_someone_else_is_denied(self, user, other_user):
        """
        Why it matters: any authenticated user can read profiles, but only
        the owner may change one.
        """
        with pytest.raises(PermissionDeniedError):
            UserService().update_profile(
                user_id=other_user.id, actor_id=user.id, data={"name": "Hacked"}
            )

    def test_update_profile_sets_password(self, user):
        UserService().update_profile(
            user_id=user.id, actor_id=user.id, data={"password": "new-secret"}
        )

        user.refresh_from_db()
        assert user.check_password("new-secret")

    def test_search_by_phone_is_exact(self, user):
        results = UserService().search_by_phone(user.phone_number)
        partial = UserService().search_by_phone(user.phone_number[:-2])

        assert results == [user]
        assert partial == []

    def test_search_by_name_is_case_insensitive_substring(self):
        alice = UserFactory(name="Alice Wonder")
        UserFactory(name="Bob Builder")

        results = UserService().search_by_name("WONDER")

        assert results == [alice]

    def test_search_by_name_skips_deactivated_users(self):
        UserFactory(name="Ghost Person", is_active=False)

        assert UserService().search_by_name("ghost") == []
