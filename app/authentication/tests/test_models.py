"""
Tests for the User model and UserManager.
"""

import pytest

from authentication.models import User


@pytest.mark.django_db
class TestUserManager:
    """Tests for phone-number based user creation."""

    def test_create_user_normalizes_phone_number(self):
        """
        Separators are stripped before the number is stored.

        Why it matters: '+1 555-0100' and '+15550100' must be the same
        account, otherwise the uniqueness guarantee is meaningless.
        """
        user = User.objects.create_user(
            phone_number="+1 555-010-0000", password="secret1", name="Alice"
        )

        assert user.phone_number == "+15550100000"
        assert user.check_password("secret1")

    def test_create_user_without_phone_raises(self):
        """Why it matters: the phone number is the login identifier."""
        with pytest.raises(ValueError):
            User.objects.create_user(phone_number="", password="secret1", name="A")

    def test_create_superuser_sets_flags(self):
        admin = User.objects.create_superuser(
            phone_number="+15550000001", password="AdminPass123!", name="Admin"
        )

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_new_user_is_offline(self):
        """
        Presence starts false until a realtime connection is made.

        Why it matters: is_online drives the advisory "delivered" status on
        send, so a fresh account must not look reachable.
        """
        user = User.objects.create_user(
            phone_number="+15550000002", password="secret1", name="Bob"
        )

        assert user.is_online is False
        assert user.last_seen_at is None
        assert user.is_active is True
