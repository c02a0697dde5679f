"""
Authentication and user profile services.

AuthService handles registration, credential checks and token issuance;
UserService serves profile reads, updates and searches.

Registration deliberately reports a phone number collision, while login
returns one generic message for unknown numbers and wrong passwords.

Usage:
    from authentication.services import AuthService, UserService

    result = AuthService().register(
        phone_number="+15550100", name="Alice", password="secret1"
    )
    if result:
        tokens = AuthService.issue_tokens(result.data)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import authenticate
from django.db import IntegrityError
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.models import User
from core.exceptions import NotFoundError, PermissionDeniedError
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from typing import Any

INVALID_CREDENTIALS_MESSAGE = "Invalid phone number or password"

PROFILE_FIELDS = ("name", "profile_picture", "about")


class AuthService(BaseService):
    """Registration, login and JWT issuance."""

    def register(
        self,
        phone_number: str,
        name: str,
        password: str,
        profile_picture: str | None = None,
    ) -> ServiceResult[User]:
        """
        Create an account.

        Returns:
            ServiceResult with the new user, or failure PHONE_EXISTS
        """
        manager = User.objects.db_manager(self.using)
        phone_number = manager.normalize_phone_number(phone_number)

        if manager.filter(phone_number=phone_number).exists():
            return ServiceResult.failure(
                "Phone number already registered",
                error_code="PHONE_EXISTS",
            )

        try:
            with self.atomic():
                user = manager.create_user(
                    phone_number=phone_number,
                    password=password,
                    name=name,
                    profile_picture=profile_picture or None,
                )
        except IntegrityError:
            # Lost a race with a concurrent registration of the same number
            return ServiceResult.failure(
                "Phone number already registered",
                error_code="PHONE_EXISTS",
            )

        self.get_logger().info(f"Registered user {user.id}")
        return ServiceResult.success(user)

    def login(self, phone_number: str, password: str) -> ServiceResult[User]:
        """Check credentials; failures never say which part was wrong."""
        user = authenticate(phone_number=phone_number, password=password)
        if user is None:
            self.get_logger().info("Rejected login attempt")
            return ServiceResult.failure(
                INVALID_CREDENTIALS_MESSAGE,
                error_code="INVALID_CREDENTIALS",
            )

        self.get_logger().info(f"User {user.id} logged in")
        return ServiceResult.success(user)

    @staticmethod
    def issue_tokens(user: User) -> dict[str, str]:
        """Return a fresh access/refresh JWT pair for the user."""
        refresh = RefreshToken.for_user(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


class UserService(BaseService):
    """Profile reads, updates and user search."""

    def get_profile(self, user_id: int) -> User:
        user = User.objects.using(self.using).filter(pk=user_id).first()
        if user is None:
            raise NotFoundError(
                "User not found",
                error_code="USER_NOT_FOUND",
                details={"user_id": user_id},
            )
        return user

    def update_profile(self, user_id: int, actor_id: int, data: dict[str, Any]) -> User:
        """
        Update the profile of ``user_id``; only the owner may do so.

        ``data`` may contain name, profile_picture, about and password.
        """
        if user_id != actor_id:
            raise PermissionDeniedError(
                "Not authorized to update this profile",
                error_code="NOT_PROFILE_OWNER",
            )

        user = self.get_profile(user_id)
        update_fields = ["updated_at"]
        for field_name in PROFILE_FIELDS:
            if field_name in data:
                setattr(user, field_name, data[field_name])
                update_fields.append(field_name)

        if data.get("password"):
            user.set_password(data["password"])
            update_fields.append("password")

        user.save(using=self.using, update_fields=update_fields)
        self.get_logger().info(
            f"User {user_id} updated profile fields {update_fields[1:]}"
        )
        return user

    def search_by_phone(self, phone_number: str) -> list[User]:
        manager = User.objects.db_manager(self.using)
        return list(
            manager.filter(
                phone_number=manager.normalize_phone_number(phone_number),
                is_active=True,
            )
        )

    def search_by_name(self, name: str, limit: int = 20) -> list[User]:
        return list(
            User.objects.using(self.using)
            .filter(name__icontains=name.strip(), is_active=True)
            .order_by("name", "id")[:limit]
        )
