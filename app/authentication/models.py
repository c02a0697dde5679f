"""
Authentication models.

User is the only model of this app: a phone-number identified account that
also carries the public profile (name, picture, about) and presence state
(is_online, last_seen_at) shown to other chat members.

Related files:
    - managers.py: UserManager (phone normalization, user creation)
    - services.py: AuthService (register/login), UserService (profiles, search)
    - chat/presence.py: Flips presence when WebSocket connections come and go

Security:
    - Passwords hashed with Django's configured hasher
    - is_active is the Django "account enabled" flag; presence is is_online
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import RegexValidator
from django.db import models

from authentication.managers import UserManager
from core.models import BaseModel

phone_number_validator = RegexValidator(
    regex=r"^\+?[0-9]{6,15}$",
    message="phone number must be a valid phone number",
)


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Custom User model using the phone number as the primary identifier.

    Fields:
        phone_number: Unique login identifier, digits with optional leading +
        name: Display name shown in chats
        profile_picture: Avatar URL (uploads are handled outside this service)
        about: Free-form status line
        is_online: True while the user has at least one live connection
        last_seen_at: Last connect or disconnect time
        is_active: Whether the account may log in
        is_staff: Whether the user can access Django admin
    """

    phone_number = models.CharField(
        max_length=20,
        unique=True,
        validators=[phone_number_validator],
        help_text="Login identifier, digits with optional leading +",
    )
    name = models.CharField(
        max_length=100,
        help_text="Display name",
    )
    profile_picture = models.URLField(
        max_length=500,
        blank=True,
        null=True,
        help_text="Avatar URL",
    )
    about = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Short status text",
    )

    # Presence
    is_online = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the user currently has a live realtime connection",
    )
    last_seen_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the user last connected or disconnected",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    USERNAME_FIELD = "phone_number"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    class Meta:
        db_table = "users"
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.phone_number})"

    def get_full_name(self):
        return self.name or self.phone_number

    def get_short_name(self):
        return self.name.split(" ")[0] if self.name else self.phone_number
