"""
Custom user manager for phone-number based authentication.

Related files:
    - models.py: User model that uses this manager

Security:
    - Passwords are hashed via set_password()
    - Phone numbers are normalized (whitespace, dashes and dots removed)
"""

import re

from django.contrib.auth.models import BaseUserManager

PHONE_SEPARATORS = re.compile(r"[\s\-.()]")


class UserManager(BaseUserManager):
    """
    Manager for User with the phone number as the login identifier.

    Usage:
        user = User.objects.create_user(
            phone_number="+15550100",
            password="secret1",
            name="Alice",
        )

        admin = User.objects.create_superuser(
            phone_number="+15550199",
            password="adminpassword",
            name="Admin",
        )
    """

    @staticmethod
    def normalize_phone_number(phone_number: str) -> str:
        """Strip separators so '+1 555-0100' and '+15550100' collide."""
        return PHONE_SEPARATORS.sub("", phone_number or "")

    def get_by_natural_key(self, username):
        return self.get(**{self.model.USERNAME_FIELD: self.normalize_phone_number(username)})

    def create_user(self, phone_number, password=None, **extra_fields):
        """
        Create and save a regular user.

        Raises:
            ValueError: If phone_number is not provided
        """
        if not phone_number:
            raise ValueError("The phone number must be set")

        phone_number = self.normalize_phone_number(phone_number)

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(phone_number=phone_number, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, phone_number, password=None, **extra_fields):
        """
        Create and save a superuser.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(phone_number, password, **extra_fields)
