"""
Serializers for authentication and user profile endpoints.

Related files:
    - models.py: User model
    - views.py: Views that use these serializers
    - services.py: AuthService and UserService

Security:
    - Password fields are write-only
    - Presence fields are read-only (driven by the realtime gateway)
"""

from rest_framework import serializers

from authentication.models import User, phone_number_validator

MIN_PASSWORD_LENGTH = 6


class UserSerializer(serializers.ModelSerializer):
    """Public user representation returned by every user-facing endpoint."""

    class Meta:
        model = User
        fields = [
            "id",
            "phone_number",
            "name",
            "profile_picture",
            "about",
            "is_online",
            "last_seen_at",
            "created_at",
        ]
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    """
    Input for POST /auth/register.

    Uniqueness of phone_number is checked by AuthService so that the
    collision is reported with its own error code.
    """

    phone_number = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=100, trim_whitespace=True)
    password = serializers.CharField(
        write_only=True,
        min_length=MIN_PASSWORD_LENGTH,
        trim_whitespace=False,
    )
    profile_picture = serializers.URLField(
        max_length=500,
        required=False,
        allow_null=True,
        allow_blank=True,
    )

    def validate_phone_number(self, value):
        value = User.objects.normalize_phone_number(value)
        phone_number_validator(value)
        return value


class LoginSerializer(serializers.Serializer):
    """Input for POST /auth/login."""

    phone_number = serializers.CharField(max_length=20)
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class ProfileUpdateSerializer(serializers.Serializer):
    """Input for PUT /users/{id}; every field is optional."""

    name = serializers.CharField(max_length=100, required=False)
    profile_picture = serializers.URLField(
        max_length=500,
        required=False,
        allow_null=True,
        allow_blank=True,
    )
    about = serializers.CharField(max_length=255, required=False, allow_blank=True)
    password = serializers.CharField(
        write_only=True,
        required=False,
        min_length=MIN_PASSWORD_LENGTH,
        trim_whitespace=False,
    )


class AuthResponseSerializer(serializers.Serializer):
    """Documentation-only shape of register/login responses."""

    success = serializers.BooleanField()
    user = UserSerializer()
    access = serializers.CharField()
    refresh = serializers.CharField()
