"""
Django admin configuration for the User model.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for phone-number based users."""

    list_display = (
        "phone_number",
        "name",
        "is_online",
        "last_seen_at",
        "is_active",
        "is_staff",
        "created_at",
    )
    list_filter = ("is_online", "is_active", "is_staff", "is_superuser")
    search_fields = ("phone_number", "name")
    ordering = ("-created_at",)

    fieldsets = (
        (None, {"fields": ("phone_number", "password")}),
        ("Profile", {"fields": ("name", "profile_picture", "about")}),
        ("Presence", {"fields": ("is_online", "last_seen_at")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "created_at", "updated_at")}),
    )
    readonly_fields = ("created_at", "updated_at", "last_login", "last_seen_at")

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("phone_number", "name", "password1", "password2"),
            },
        ),
    )
