"""
Authentication application.

Phone-number based accounts, JWT issuance (simplejwt), the signed-cookie
authentication class, and the user profile/search endpoints.

Usage:
    from authentication.models import User
    from authentication.services import AuthService, UserService
"""
