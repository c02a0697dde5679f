"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User and UserManager tests
- test_services.py: AuthService and UserService tests
- test_views.py: Register, login, logout and user profile endpoint tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_models.py
"""
