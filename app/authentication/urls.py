"""
URL configuration for the auth endpoints.

URL structure (mounted at /api/v1/auth/):
    register  - Create account
    login     - Log in, sets the signed auth cookie
    logout    - Clear the auth cookie
"""

from django.urls import path

from authentication.views import LoginView, LogoutView, RegisterView

app_name = "authentication"

urlpatterns = [
    path("register", RegisterView.as_view(), name="register"),
    path("login", LoginView.as_view(), name="login"),
    path("logout", LogoutView.as_view(), name="logout"),
]
