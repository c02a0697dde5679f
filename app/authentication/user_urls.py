"""
URL configuration for user profile endpoints.

URL structure (mounted at /api/v1/users/):
    search/phone?phone=  - Exact phone lookup
    search/name?name=    - Name search
    {id}                 - Profile (GET), update own profile (PUT)
"""

from django.urls import path

from authentication.views import UserDetailView, UserNameSearchView, UserPhoneSearchView

app_name = "users"

urlpatterns = [
    path("search/phone", UserPhoneSearchView.as_view(), name="search-phone"),
    path("search/name", UserNameSearchView.as_view(), name="search-name"),
    path("<int:user_id>", UserDetailView.as_view(), name="detail"),
]
