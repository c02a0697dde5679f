"""
URL configuration for the chat backend.

URL Structure:
    /admin/                              - Django admin interface
    /health/                             - Health check endpoint (load balancers, Docker)
    /api/schema/                         - OpenAPI schema
    /api/docs/                           - Swagger UI
    /api/v1/auth/                        - Authentication
        register                         - Create account, returns JWT pair
        login                            - Phone/password login, sets signed cookie
        logout                           - Clear the auth cookie
    /api/v1/users/                       - User profiles
        {id}                             - Profile (GET), update own profile (PUT)
        search/phone?phone=              - Exact phone lookup
        search/name?name=                - Case-insensitive name search
    /api/v1/chats                        - Create chat (POST)
        user/{userId}                    - Chats of the current user
        unread/{userId}/{chatId}         - Unread counter
        {chatId}                         - Chat details
        {chatId}/members                 - Add members
    /api/v1/messages                     - Send message (POST)
        {chatId}?limit=&beforeSeq=       - Message history page
        {messageId}/delivered            - Delivery receipt
        {messageId}/read                 - Read receipt
        {chatId}/read-up-to              - Batch read receipt
        {messageId}                      - Delete own message (DELETE)

WebSocket routes are declared in chat.routing and mounted in config.asgi.

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("users/", include("authentication.user_urls")),
    path("", include("chat.urls")),
]

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path(
        "api/docs/",
        SpectacularSwaggerView.as_view(url_name="schema"),
        name="swagger-ui",
    ),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Chats, members and messages"
