"""
Root URL configuration.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (database, cache, channel layer)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints
        token/                     - Obtain JWT pair (email + password)
        token/refresh/             - Refresh access token
        me/                        - Current user with display name (GET/PATCH)
    /api/v1/listings/              - Listing list/create, detail
    /api/v1/chat/                  - Messaging endpoints
        conversations/             - Conversation list (search) / get-or-create
        conversations/{id}/        - Conversation detail
        conversations/{id}/read/   - Mark every message addressed to me as read
        conversations/{id}/messages/ - Full history / send
        messages/{id}/read/        - Mark one message as read
        activity/                  - Unread total and recent-activity metric

WebSocket routes live in chat.routing and are served through config.asgi.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("listings/", include("listings.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Marketplace Admin"
admin.site.site_title = "Marketplace Admin Portal"
admin.site.index_title = "Listings, accounts and conversations"
