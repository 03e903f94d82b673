"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/register/          - Account registration
    /api/v1/auth/token/             - Obtain JWT access/refresh pair
    /api/v1/auth/token/refresh/     - Refresh access token
    /api/v1/auth/me/                - Current user (GET/PATCH)

WebSocket clients pass the access token as ?token=<jwt> (see chat.middleware).
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from authentication.views import MeView, RegisterView

app_name = "authentication"

urlpatterns = [
    path("register/", RegisterView.as_view(), name="register"),
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("me/", MeView.as_view(), name="me"),
]
