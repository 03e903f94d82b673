"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                  GET (?search=), POST
        /conversations/{id}/             GET
        /conversations/{id}/read/        POST
        /conversations/{id}/messages/    GET, POST

    Messages:
        /messages/{id}/read/             POST

    Dashboard:
        /activity/                       GET

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ActivityView, ConversationViewSet, MessageReadView

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    path("messages/<int:pk>/read/", MessageReadView.as_view(), name="message-read"),
    path("activity/", ActivityView.as_view(), name="activity"),
]
