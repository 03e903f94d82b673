"""
Chat application configuration.

This app provides listing-scoped messaging with:
- One conversation per (listing, renter, owner)
- Ordered message history with per-message read flags
- Real-time delivery over the Channels layer
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """
    Configuration for the chat application.

    Attributes:
        event_channel: The process-wide chat.channel.EventChannel, built in
            ready(); None when CHANNEL_LAYERS is not configured
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    event_channel = None

    def ready(self):
        from chat.channel import build_event_channel

        self.event_channel = build_event_channel()
