"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation inspection
- Message moderation (read-only bodies)
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    """Inline display of messages in conversation admin."""

    model = Message
    extra = 0
    can_delete = False
    fields = ["id", "sender", "recipient", "body", "is_read", "created_at"]
    readonly_fields = fields
    ordering = ["created_at", "id"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "listing",
        "renter",
        "owner",
        "created_at",
        "last_message_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["id", "listing__title", "renter__email", "owner__email"]
    readonly_fields = ["created_at", "updated_at", "last_message_at"]
    raw_id_fields = ["listing", "renter", "owner"]
    inlines = [MessageInline]
    ordering = ["-created_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "recipient",
        "body_preview",
        "is_read",
        "created_at",
    ]
    list_filter = ["is_read", "created_at"]
    search_fields = ["body", "sender__email", "recipient__email"]
    readonly_fields = ["conversation", "sender", "recipient", "body", "created_at", "read_at"]
    ordering = ["-created_at"]

    @admin.display(description="Body Preview")
    def body_preview(self, obj: Message) -> str:
        return obj.preview
