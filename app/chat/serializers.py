"""
Serializers for chat API.

This module provides serializers for the messaging REST endpoints:
- Conversation serializers (summary list, detail, create)
- Message serializers (read, create)
- Dashboard activity

Serializer Hierarchy:
    ConversationSummarySerializer: List rows built from ConversationSummary
    ConversationSerializer: Full conversation with the caller's counterpart
    ConversationCreateSerializer: Get-or-create by listing

    MessageSerializer: Stored message
    MessageCreateSerializer: Send a new message

    ActivitySerializer: Dashboard counters

Design Decisions:
    - Read and write serializers are separate for clarity
    - Body validation (trimming, emptiness, length) belongs to
      MessageService so REST, WebSocket and chat.api reject the same input
      with the same error codes
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.services import ProfileService
from chat.models import Conversation, Message


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """Full message representation."""

    conversation_id = serializers.UUIDField(read_only=True)
    sender_id = serializers.IntegerField(read_only=True)
    recipient_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender_id",
            "recipient_id",
            "body",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending a message.

    The recipient is always the caller's counterpart in the conversation.
    """

    body = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        help_text="Message text; surrounding whitespace is trimmed",
    )


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSummarySerializer(serializers.Serializer):
    """
    One row of the caller's conversation list.

    Serializes chat.services.ConversationSummary instances.
    """

    id = serializers.UUIDField(source="conversation.id")
    listing_id = serializers.IntegerField(source="conversation.listing_id")
    listing_title = serializers.CharField()
    renter_id = serializers.IntegerField(source="conversation.renter_id")
    owner_id = serializers.IntegerField(source="conversation.owner_id")
    counterpart_id = serializers.IntegerField()
    counterpart_display_name = serializers.CharField()
    counterpart_initial = serializers.CharField()
    unread_count = serializers.IntegerField()
    last_message_at = serializers.DateTimeField(source="conversation.last_message_at")
    created_at = serializers.DateTimeField(source="conversation.created_at")


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation detail.

    Counterpart fields are relative to the requesting user and need
    ``request`` in the serializer context.
    """

    listing_id = serializers.IntegerField(read_only=True)
    listing_title = serializers.CharField(source="listing.display_title", read_only=True)
    renter_id = serializers.IntegerField(read_only=True)
    owner_id = serializers.IntegerField(read_only=True)
    counterpart_id = serializers.SerializerMethodField()
    counterpart_display_name = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            "id",
            "listing_id",
            "listing_title",
            "renter_id",
            "owner_id",
            "counterpart_id",
            "counterpart_display_name",
            "last_message_at",
            "created_at",
        ]
        read_only_fields = fields

    def _counterpart_id(self, obj: Conversation):
        request = self.context.get("request")
        if request is None or not obj.has_participant(request.user.id):
            return None
        return obj.counterpart_id(request.user.id)

    def get_counterpart_id(self, obj: Conversation) -> int | None:
        return self._counterpart_id(obj)

    def get_counterpart_display_name(self, obj: Conversation) -> str | None:
        counterpart_id = self._counterpart_id(obj)
        if counterpart_id is None:
            return None
        return ProfileService.get_display_name(counterpart_id)


class ConversationCreateSerializer(serializers.Serializer):
    """
    Serializer for opening a conversation about a listing.

    The caller becomes the renter; the owner is the listing's owner.
    """

    listing_id = serializers.IntegerField(
        min_value=1,
        help_text="Listing to contact the owner about",
    )


# =============================================================================
# Activity Serializers
# =============================================================================


class ActivitySerializer(serializers.Serializer):
    """Serializes chat.services.ActivitySummary."""

    conversation_count = serializers.IntegerField()
    recently_active_count = serializers.IntegerField(
        help_text="Conversations updated in the last 24 hours"
    )
    unread_total = serializers.IntegerField()
