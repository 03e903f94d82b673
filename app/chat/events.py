"""
Real-time event definitions.

Every event published on the channel layer has this shape:
{
    "type": "message_appended",   # Event type identifier
    "schema_version": 1,          # Bumped when the payload changes shape
    "conversation_id": str,       # Conversation UUID
    "message": {                  # The appended message
        "id": int,
        "conversation_id": str,
        "sender_id": int,
        "recipient_id": int,
        "body": str,
        "is_read": bool,
        "created_at": str         # ISO 8601
    }
}

Incoming payloads are validated with DRF serializers before any subscriber
sees them; malformed payloads raise core.exceptions.ValidationError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from rest_framework import serializers

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from chat.models import Message


class EventType(str, Enum):
    """Valid messaging event types."""

    MESSAGE_APPENDED = "message_appended"


SCHEMA_VERSION = 1

# Channels dispatches "chat.message_appended" to a consumer's
# chat_message_appended() handler.
CHANNEL_MESSAGE_TYPE = "chat.message_appended"


# =============================================================================
# Validation
# =============================================================================


class MessagePayloadSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    conversation_id = serializers.UUIDField()
    sender_id = serializers.IntegerField()
    recipient_id = serializers.IntegerField()
    body = serializers.CharField(trim_whitespace=False)
    is_read = serializers.BooleanField()
    created_at = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs["sender_id"] == attrs["recipient_id"]:
            raise serializers.ValidationError("sender_id and recipient_id must differ.")
        return attrs


class MessageAppendedSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[EventType.MESSAGE_APPENDED.value])
    schema_version = serializers.IntegerField(required=False, default=SCHEMA_VERSION)
    conversation_id = serializers.UUIDField()
    message = MessagePayloadSerializer()

    def validate_schema_version(self, value):
        if value != SCHEMA_VERSION:
            raise serializers.ValidationError(f"Unsupported schema version {value}.")
        return value

    def validate(self, attrs):
        if attrs["message"]["conversation_id"] != attrs["conversation_id"]:
            raise serializers.ValidationError(
                "message.conversation_id does not match conversation_id."
            )
        return attrs


# =============================================================================
# Event types
# =============================================================================


@dataclass(frozen=True)
class MessagePayload:
    """Immutable snapshot of a message as delivered to subscribers."""

    id: int
    conversation_id: str
    sender_id: int
    recipient_id: int
    body: str
    is_read: bool
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> MessagePayload:
        return cls(
            id=message.id,
            conversation_id=str(message.conversation_id),
            sender_id=message.sender_id,
            recipient_id=message.recipient_id,
            body=message.body,
            is_read=message.is_read,
            created_at=message.created_at,
        )

    @property
    def sort_key(self) -> tuple[datetime, int]:
        """Display order: creation time, then id."""
        return (self.created_at, self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "recipient_id": self.recipient_id,
            "body": self.body,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class MessageAppended:
    """
    A message was appended to a conversation.

    Usage:
        event = MessageAppended.from_message(message)
        await layer.group_send(group, event.to_channel_message())

        # Receiving side
        event = MessageAppended.from_dict(raw["event"])  # raises ValidationError
    """

    conversation_id: str
    message: MessagePayload

    type: ClassVar[EventType] = EventType.MESSAGE_APPENDED

    @classmethod
    def from_message(cls, message: Message) -> MessageAppended:
        payload = MessagePayload.from_message(message)
        return cls(conversation_id=payload.conversation_id, message=payload)

    @classmethod
    def from_dict(cls, data: Any) -> MessageAppended:
        """
        Validate a raw payload and build the event.

        Raises:
            ValidationError: error_code INVALID_EVENT, with field errors in details
        """
        if not isinstance(data, dict):
            raise ValidationError("Event payload must be an object", error_code="INVALID_EVENT")

        serializer = MessageAppendedSerializer(data=data)
        if not serializer.is_valid():
            raise ValidationError(
                "Malformed message_appended event",
                error_code="INVALID_EVENT",
                details=serializer.errors,
            )

        validated = serializer.validated_data
        message = validated["message"]
        return cls(
            conversation_id=str(validated["conversation_id"]),
            message=MessagePayload(
                id=message["id"],
                conversation_id=str(message["conversation_id"]),
                sender_id=message["sender_id"],
                recipient_id=message["recipient_id"],
                body=message["body"],
                is_read=message["is_read"],
                created_at=message["created_at"],
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "schema_version": SCHEMA_VERSION,
            "conversation_id": self.conversation_id,
            "message": self.message.to_dict(),
        }

    def to_channel_message(self) -> dict[str, Any]:
        """Envelope for channel_layer.group_send()."""
        return {"type": CHANNEL_MESSAGE_TYPE, "event": self.to_dict()}
