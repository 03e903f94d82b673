"""
Permission classes for chat API.

This module provides DRF permission classes for the messaging endpoints:
- IsConversationParticipant: User is the renter or the owner of the conversation
- IsMessageRecipient: User is the recipient of the message

Design Decisions:
    - Querysets are already limited to the caller's conversations, so
      object permissions are a second line of defense
    - Only the recipient may flip a message's read flag
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.models import Conversation, Message

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsConversationParticipant(permissions.BasePermission):
    """Allows access only to the two participants of the conversation."""

    message = "You are not a participant in this conversation."

    def has_object_permission(
        self, request: Request, view: APIView, obj: Conversation | Message
    ) -> bool:
        if not request.user.is_authenticated:
            return False

        conversation = obj.conversation if isinstance(obj, Message) else obj
        return conversation.has_participant(request.user.id)


class IsMessageRecipient(permissions.BasePermission):
    """Allows access only to the user a message is addressed to."""

    message = "Only the recipient can mark a message as read."

    def has_object_permission(self, request: Request, view: APIView, obj: Message) -> bool:
        return request.user.is_authenticated and obj.recipient_id == request.user.id
