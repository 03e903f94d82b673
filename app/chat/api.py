"""
Plain-function interface to the messaging core.

For callers outside HTTP and WebSocket request handling (management
commands, Celery tasks, other apps). Each function wraps a service and
raises the chat.exceptions taxonomy instead of returning a ServiceResult.

Usage:
    from chat import api as chat_api

    conversation = chat_api.get_or_create_conversation(listing.id, renter.id, owner.id)
    chat_api.send_message(conversation.id, renter.id, owner.id, "Is this available?")
    history = chat_api.fetch_history(conversation.id)

Raises:
    core.exceptions.ValidationError: Rejected input (EMPTY_BODY, SAME_USER, ...)
    core.exceptions.NotFoundError: Unknown conversation, listing, user or message
    core.exceptions.ConflictError: Unresolvable concurrent conversation create
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chat.channel import get_event_channel
from chat.exceptions import raise_for_result
from chat.services import (
    ConversationListService,
    ConversationService,
    MessageService,
    ReadStateService,
)

if TYPE_CHECKING:
    from chat.channel import (
        DisconnectCallback,
        EventChannel,
        MessageCallback,
        SubscriptionHandle,
    )
    from chat.models import Conversation, Message
    from chat.services import ConversationSummary


def get_or_create_conversation(listing_id, renter_id, owner_id) -> Conversation:
    return raise_for_result(ConversationService.get_or_create(listing_id, renter_id, owner_id))


def send_message(
    conversation_id,
    sender_id,
    recipient_id,
    body: str,
    channel: EventChannel | None = None,
) -> Message:
    return raise_for_result(
        MessageService.send_message(
            conversation_id, sender_id, recipient_id, body, channel=channel
        )
    )


def fetch_history(conversation_id) -> list[Message]:
    return raise_for_result(MessageService.fetch_history(conversation_id))


async def subscribe_to_conversation(
    conversation_id,
    callback: MessageCallback,
    on_disconnect: DisconnectCallback | None = None,
    channel: EventChannel | None = None,
) -> SubscriptionHandle:
    """Subscribe ``callback`` to MessageAppended events of a conversation."""
    channel = channel or get_event_channel()
    return await channel.subscribe(conversation_id, callback, on_disconnect=on_disconnect)


async def unsubscribe(handle: SubscriptionHandle, channel: EventChannel | None = None) -> None:
    channel = channel or get_event_channel()
    await channel.unsubscribe(handle)


def mark_message_read(message_id) -> bool:
    """Returns True if this call flipped the flag."""
    return raise_for_result(ReadStateService.mark_message_read(message_id))


def mark_all_read_for_user(conversation_id, user_id) -> int:
    return raise_for_result(ReadStateService.mark_all_read_for_user(conversation_id, user_id))


def list_conversations_for_user(user_id, search: str | None = None) -> list[ConversationSummary]:
    return ConversationListService.list_for_user(user_id, search=search)
