"""
Tests for ChatConsumer over the full WebSocket stack.

Connections go through JWTAuthMiddleware and the real URL router, and
messages are delivered through the configured in-memory channel layer.
The database is shared with the consumer's worker threads, so tests use
transactional database access.
"""

from unittest import mock

import pytest
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.db import OperationalError
from rest_framework_simplejwt.tokens import AccessToken

from chat.channel import EventChannel
from chat.events import CHANNEL_MESSAGE_TYPE
from chat.middleware import JWTAuthMiddleware
from chat.models import Message
from chat.routing import websocket_urlpatterns
from chat.tests.factories import ConversationFactory, MessageFactory

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))


def token_for(user):
    return str(AccessToken.for_user(user))


def chat_path(conversation_id, token=None):
    path = f"/ws/chat/{conversation_id}/"
    return f"{path}?token={token}" if token else path


async def open_socket(conversation_id, user=None, token=None):
    """Connect and return (communicator, connected, close_code)."""
    if user is not None:
        token = token_for(user)
    communicator = WebsocketCommunicator(application, chat_path(conversation_id, token))
    connected, code = await communicator.connect()
    return communicator, connected, code


@pytest.fixture
def message_to_owner(conversation):
    return MessageFactory(conversation=conversation, body="Is this available?")


# =============================================================================
# Connection
# =============================================================================


class TestConnect:
    async def test_participant_connects(self, conversation, renter):
        communicator, connected, _ = await open_socket(conversation.id, user=renter)

        assert connected
        await communicator.disconnect()

    async def test_missing_token_closes_4001(self, conversation):
        _, connected, code = await open_socket(conversation.id)

        assert not connected
        assert code == 4001

    async def test_invalid_token_closes_4001(self, conversation):
        _, connected, code = await open_socket(conversation.id, token="not-a-jwt")

        assert not connected
        assert code == 4001

    async def test_inactive_user_closes_4001(self, conversation, renter):
        token = token_for(renter)
        renter.is_active = False
        await database_sync_to_async(renter.save)(update_fields=["is_active"])

        _, _, code = await open_socket(conversation.id, token=token)

        assert code == 4001

    async def test_outsider_closes_4004(self, conversation, outsider):
        """
        Why it matters: Only the two participants may watch a conversation.
        """
        _, connected, code = await open_socket(conversation.id, user=outsider)

        assert not connected
        assert code == 4004

    async def test_unknown_conversation_closes_4004(self, renter):
        _, _, code = await open_socket(
            "3f8b2f5e-0000-4000-8000-000000000000", user=renter
        )

        assert code == 4004

    async def test_token_via_subprotocol(self, conversation, owner):
        communicator = WebsocketCommunicator(
            application,
            chat_path(conversation.id),
            subprotocols=["jwt", token_for(owner)],
        )

        connected, subprotocol = await communicator.connect()

        assert connected
        assert subprotocol == "jwt"
        await communicator.disconnect()


# =============================================================================
# Messages
# =============================================================================


class TestMessageFrames:
    async def test_message_reaches_both_participants(self, conversation, renter, owner):
        """
        A sent message arrives at the recipient and echoes back to the sender.

        Why it matters: Both sides render messages only from the stream,
        so the sender's own copy must come through it too.
        """
        renter_socket, _, _ = await open_socket(conversation.id, user=renter)
        owner_socket, _, _ = await open_socket(conversation.id, user=owner)

        await renter_socket.send_json_to({"type": "message", "body": " Is this available? "})
        at_owner = await owner_socket.receive_json_from()
        at_renter = await renter_socket.receive_json_from()

        assert at_owner == at_renter
        assert at_owner["type"] == "message_appended"
        assert at_owner["conversation_id"] == str(conversation.id)
        assert at_owner["message"]["body"] == "Is this available?"
        assert at_owner["message"]["sender_id"] == renter.id
        assert at_owner["message"]["recipient_id"] == owner.id
        stored = await database_sync_to_async(Message.objects.get)()
        assert at_owner["message"]["id"] == stored.id

        await renter_socket.disconnect()
        await owner_socket.disconnect()

    async def test_other_conversations_not_delivered(self, conversation, renter, owner):
        elsewhere = await database_sync_to_async(ConversationFactory)(renter=renter)
        watcher, _, _ = await open_socket(conversation.id, user=owner)
        sender, _, _ = await open_socket(elsewhere.id, user=renter)

        await sender.send_json_to({"type": "message", "body": "different listing"})
        await sender.receive_json_from()

        assert await watcher.receive_nothing()
        await watcher.disconnect()
        await sender.disconnect()

    async def test_blank_body_returns_error_frame(self, conversation, renter):
        socket, _, _ = await open_socket(conversation.id, user=renter)

        await socket.send_json_to({"type": "message", "body": "   "})
        frame = await socket.receive_json_from()

        assert frame["type"] == "error"
        assert frame["error_code"] == "EMPTY_BODY"
        assert not await database_sync_to_async(Message.objects.exists)()
        await socket.disconnect()

    async def test_non_string_body_treated_as_empty(self, conversation, renter):
        socket, _, _ = await open_socket(conversation.id, user=renter)

        await socket.send_json_to({"type": "message", "body": 42})
        frame = await socket.receive_json_from()

        assert frame["error_code"] == "EMPTY_BODY"
        await socket.disconnect()

    async def test_unknown_type_returns_error_frame(self, conversation, renter):
        socket, _, _ = await open_socket(conversation.id, user=renter)

        await socket.send_json_to({"type": "typing"})
        frame = await socket.receive_json_from()

        assert frame["error_code"] == "UNKNOWN_TYPE"
        await socket.disconnect()

    async def test_non_object_frame_rejected(self, conversation, renter):
        socket, _, _ = await open_socket(conversation.id, user=renter)

        await socket.send_json_to(["message", "hi"])
        frame = await socket.receive_json_from()

        assert frame["error_code"] == "INVALID_FRAME"
        await socket.disconnect()

    async def test_database_outage_on_send_returns_error_frame(self, conversation, renter):
        """
        A failed store answers with a retryable error and keeps the socket open.

        Why it matters: One bad write must not drop the live connection, and
        sends are never retried behind the user's back.
        """
        socket, _, _ = await open_socket(conversation.id, user=renter)

        with mock.patch(
            "chat.consumers.MessageService.send_message",
            side_effect=OperationalError("database is locked"),
        ) as send:
            await socket.send_json_to({"type": "message", "body": "hi"})
            frame = await socket.receive_json_from()

        assert frame["type"] == "error"
        assert frame["error_code"] == "TRANSIENT_NETWORK_ERROR"
        send.assert_called_once()

        await socket.send_json_to({"type": "message", "body": "   "})
        follow_up = await socket.receive_json_from()
        assert follow_up["error_code"] == "EMPTY_BODY"
        await socket.disconnect()

    async def test_malformed_group_event_not_forwarded(self, conversation, owner):
        socket, _, _ = await open_socket(conversation.id, user=owner)

        await get_channel_layer().group_send(
            EventChannel.group_name(conversation.id),
            {"type": CHANNEL_MESSAGE_TYPE, "event": {"type": "message_appended"}},
        )

        assert await socket.receive_nothing()
        await socket.disconnect()


# =============================================================================
# Read receipts
# =============================================================================


class TestReadFrames:
    async def test_recipient_marks_message_read(self, conversation, owner, message_to_owner):
        socket, _, _ = await open_socket(conversation.id, user=owner)

        await socket.send_json_to({"type": "read", "message_id": message_to_owner.id})
        frame = await socket.receive_json_from()

        assert frame == {"type": "read", "message_id": message_to_owner.id, "updated": True}
        await database_sync_to_async(message_to_owner.refresh_from_db)()
        assert message_to_owner.is_read is True
        await socket.disconnect()

    async def test_sender_cannot_mark_read(self, conversation, renter, message_to_owner):
        socket, _, _ = await open_socket(conversation.id, user=renter)

        await socket.send_json_to({"type": "read", "message_id": message_to_owner.id})
        frame = await socket.receive_json_from()

        assert frame["error_code"] == "NOT_RECIPIENT"
        await database_sync_to_async(message_to_owner.refresh_from_db)()
        assert message_to_owner.is_read is False
        await socket.disconnect()

    async def test_message_from_other_conversation_not_found(self, conversation, owner):
        other = await database_sync_to_async(ConversationFactory)()
        foreign = await database_sync_to_async(MessageFactory)(conversation=other)
        socket, _, _ = await open_socket(conversation.id, user=owner)

        await socket.send_json_to({"type": "read", "message_id": foreign.id})
        frame = await socket.receive_json_from()

        assert frame["error_code"] == "MESSAGE_NOT_FOUND"
        await socket.disconnect()

    async def test_read_all(self, conversation, owner, message_to_owner):
        socket, _, _ = await open_socket(conversation.id, user=owner)

        await socket.send_json_to({"type": "read_all"})
        frame = await socket.receive_json_from()

        assert frame == {"type": "read", "conversation_id": str(conversation.id), "count": 1}
        await socket.disconnect()

    async def test_database_outage_defers_read_to_celery(
        self, conversation, owner, message_to_owner
    ):
        """
        A read that fails on a database error is queued, not lost.

        Why it matters: Read updates are idempotent, so a background retry
        is always safe.
        """
        socket, _, _ = await open_socket(conversation.id, user=owner)

        with mock.patch(
            "chat.consumers.ReadStateService.mark_message_read",
            side_effect=OperationalError("database is locked"),
        ), mock.patch("chat.consumers.mark_message_read_task") as task:
            await socket.send_json_to({"type": "read", "message_id": message_to_owner.id})
            frame = await socket.receive_json_from()

        assert frame == {"type": "read", "message_id": message_to_owner.id, "queued": True}
        task.delay.assert_called_once_with(message_to_owner.id)
        await socket.disconnect()

    async def test_database_outage_loading_message_returns_error_frame(
        self, conversation, owner, message_to_owner
    ):
        socket, _, _ = await open_socket(conversation.id, user=owner)

        with mock.patch(
            "chat.consumers.MessageService.get_message",
            side_effect=OperationalError("database is locked"),
        ), mock.patch("chat.consumers.mark_message_read_task") as task:
            await socket.send_json_to({"type": "read", "message_id": message_to_owner.id})
            frame = await socket.receive_json_from()

        assert frame["error_code"] == "TRANSIENT_NETWORK_ERROR"
        task.delay.assert_not_called()

        await socket.send_json_to({"type": "read", "message_id": message_to_owner.id})
        follow_up = await socket.receive_json_from()
        assert follow_up["updated"] is True
        await socket.disconnect()

    async def test_database_outage_defers_read_all(self, conversation, owner):
        socket, _, _ = await open_socket(conversation.id, user=owner)

        with mock.patch(
            "chat.consumers.ReadStateService.mark_all_read_for_user",
            side_effect=OperationalError("database is locked"),
        ), mock.patch("chat.consumers.mark_all_read_task") as task:
            await socket.send_json_to({"type": "read_all"})
            frame = await socket.receive_json_from()

        assert frame["queued"] is True
        task.delay.assert_called_once_with(str(conversation.id), owner.id)
        await socket.disconnect()
