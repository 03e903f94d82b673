"""
Tests for chat API views.

This module tests the chat REST endpoints:
- ConversationViewSet: list, get-or-create, retrieve, read and messages actions
- MessageReadView: single-message read receipts
- ActivityView: dashboard counters

Test Organization:
    - One test class per endpoint
    - Each test validates ONE specific HTTP interaction

Testing Philosophy:
    Tests focus on observable HTTP behavior:
    - Response status codes and error codes
    - Response body structure
    - Database state changes
    - Authentication/permission enforcement
"""

from datetime import timedelta

from django.utils import timezone
from rest_framework import status

from authentication.tests.factories import UserFactory
from chat.models import Conversation, Message
from chat.tests.factories import ConversationFactory, MessageFactory
from listings.tests.factories import ListingFactory


# =============================================================================
# URL Constants
# =============================================================================


CONVERSATIONS_URL = "/api/v1/chat/conversations/"
ACTIVITY_URL = "/api/v1/chat/activity/"


def conversation_detail_url(conversation_id):
    """Generate URL for conversation detail endpoint."""
    return f"{CONVERSATIONS_URL}{conversation_id}/"


def conversation_read_url(conversation_id):
    """Generate URL for mark-all-read endpoint."""
    return f"{CONVERSATIONS_URL}{conversation_id}/read/"


def messages_url(conversation_id):
    """Generate URL for conversation messages endpoint."""
    return f"{CONVERSATIONS_URL}{conversation_id}/messages/"


def message_read_url(message_id):
    """Generate URL for single message read endpoint."""
    return f"/api/v1/chat/messages/{message_id}/read/"


# =============================================================================
# TestConversationList
# =============================================================================


class TestConversationList:
    """
    Tests for GET /api/v1/chat/conversations/.
    """

    def test_returns_summaries_for_caller(self, conversation, owner_client, renter):
        """
        Each row names the counterpart and the listing.

        Why it matters: The inbox shows who the conversation is with and
        what it is about without further requests.
        """
        MessageFactory(conversation=conversation)

        response = owner_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        row = response.data[0]
        assert row["id"] == str(conversation.id)
        assert row["counterpart_id"] == renter.id
        assert row["counterpart_display_name"] == "Rita"
        assert row["counterpart_initial"] == "R"
        assert row["listing_title"] == "Cordless drill"
        assert row["unread_count"] == 1

    def test_excludes_other_users_conversations(self, conversation, outsider_client):
        response = outsider_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == []

    def test_most_recent_activity_first(self, renter, renter_client):
        now = timezone.now()
        quiet = ConversationFactory(renter=renter, last_message_at=now - timedelta(days=2))
        busy = ConversationFactory(renter=renter, last_message_at=now)

        response = renter_client.get(CONVERSATIONS_URL)

        assert [row["id"] for row in response.data] == [str(busy.id), str(quiet.id)]

    def test_search_filters_by_counterpart_or_title(self, conversation, renter, renter_client):
        tent = ListingFactory(title="Camping tent", owner=UserFactory(display_name="Tess"))
        ConversationFactory(renter=renter, listing=tent)

        by_title = renter_client.get(CONVERSATIONS_URL, {"search": "DRILL"})
        by_name = renter_client.get(CONVERSATIONS_URL, {"search": "osc"})

        assert [row["id"] for row in by_title.data] == [str(conversation.id)]
        assert [row["id"] for row in by_name.data] == [str(conversation.id)]

    def test_requires_authentication(self, db, anonymous_client):
        response = anonymous_client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# TestConversationCreate
# =============================================================================


class TestConversationCreate:
    """
    Tests for POST /api/v1/chat/conversations/.
    """

    def test_first_contact_creates_conversation(self, listing, renter, owner, renter_client):
        response = renter_client.post(CONVERSATIONS_URL, {"listing_id": listing.id}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["renter_id"] == renter.id
        assert response.data["owner_id"] == owner.id
        assert response.data["counterpart_id"] == owner.id
        assert response.data["counterpart_display_name"] == "Oscar"
        assert Conversation.objects.count() == 1

    def test_repeat_contact_returns_existing(self, conversation, listing, renter_client):
        """
        Contacting the same owner about the same listing reuses the conversation.

        Why it matters: Exactly one conversation exists per
        (listing, renter, owner).
        """
        response = renter_client.post(CONVERSATIONS_URL, {"listing_id": listing.id}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == str(conversation.id)
        assert Conversation.objects.count() == 1

    def test_owner_cannot_contact_self(self, listing, owner_client):
        response = owner_client.post(CONVERSATIONS_URL, {"listing_id": listing.id}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "SAME_USER"

    def test_unknown_listing_is_404(self, renter_client):
        response = renter_client.post(CONVERSATIONS_URL, {"listing_id": 999999}, format="json")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "LISTING_NOT_FOUND"

    def test_invalid_listing_id_rejected(self, renter_client):
        response = renter_client.post(CONVERSATIONS_URL, {"listing_id": 0}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "listing_id" in response.data


# =============================================================================
# TestConversationRetrieve
# =============================================================================


class TestConversationRetrieve:
    def test_participant_can_retrieve(self, conversation, renter_client, owner):
        response = renter_client.get(conversation_detail_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["listing_title"] == "Cordless drill"
        assert response.data["counterpart_id"] == owner.id

    def test_outsider_gets_404(self, conversation, outsider_client):
        """
        Non-participants cannot tell whether a conversation exists.
        """
        response = outsider_client.get(conversation_detail_url(conversation.id))

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# TestConversationMessages
# =============================================================================


class TestConversationMessages:
    """
    Tests for GET/POST /api/v1/chat/conversations/{id}/messages/.
    """

    def test_history_in_display_order(self, conversation, renter_client):
        first = MessageFactory(conversation=conversation, body="Is this available?")
        second = MessageFactory.reply(conversation, body="Yes, available tomorrow.")

        response = renter_client.get(messages_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert [m["id"] for m in response.data] == [first.id, second.id]
        assert response.data[0]["conversation_id"] == str(conversation.id)

    def test_send_goes_to_counterpart(self, conversation, renter, owner, renter_client):
        response = renter_client.post(
            messages_url(conversation.id), {"body": "  Is this available?  "}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["body"] == "Is this available?"
        assert response.data["sender_id"] == renter.id
        assert response.data["recipient_id"] == owner.id
        assert response.data["is_read"] is False

    def test_send_updates_conversation_activity(self, conversation, owner_client):
        owner_client.post(messages_url(conversation.id), {"body": "Sure"}, format="json")

        conversation.refresh_from_db()
        assert conversation.last_message_at == Message.objects.get().created_at

    def test_blank_body_rejected(self, conversation, renter_client):
        response = renter_client.post(messages_url(conversation.id), {"body": "   "}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "EMPTY_BODY"
        assert not Message.objects.exists()

    def test_overlong_body_rejected(self, conversation, renter_client):
        response = renter_client.post(
            messages_url(conversation.id), {"body": "x" * 5001}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "BODY_TOO_LONG"

    def test_outsider_cannot_send(self, conversation, outsider_client):
        response = outsider_client.post(
            messages_url(conversation.id), {"body": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert not Message.objects.exists()

    def test_outsider_cannot_read_history(self, conversation, outsider_client):
        MessageFactory(conversation=conversation)

        response = outsider_client.get(messages_url(conversation.id))

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# TestReadEndpoints
# =============================================================================


class TestConversationRead:
    """
    Tests for POST /api/v1/chat/conversations/{id}/read/.
    """

    def test_marks_only_callers_messages(self, conversation, owner_client):
        MessageFactory.create_batch(2, conversation=conversation)
        own = MessageFactory.reply(conversation)

        response = owner_client.post(conversation_read_url(conversation.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"marked_read": 2}
        own.refresh_from_db()
        assert own.is_read is False

    def test_repeat_is_harmless(self, conversation, owner_client):
        MessageFactory(conversation=conversation)
        owner_client.post(conversation_read_url(conversation.id))

        response = owner_client.post(conversation_read_url(conversation.id))

        assert response.data == {"marked_read": 0}


class TestMessageRead:
    """
    Tests for POST /api/v1/chat/messages/{id}/read/.
    """

    def test_recipient_marks_read(self, conversation, owner_client):
        message = MessageFactory(conversation=conversation)

        response = owner_client.post(message_read_url(message.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"id": message.id, "updated": True}
        message.refresh_from_db()
        assert message.is_read is True
        assert message.read_at is not None

    def test_second_call_reports_no_change(self, conversation, owner_client):
        message = MessageFactory(conversation=conversation, is_read=True)

        response = owner_client.post(message_read_url(message.id))

        assert response.data == {"id": message.id, "updated": False}

    def test_sender_cannot_mark_read(self, conversation, renter_client):
        """
        Why it matters: Read receipts reflect the recipient having seen
        the message, so the sender must not be able to set them.
        """
        message = MessageFactory(conversation=conversation)

        response = renter_client.post(message_read_url(message.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        message.refresh_from_db()
        assert message.is_read is False

    def test_outsider_gets_404(self, conversation, outsider_client):
        message = MessageFactory(conversation=conversation)

        response = outsider_client.post(message_read_url(message.id))

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# TestActivity
# =============================================================================


class TestActivity:
    """
    Tests for GET /api/v1/chat/activity/.
    """

    def test_counts_for_owner(self, conversation, owner_client):
        MessageFactory.create_batch(3, conversation=conversation)
        Conversation.objects.filter(pk=conversation.pk).update(
            updated_at=timezone.now() - timedelta(days=3)
        )

        response = owner_client.get(ACTIVITY_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            "conversation_count": 1,
            "recently_active_count": 0,
            "unread_total": 3,
        }

    def test_recent_message_counts_as_active(self, conversation, renter_client):
        renter_client.post(messages_url(conversation.id), {"body": "hello"}, format="json")

        response = renter_client.get(ACTIVITY_URL)

        assert response.data["recently_active_count"] == 1
        assert response.data["unread_total"] == 0

    def test_requires_authentication(self, db, anonymous_client):
        response = anonymous_client.get(ACTIVITY_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
