"""
Tests for chat models.

Covers the database-level guarantees the services rely on:
- One conversation per (listing, renter, owner)
- No self-conversations or self-addressed messages
- Query helpers for participants, ordering and unread messages
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.db.models import CheckConstraint, F, Q
from django.utils import timezone

from authentication.tests.factories import UserFactory
from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message
from chat.tests.factories import ConversationFactory, MessageFactory
from listings.tests.factories import ListingFactory


# =============================================================================
# Conversation
# =============================================================================


class TestConversationConstraints:
    def test_duplicate_triple_rejected(self, conversation):
        """
        A second row for the same (listing, renter, owner) violates the constraint.

        Why it matters: Concurrent first contacts are resolved by this
        constraint, not by application locks.
        """
        with pytest.raises(IntegrityError), transaction.atomic():
            Conversation.objects.create(
                listing=conversation.listing,
                renter=conversation.renter,
                owner=conversation.owner,
            )

    def test_reversed_orientation_is_a_different_conversation(self, conversation):
        """(L, A, B) and (L, B, A) may coexist."""
        reversed_conversation = Conversation.objects.create(
            listing=conversation.listing,
            renter=conversation.owner,
            owner=conversation.renter,
        )

        assert reversed_conversation.pk != conversation.pk

    def test_same_renter_and_owner_rejected(self, db):
        user = UserFactory()
        listing = ListingFactory(owner=user)

        with pytest.raises(IntegrityError), transaction.atomic():
            Conversation.objects.create(listing=listing, renter=user, owner=user)

    @pytest.mark.parametrize(
        ("model", "name", "condition"),
        [
            (Conversation, "conversation_distinct_participants", ~Q(renter=F("owner"))),
            (Message, "message_distinct_sender_recipient", ~Q(sender=F("recipient"))),
        ],
    )
    def test_distinct_participant_constraints(self, model, name, condition):
        [constraint] = [c for c in model._meta.constraints if c.name == name]

        assert isinstance(constraint, CheckConstraint)
        assert constraint.condition == condition


class TestConversationParticipants:
    def test_counterpart_of_each_side(self, conversation, renter, owner):
        assert conversation.counterpart_id(renter.id) == owner.id
        assert conversation.counterpart_id(owner.id) == renter.id

    def test_counterpart_of_outsider_raises(self, conversation, outsider):
        with pytest.raises(ValueError):
            conversation.counterpart_id(outsider.id)

    def test_has_participant(self, conversation, renter, owner, outsider):
        assert conversation.has_participant(renter.id)
        assert conversation.has_participant(owner.id)
        assert not conversation.has_participant(outsider.id)


class TestConversationQuerySet:
    def test_for_user_covers_both_roles(self, conversation, renter, owner, outsider):
        """A user sees conversations where they are renter or owner."""
        as_owner_elsewhere = ConversationFactory(listing=ListingFactory(owner=renter))

        renter_ids = set(Conversation.objects.for_user(renter.id).values_list("id", flat=True))

        assert renter_ids == {conversation.id, as_owner_elsewhere.id}
        assert Conversation.objects.for_user(owner.id).count() == 1
        assert Conversation.objects.for_user(outsider.id).count() == 0

    def test_by_activity_puts_silent_conversations_last(self, renter):
        now = timezone.now()
        silent = ConversationFactory(renter=renter)
        older = ConversationFactory(renter=renter, last_message_at=now - timedelta(hours=2))
        newer = ConversationFactory(renter=renter, last_message_at=now)

        ordered = list(Conversation.objects.for_user(renter.id).by_activity())

        assert ordered == [newer, older, silent]


# =============================================================================
# Message
# =============================================================================


class TestMessage:
    def test_defaults_to_unread(self, conversation):
        message = MessageFactory(conversation=conversation)

        assert message.is_read is False
        assert message.read_at is None

    def test_self_addressed_message_rejected(self, conversation, renter):
        with pytest.raises(IntegrityError), transaction.atomic():
            Message.objects.create(
                conversation=conversation,
                sender=renter,
                recipient=renter,
                body="note to self",
            )

    def test_ids_increase_with_inserts(self, conversation):
        first = MessageFactory(conversation=conversation)
        second = MessageFactory.reply(conversation)

        assert second.id > first.id

    def test_in_order_breaks_timestamp_ties_by_id(self, conversation):
        """
        Messages with equal created_at are ordered by id.

        Why it matters: (created_at, id) is the display order every
        client converges on.
        """
        first = MessageFactory(conversation=conversation)
        second = MessageFactory.reply(conversation)
        Message.objects.filter(pk__in=[first.pk, second.pk]).update(
            created_at=timezone.now()
        )

        assert list(Message.objects.in_order()) == [first, second]

    def test_unread_for_only_counts_recipient(self, conversation, renter, owner):
        MessageFactory(conversation=conversation)
        MessageFactory(conversation=conversation, is_read=True)
        MessageFactory.reply(conversation)

        assert Message.objects.unread_for(owner.id).count() == 1
        assert Message.objects.unread_for(renter.id).count() == 1

    def test_str_truncates_long_bodies(self, conversation):
        limit = MESSAGE_CONFIG.PREVIEW_LENGTH
        message = MessageFactory(conversation=conversation, body="x" * (limit + 30))

        assert str(message).endswith("x" * limit + "...")
        assert message.preview == "x" * limit + "..."

    def test_short_body_preview_is_unchanged(self, conversation):
        message = MessageFactory(conversation=conversation, body="Is this available?")

        assert message.preview == "Is this available?"
