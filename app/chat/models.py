"""
Messaging models.

This module defines the data models for listing-scoped conversations:
- Conversation: the unique thread between a renter and an owner about one listing
- Message: one immutable message inside a conversation

Models:
    Conversation: (listing, renter, owner) triple with last-activity tracking
    Message: Ordered message with sender, recipient and read flag

Design Decisions:
    - The (listing, renter, owner) triple is unique at the database level;
      ConversationService relies on the constraint to resolve concurrent
      first contacts rather than on application locks
    - Orientation matters: the renter is whoever made first contact, the
      owner is always the listing owner. (L, A, B) and (L, B, A) are
      different conversations
    - Conversations and messages are never deleted or edited; only the
      per-message read flag changes
    - Message ids are monotonically increasing integers; (created_at, id)
      is the total display order
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from chat.constants import MESSAGE_CONFIG
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ConversationQuerySet(models.QuerySet):
    def for_user(self, user_id):
        """Conversations where the user is either participant."""
        return self.filter(Q(renter_id=user_id) | Q(owner_id=user_id))

    def by_activity(self):
        """Most recently active first; conversations without messages last."""
        return self.order_by(
            F("last_message_at").desc(nulls_last=True),
            "-created_at",
        )


class Conversation(UUIDPrimaryKeyMixin, BaseModel):
    """
    The conversation between two users about one listing.

    Fields:
        listing: Listing being discussed
        renter: Participant A, the user who initiated contact
        owner: Participant B, the listing owner at the time of first contact
        last_message_at: Timestamp of the most recent message (null until
            the first message is sent)

    Constraints:
        - UniqueConstraint(listing, renter, owner): one thread per triple
        - CheckConstraint(renter != owner): no self-conversations

    Relationships:
        messages: All Message records for this conversation
    """

    listing = models.ForeignKey(
        "listings.Listing",
        on_delete=models.PROTECT,
        related_name="conversations",
        help_text="Listing this conversation is about",
    )

    renter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="conversations_as_renter",
        help_text="User who initiated contact about the listing",
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="conversations_as_owner",
        help_text="Owner of the listing",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting conversation lists)",
    )

    objects = ConversationQuerySet.as_manager()

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["listing", "renter", "owner"],
                name="unique_listing_conversation",
            ),
            models.CheckConstraint(
                condition=~Q(renter=F("owner")),
                name="conversation_distinct_participants",
            ),
        ]
        indexes = [
            models.Index(
                fields=["renter", "-last_message_at"],
                name="chat_conv_renter_activity_idx",
            ),
            models.Index(
                fields=["owner", "-last_message_at"],
                name="chat_conv_owner_activity_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation({self.listing_id}: {self.renter_id} -> {self.owner_id})"

    @property
    def participant_ids(self) -> frozenset:
        return frozenset((self.renter_id, self.owner_id))

    def has_participant(self, user_id) -> bool:
        return user_id in self.participant_ids

    def counterpart_id(self, user_id):
        """
        Return the other participant's id.

        Raises:
            ValueError: If user_id is not a participant
        """
        if user_id == self.renter_id:
            return self.owner_id
        if user_id == self.owner_id:
            return self.renter_id
        raise ValueError(f"User {user_id} is not a participant in {self.pk}")


class MessageQuerySet(models.QuerySet):
    def in_order(self):
        return self.order_by("created_at", "id")

    def unread_for(self, user_id):
        return self.filter(recipient_id=user_id, is_read=False)


class Message(models.Model):
    """
    A message within a conversation.

    Immutable except for the read flag, which flips from False to True once
    and never back.

    Fields:
        id: Monotonically increasing integer
        conversation: Conversation this message belongs to
        sender: Participant who wrote the message
        recipient: The other participant
        body: Trimmed, non-empty text
        is_read: Whether the recipient has displayed the message
        read_at: When is_read flipped (null while unread)
        created_at: Server timestamp at insert
    """

    id = models.BigAutoField(primary_key=True)

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="received_messages",
        help_text="User this message is addressed to",
    )

    body = models.TextField(
        help_text="Message text (trimmed, never empty)",
    )

    is_read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this message",
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the recipient read this message",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this message was sent",
    )

    objects = MessageQuerySet.as_manager()

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(sender=F("recipient")),
                name="message_distinct_sender_recipient",
            ),
        ]
        indexes = [
            # Ordered history of a conversation
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_order_idx",
            ),
            # Unread counts per recipient
            models.Index(
                fields=["recipient", "conversation"],
                name="chat_msg_unread_idx",
                condition=Q(is_read=False),
            ),
        ]

    def __str__(self) -> str:
        return f"User {self.sender_id} -> {self.recipient_id}: {self.preview}"

    @property
    def preview(self) -> str:
        limit = MESSAGE_CONFIG.PREVIEW_LENGTH
        return self.body[:limit] + "..." if len(self.body) > limit else self.body
