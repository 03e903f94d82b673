"""
Messaging service layer.

This module holds the business logic of the messaging core. Views,
WebSocket consumers, chat sessions and chat.api all go through it.

Services:
    ConversationService: Lazy get-or-create of the (listing, renter, owner) thread
    MessageService: Append-only message store and history
    ReadStateService: Per-message read flags and unread counts
    ConversationListService: Per-user conversation list with summary metadata

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure() with an error code
      (see chat.exceptions for the mapping onto core.exceptions)
    - Unexpected failures raise exceptions
    - Uniqueness races are resolved by database constraints, not locks
    - Real-time events are published only after the transaction commits

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.get_or_create(listing.id, renter.id, listing.owner_id)
    if result.success:
        conversation = result.data
        created = result.meta["created"]

    result = MessageService.send_message(
        conversation.id,
        sender_id=renter.id,
        recipient_id=listing.owner_id,
        body="Is this available?",
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from authentication.services import ProfileService
from core.exceptions import ExternalServiceError
from core.services import BaseService, ServiceResult

from chat.channel import get_event_channel
from chat.constants import ACTIVITY_CONFIG, MESSAGE_CONFIG
from chat.events import MessageAppended
from chat.models import Conversation, Message
from listings.models import Listing

if TYPE_CHECKING:
    from collections.abc import Iterable

    from chat.channel import EventChannel


def _parse_uuid(value) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _parse_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# =============================================================================
# ConversationService
# =============================================================================


class ConversationService(BaseService):
    """
    Conversation directory.

    Methods:
        get_or_create: Find or lazily create the thread for a triple
        get_for_participant: Load a conversation visible to a user
    """

    @classmethod
    def get_or_create(
        cls,
        listing_id,
        renter_id,
        owner_id,
    ) -> ServiceResult[Conversation]:
        """
        Return the conversation for (listing, renter, owner), creating it if needed.

        Orientation is exact: (L, A, B) and (L, B, A) are different
        conversations. The result's meta["created"] tells whether this call
        inserted the row.

        Implementation:
            1. Validate the participants and the listing
            2. Look up the exact triple
            3. If missing, insert inside a transaction
            4. On a unique-constraint violation (a concurrent first
               contact won), re-query once and return the winner

        Error codes:
            SAME_USER: renter and owner are the same user
            USER_NOT_FOUND: Either user does not exist
            INACTIVE_USER: Either user is deactivated
            LISTING_NOT_FOUND: Listing does not exist
            OWNER_MISMATCH: owner_id is not the listing owner
            CONVERSATION_CONFLICT: Insert collided and the winner was not found
        """
        requested = [_parse_int(renter_id), _parse_int(owner_id)]
        renter_pk, owner_pk = requested
        # "7" and 7 are the same user
        if renter_id == owner_id or (renter_pk is not None and renter_pk == owner_pk):
            return ServiceResult.failure(
                "You cannot start a conversation with yourself",
                error_code="SAME_USER",
            )

        User = get_user_model()
        users = {
            user.pk: user
            for user in User.objects.filter(pk__in=[pk for pk in requested if pk is not None])
        }
        for user_id, pk in zip((renter_id, owner_id), requested):
            user = users.get(pk)
            if user is None:
                return ServiceResult.failure(
                    f"User {user_id} not found",
                    error_code="USER_NOT_FOUND",
                )
            if not user.is_active:
                return ServiceResult.failure(
                    f"User {user_id} is not active",
                    error_code="INACTIVE_USER",
                )

        listing = Listing.objects.filter(pk=_parse_int(listing_id)).first()
        if listing is None:
            return ServiceResult.failure(
                f"Listing {listing_id} not found",
                error_code="LISTING_NOT_FOUND",
            )
        if listing.owner_id != owner_pk:
            return ServiceResult.failure(
                "Conversations about a listing must include its owner",
                error_code="OWNER_MISMATCH",
            )

        lookup = {"listing_id": listing.pk, "renter_id": renter_pk, "owner_id": owner_pk}

        existing = Conversation.objects.filter(**lookup).first()
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing conversation {existing.id} for listing {listing.pk}"
            )
            return ServiceResult.success(existing, created=False)

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(**lookup)
        except IntegrityError:
            winner = Conversation.objects.filter(**lookup).first()
            if winner is None:
                cls.get_logger().error(
                    f"Conversation insert for listing {listing.pk} "
                    f"({renter_id} -> {owner_id}) collided but no row was found"
                )
                return ServiceResult.failure(
                    "Conversation could not be created, please retry",
                    error_code="CONVERSATION_CONFLICT",
                )
            cls.get_logger().info(
                f"Resolved concurrent create to conversation {winner.id}"
            )
            return ServiceResult.success(winner, created=False)

        cls.get_logger().info(
            f"Created conversation {conversation.id} for listing {listing.pk} "
            f"between renter {renter_id} and owner {owner_id}"
        )
        return ServiceResult.success(conversation, created=True)

    @classmethod
    def open_for_listing(cls, listing_id, renter_id) -> ServiceResult[Conversation]:
        """
        Contact a listing's owner: get_or_create with the owner looked up.

        Error codes:
            LISTING_NOT_FOUND: Listing does not exist
            plus everything get_or_create reports
        """
        owner_id = (
            Listing.objects.filter(pk=_parse_int(listing_id))
            .values_list("owner_id", flat=True)
            .first()
        )
        if owner_id is None:
            return ServiceResult.failure(
                f"Listing {listing_id} not found",
                error_code="LISTING_NOT_FOUND",
            )
        return cls.get_or_create(listing_id, renter_id, owner_id)

    @classmethod
    def get_for_participant(cls, conversation_id, user_id) -> ServiceResult[Conversation]:
        """
        Load a conversation the user takes part in.

        Non-participants get the same CONVERSATION_NOT_FOUND as a missing id.
        """
        pk = _parse_uuid(conversation_id)
        conversation = (
            Conversation.objects.select_related("listing").filter(pk=pk).first()
            if pk is not None
            else None
        )
        if conversation is None or not conversation.has_participant(user_id):
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )
        return ServiceResult.success(conversation)


# =============================================================================
# MessageService
# =============================================================================


class MessageService(BaseService):
    """
    Append-only message store.

    Methods:
        send_message: Validate, persist and publish a message
        fetch_history: Full ordered history of a conversation
        get_message: Load one message by id
    """

    @classmethod
    def send_message(
        cls,
        conversation_id,
        sender_id,
        recipient_id,
        body: str,
        channel: EventChannel | None = None,
    ) -> ServiceResult[Message]:
        """
        Append a message to a conversation.

        The body is stored trimmed. After the transaction commits the
        message is published as MessageAppended on the event channel
        (the process channel when none is given). A failed publish is
        logged and does not fail the send; subscribers catch up through
        fetch_history.

        Error codes:
            EMPTY_BODY: Body is empty after trimming
            BODY_TOO_LONG: Body exceeds MESSAGE_CONFIG.MAX_BODY_LENGTH
            CONVERSATION_NOT_FOUND: Unknown conversation id
            NOT_PARTICIPANT: sender/recipient are not the conversation's two
                participants
        """
        body = body.strip() if body else ""
        if not body:
            return ServiceResult.failure(
                "Message body cannot be empty",
                error_code="EMPTY_BODY",
            )
        if len(body) > MESSAGE_CONFIG.MAX_BODY_LENGTH:
            return ServiceResult.failure(
                f"Message body cannot exceed {MESSAGE_CONFIG.MAX_BODY_LENGTH} characters",
                error_code="BODY_TOO_LONG",
            )

        pk = _parse_uuid(conversation_id)
        conversation = Conversation.objects.filter(pk=pk).first() if pk else None
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        if sender_id == recipient_id or {sender_id, recipient_id} != set(
            conversation.participant_ids
        ):
            return ServiceResult.failure(
                "Sender and recipient must be the two participants of this conversation",
                error_code="NOT_PARTICIPANT",
            )

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                sender_id=sender_id,
                recipient_id=recipient_id,
                body=body,
            )
            # QuerySet.update() skips auto_now, so updated_at is set explicitly
            Conversation.objects.filter(pk=conversation.pk).update(
                last_message_at=message.created_at,
                updated_at=message.created_at,
            )
            transaction.on_commit(
                partial(cls._publish, channel, MessageAppended.from_message(message))
            )

        cls.get_logger().debug(
            f"User {sender_id} sent message {message.id} to conversation {conversation.pk}"
        )
        return ServiceResult.success(message)

    @classmethod
    def _publish(cls, channel: EventChannel | None, event: MessageAppended) -> None:
        try:
            (channel or get_event_channel()).publish_sync(event)
        except ExternalServiceError as e:
            cls.get_logger().warning(
                f"Message {event.message.id} saved but not published: {e}"
            )

    @classmethod
    def fetch_history(cls, conversation_id) -> ServiceResult[list[Message]]:
        """
        Return every message of a conversation ordered by (created_at, id).

        Each call re-reads the database, so it is the catch-up path after a
        channel gap.

        Error codes:
            CONVERSATION_NOT_FOUND: Unknown conversation id
        """
        pk = _parse_uuid(conversation_id)
        if pk is None or not Conversation.objects.filter(pk=pk).exists():
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )
        return ServiceResult.success(list(Message.objects.filter(conversation_id=pk).in_order()))

    @classmethod
    def get_message(cls, message_id) -> ServiceResult[Message]:
        pk = _parse_int(message_id)
        message = Message.objects.filter(pk=pk).first() if pk is not None else None
        if message is None:
            return ServiceResult.failure(
                f"Message {message_id} not found",
                error_code="MESSAGE_NOT_FOUND",
            )
        return ServiceResult.success(message)


# =============================================================================
# ReadStateService
# =============================================================================


class ReadStateService(BaseService):
    """
    Read flags and unread counts.

    The flag only ever flips from False to True, so every update is
    idempotent and safe to retry or run concurrently. Checking that the
    caller is the recipient is the caller's job.
    """

    @classmethod
    def mark_message_read(cls, message_id) -> ServiceResult[bool]:
        """
        Mark one message as read.

        Returns True when this call flipped the flag and False when the
        message was already read.

        Error codes:
            MESSAGE_NOT_FOUND: Unknown message id
        """
        pk = _parse_int(message_id)
        if pk is None:
            return ServiceResult.failure(
                f"Message {message_id} not found",
                error_code="MESSAGE_NOT_FOUND",
            )

        flipped = Message.objects.filter(pk=pk, is_read=False).update(
            is_read=True,
            read_at=timezone.now(),
        )
        if flipped:
            cls.get_logger().debug(f"Marked message {pk} read")
            return ServiceResult.success(True)

        if Message.objects.filter(pk=pk).exists():
            return ServiceResult.success(False)

        return ServiceResult.failure(
            f"Message {message_id} not found",
            error_code="MESSAGE_NOT_FOUND",
        )

    @classmethod
    def mark_all_read_for_user(cls, conversation_id, user_id) -> ServiceResult[int]:
        """
        Mark every unread message addressed to the user in a conversation.

        Returns the number of messages flipped.

        Error codes:
            CONVERSATION_NOT_FOUND: Unknown conversation id
        """
        pk = _parse_uuid(conversation_id)
        if pk is None or not Conversation.objects.filter(pk=pk).exists():
            return ServiceResult.failure(
                "Conversation not found",
                error_code="CONVERSATION_NOT_FOUND",
            )

        flipped = (
            Message.objects.filter(conversation_id=pk)
            .unread_for(user_id)
            .update(is_read=True, read_at=timezone.now())
        )
        if flipped:
            cls.get_logger().debug(
                f"User {user_id} marked {flipped} messages read in conversation {pk}"
            )
        return ServiceResult.success(flipped)

    @classmethod
    def unread_count(cls, conversation_id, user_id) -> int:
        pk = _parse_uuid(conversation_id)
        if pk is None:
            return 0
        return Message.objects.filter(conversation_id=pk).unread_for(user_id).count()

    @classmethod
    def unread_counts(cls, conversation_ids: Iterable, user_id) -> dict:
        """
        Unread counts for many conversations in one grouped query.

        Conversations with nothing unread map to 0.
        """
        ids = list(conversation_ids)
        if not ids:
            return {}

        counts = dict.fromkeys(ids, 0)
        rows = (
            Message.objects.filter(conversation_id__in=ids)
            .unread_for(user_id)
            .values("conversation_id")
            .annotate(unread=Count("id"))
            .order_by()
        )
        for row in rows:
            counts[row["conversation_id"]] = row["unread"]
        return counts


# =============================================================================
# ConversationListService
# =============================================================================


@dataclass(frozen=True)
class ConversationSummary:
    """One row of a user's conversation list."""

    conversation: Conversation
    counterpart_id: int
    counterpart_display_name: str
    counterpart_initial: str
    listing_title: str
    unread_count: int

    def matches(self, term: str) -> bool:
        """Case-insensitive substring match on counterpart name or listing title."""
        return (
            term in self.counterpart_display_name.casefold()
            or term in self.listing_title.casefold()
        )


@dataclass(frozen=True)
class ActivitySummary:
    """Dashboard counters for one user."""

    conversation_count: int
    recently_active_count: int
    unread_total: int


class ConversationListService(BaseService):
    """
    Conversation list aggregator.

    A list is built with a fixed number of queries regardless of its
    length: conversations with their listings, one batched profile lookup
    (usually served from cache) and one grouped unread count.
    """

    @classmethod
    def list_for_user(cls, user_id, search: str | None = None) -> list[ConversationSummary]:
        """
        Summaries of every conversation the user takes part in.

        Ordered by last activity, most recent first. ``search`` filters
        case-insensitively on the counterpart's name and the listing title.
        """
        conversations = list(
            Conversation.objects.for_user(user_id).select_related("listing").by_activity()
        )
        if not conversations:
            return []

        counterpart_ids = {c.pk: c.counterpart_id(user_id) for c in conversations}
        names = ProfileService.get_display_names(counterpart_ids.values())
        unread = ReadStateService.unread_counts(counterpart_ids.keys(), user_id)

        summaries = []
        for conversation in conversations:
            counterpart_id = counterpart_ids[conversation.pk]
            name = names[counterpart_id]
            summaries.append(
                ConversationSummary(
                    conversation=conversation,
                    counterpart_id=counterpart_id,
                    counterpart_display_name=name,
                    counterpart_initial=name[:1].upper(),
                    listing_title=conversation.listing.display_title,
                    unread_count=unread[conversation.pk],
                )
            )

        term = (search or "").strip().casefold()
        if term:
            summaries = [summary for summary in summaries if summary.matches(term)]
        return summaries

    @classmethod
    def total_unread_for_user(cls, user_id) -> int:
        """Unread messages addressed to the user across all conversations."""
        return Message.objects.unread_for(user_id).count()

    @classmethod
    def count_recently_active(cls, user_id, window: timedelta | None = None) -> int:
        """
        Conversations of the user (either side) updated within ``window``.

        This is the dashboard's activity metric and is unrelated to read
        state; use total_unread_for_user for unread messages.
        """
        if window is None:
            window = timedelta(hours=ACTIVITY_CONFIG.RECENT_ACTIVITY_WINDOW_HOURS)
        since = timezone.now() - window
        return Conversation.objects.for_user(user_id).filter(updated_at__gte=since).count()

    @classmethod
    def activity_for_user(cls, user_id) -> ActivitySummary:
        return ActivitySummary(
            conversation_count=Conversation.objects.for_user(user_id).count(),
            recently_active_count=cls.count_recently_active(user_id),
            unread_total=cls.total_unread_for_user(user_id),
        )
