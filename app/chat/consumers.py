"""
WebSocket consumers for the chat application.

Consumers:
    ChatConsumer: Live view of one listing conversation

Authentication:
    Users are authenticated via JWT token passed as query parameter or
    subprotocol. chat.middleware.JWTAuthMiddleware attaches the user to
    self.scope["user"].

Channel Groups:
    Each conversation has a channel group named "chat_{conversation_id}",
    the same group chat.channel.EventChannel publishes to. Messages sent
    through any path (REST, WebSocket, chat.api) reach every connected
    participant, the sender included.

Message Types (from client):
    - message: {"type": "message", "body": "..."}
    - read: {"type": "read", "message_id": 123}
    - read_all: {"type": "read_all"}

Message Types (to client):
    - message_appended: A MessageAppended event (see chat.events)
    - read: Result of a read / read_all request
    - error: {"type": "error", "error_code": "...", "message": "..."}

Close codes:
    4001: Not authenticated
    4004: Conversation does not exist or user is not a participant
"""

from __future__ import annotations

import logging
from uuid import UUID

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.db import DatabaseError, OperationalError

from chat.channel import EventChannel
from chat.constants import WEBSOCKET_CLOSE_CODES
from chat.events import MessageAppended
from chat.exceptions import TransientNetworkError
from chat.middleware import SUBPROTOCOL_NAME
from chat.models import Conversation
from chat.services import ConversationService, MessageService, ReadStateService
from chat.tasks import mark_all_read_task, mark_message_read_task
from core.exceptions import ValidationError
from core.services import ServiceResult

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for a single conversation.

    Attributes:
        conversation_id: UUID of the connected conversation
        conversation: Conversation instance (after connect)
        room_group_name: Channel layer group name for the conversation
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.conversation_id: UUID | None = None
        self.conversation: Conversation | None = None
        self.room_group_name: str | None = None

    async def connect(self):
        """
        Handle WebSocket connection.

        Validates:
            1. User is authenticated
            2. Conversation exists and the user is one of its participants

        On success, joins the channel group and accepts the connection.
        """
        self.conversation_id = self.scope["url_route"]["kwargs"]["conversation_id"]

        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            logger.warning(
                f"Rejected unauthenticated connection to conversation {self.conversation_id}"
            )
            await self.close(code=WEBSOCKET_CLOSE_CODES.UNAUTHENTICATED)
            return

        result = await self._get_conversation(user.id)
        if not result.success:
            logger.warning(
                f"User {user.id} rejected from conversation {self.conversation_id}: "
                f"{result.error_code}"
            )
            await self.close(code=WEBSOCKET_CLOSE_CODES.NOT_FOUND)
            return
        self.conversation = result.data

        self.room_group_name = EventChannel.group_name(self.conversation_id)
        await self.channel_layer.group_add(self.room_group_name, self.channel_name)

        # Browsers drop the socket unless the offered subprotocol is echoed
        subprotocols = self.scope.get("subprotocols") or []
        await self.accept(subprotocol=SUBPROTOCOL_NAME if SUBPROTOCOL_NAME in subprotocols else None)
        logger.info(f"User {user.id} connected to conversation {self.conversation_id}")

    async def disconnect(self, close_code):
        """Leave the channel group if one was joined."""
        if self.room_group_name:
            await self.channel_layer.group_discard(self.room_group_name, self.channel_name)
            logger.info(
                f"User {self.scope['user'].id} disconnected from conversation "
                f"{self.conversation_id} ({close_code})"
            )

    async def receive_json(self, content, **kwargs):
        """
        Dispatch a client frame.

        Expected frame format:
            {"type": "message", "body": "Is this available?"}
            {"type": "read", "message_id": 42}
            {"type": "read_all"}
        """
        if not isinstance(content, dict):
            await self._send_error("INVALID_FRAME", "Frames must be JSON objects")
            return

        message_type = content.get("type")
        user = self.scope["user"]

        if message_type == "message":
            await self._handle_message(user, content)
        elif message_type == "read":
            await self._handle_read(user, content)
        elif message_type == "read_all":
            await self._handle_read_all(user)
        else:
            await self._send_error("UNKNOWN_TYPE", f"Unknown message type: {message_type}")

    async def _handle_message(self, user, content):
        """
        Send a message to the counterpart.

        No direct reply: the stored message comes back to every connection,
        this one included, as a message_appended event.
        """
        body = content.get("body")
        if not isinstance(body, str):
            body = ""

        try:
            result = await self._send_message(user.id, body)
        except DatabaseError as e:
            # Sends are never retried for the client; it decides whether to resend.
            logger.warning(f"Message from user {user.id} not stored: {e}")
            await self._send_transient_error("Message could not be sent, please retry")
            return

        if not result.success:
            await self._send_result_error(result)

    async def _handle_read(self, user, content):
        message_id = content.get("message_id")

        try:
            result = await self._get_own_message(message_id, user.id)
        except DatabaseError as e:
            logger.warning(f"Could not load message {message_id}: {e}")
            await self._send_transient_error("Read receipt could not be recorded, please retry")
            return

        if not result.success:
            await self._send_result_error(result)
            return

        try:
            result = await self._mark_message_read(message_id)
        except OperationalError as e:
            # Read updates are idempotent; hand the retry to Celery.
            logger.warning(f"Deferring read of message {message_id}: {e}")
            mark_message_read_task.delay(message_id)
            await self.send_json({"type": "read", "message_id": message_id, "queued": True})
            return

        if not result.success:
            await self._send_result_error(result)
            return
        await self.send_json({"type": "read", "message_id": message_id, "updated": result.data})

    async def _handle_read_all(self, user):
        try:
            result = await self._mark_all_read(user.id)
        except OperationalError as e:
            logger.warning(f"Deferring read-all in conversation {self.conversation_id}: {e}")
            mark_all_read_task.delay(str(self.conversation_id), user.id)
            await self.send_json(
                {"type": "read", "conversation_id": str(self.conversation_id), "queued": True}
            )
            return

        if not result.success:
            await self._send_result_error(result)
            return
        await self.send_json(
            {
                "type": "read",
                "conversation_id": str(self.conversation_id),
                "count": result.data,
            }
        )

    async def chat_message_appended(self, event):
        """
        Handle chat.message_appended events from the channel layer.

        Payloads are validated before they reach the client.
        """
        try:
            appended = MessageAppended.from_dict(event.get("event"))
        except ValidationError as e:
            logger.warning(
                f"Dropping malformed event for conversation {self.conversation_id}: "
                f"{e.details}"
            )
            return

        if appended.conversation_id != str(self.conversation_id):
            return
        await self.send_json(appended.to_dict())

    async def _send_error(self, error_code: str, message: str):
        await self.send_json({"type": "error", "error_code": error_code, "message": message})

    async def _send_result_error(self, result: ServiceResult):
        await self._send_error(result.error_code or "ERROR", result.error or "Request failed")

    async def _send_transient_error(self, message: str):
        error = TransientNetworkError(message)
        await self._send_error(error.error_code, error.message)

    @database_sync_to_async
    def _get_conversation(self, user_id) -> ServiceResult[Conversation]:
        return ConversationService.get_for_participant(self.conversation_id, user_id)

    @database_sync_to_async
    def _send_message(self, sender_id, body: str) -> ServiceResult:
        recipient_id = self.conversation.counterpart_id(sender_id)
        return MessageService.send_message(self.conversation_id, sender_id, recipient_id, body)

    @database_sync_to_async
    def _get_own_message(self, message_id, user_id) -> ServiceResult:
        """Load a message of this conversation addressed to the user."""
        result = MessageService.get_message(message_id)
        if not result.success or result.data.conversation_id != self.conversation.pk:
            return ServiceResult.failure(
                f"Message {message_id} not found",
                error_code="MESSAGE_NOT_FOUND",
            )
        if result.data.recipient_id != user_id:
            return ServiceResult.failure(
                "Only the recipient can mark a message as read",
                error_code="NOT_RECIPIENT",
            )
        return result

    @database_sync_to_async
    def _mark_message_read(self, message_id) -> ServiceResult[bool]:
        return ReadStateService.mark_message_read(message_id)

    @database_sync_to_async
    def _mark_all_read(self, user_id) -> ServiceResult[int]:
        return ReadStateService.mark_all_read_for_user(self.conversation_id, user_id)
