"""
Real-time event channel over the Django Channels layer.

EventChannel is the push side of messaging: services publish
MessageAppended events to a per-conversation group and in-process
subscribers (chat sessions, tests, workers) receive them through a
dedicated layer channel.

There is no module-level client. ChatConfig.ready() builds and connects one
EventChannel per process; code that needs it either receives it as an
argument or asks the app config via get_event_channel(). Tests build their
own against an InMemoryChannelLayer.

Usage:
    channel = EventChannel().connect()

    handle = await channel.subscribe(conversation_id, on_message)
    ...
    await channel.unsubscribe(handle)

    # From sync code (e.g. transaction.on_commit)
    channel.publish_sync(MessageAppended.from_message(message))

Delivery guarantees:
    - At-least-once while connected, no replay. Catch-up is fetch_history.
    - Every subscription of a conversation gets every event, including the
      sender's own.
    - No callback runs after unsubscribe() has been called.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.apps import apps
from django.conf import settings

from chat.events import CHANNEL_MESSAGE_TYPE, MessageAppended
from chat.exceptions import ChannelDisconnectedError, TransientNetworkError
from core.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_LAYER = "default"

MessageCallback = Callable[[MessageAppended], Awaitable[None] | None]
DisconnectCallback = Callable[["SubscriptionHandle", Exception], Awaitable[None] | None]


@dataclass(eq=False)
class SubscriptionHandle:
    """
    One live subscription to a conversation.

    Attributes:
        conversation_id: Conversation the subscription listens to
        channel_name: Layer channel receiving the group's events
        group: Layer group name for the conversation
        active: False once unsubscribe() has been called
        disconnected: True if the layer failed while receiving
    """

    conversation_id: str
    channel_name: str
    group: str
    active: bool = True
    disconnected: bool = False
    _task: asyncio.Task | None = field(default=None, repr=False)


class EventChannel:
    """
    Publishes and delivers MessageAppended events for conversations.

    Lifecycle:
        connect() binds the configured channel layer; disconnect() cancels
        every live subscription and releases the layer. A disconnected
        channel raises ChannelDisconnectedError on use.
    """

    GROUP_PREFIX = "chat_"

    def __init__(self, alias: str = DEFAULT_CHANNEL_LAYER, layer=None):
        self.alias = alias
        self._layer = layer
        self._handles: set[SubscriptionHandle] = set()

    def __repr__(self) -> str:
        state = "connected" if self.is_connected else "disconnected"
        return f"EventChannel(alias={self.alias!r}, {state})"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def connect(self) -> EventChannel:
        """
        Bind the channel layer. Returns self so it can be chained.

        Raises:
            ChannelDisconnectedError: If no layer is configured under alias
        """
        if self._layer is None:
            self._layer = get_channel_layer(self.alias)
        if self._layer is None:
            raise ChannelDisconnectedError(
                f"No channel layer configured for alias '{self.alias}'",
                details={"alias": self.alias},
            )
        logger.debug(f"Event channel connected to layer '{self.alias}'")
        return self

    async def disconnect(self) -> None:
        """Cancel all subscriptions and release the layer."""
        for handle in list(self._handles):
            await self.unsubscribe(handle)
        self._layer = None
        logger.debug(f"Event channel disconnected from layer '{self.alias}'")

    @property
    def is_connected(self) -> bool:
        return self._layer is not None

    @property
    def layer(self):
        if self._layer is None:
            raise ChannelDisconnectedError("Event channel is not connected")
        return self._layer

    @property
    def subscriptions(self) -> frozenset[SubscriptionHandle]:
        return frozenset(self._handles)

    @classmethod
    def group_name(cls, conversation_id) -> str:
        return f"{cls.GROUP_PREFIX}{conversation_id}"

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish(self, event: MessageAppended) -> None:
        """
        Send an event to every subscriber of its conversation.

        Raises:
            ChannelDisconnectedError: If the channel is not connected
            TransientNetworkError: If the layer rejects or drops the send
        """
        layer = self.layer
        group = self.group_name(event.conversation_id)
        try:
            await layer.group_send(group, event.to_channel_message())
        except Exception as e:
            raise TransientNetworkError(
                f"Failed to publish to {group}: {e}",
                details={"conversation_id": event.conversation_id},
            ) from e
        logger.debug(f"Published message {event.message.id} to {group}")

    def publish_sync(self, event: MessageAppended) -> None:
        """Blocking publish() for sync callers such as on_commit hooks."""
        async_to_sync(self.publish)(event)

    # =========================================================================
    # Subscribing
    # =========================================================================

    async def subscribe(
        self,
        conversation_id,
        on_message: MessageCallback,
        on_disconnect: DisconnectCallback | None = None,
    ) -> SubscriptionHandle:
        """
        Start receiving events for a conversation.

        Only events appended after this call returns are delivered.

        Raises:
            ChannelDisconnectedError: If the channel is not connected
            TransientNetworkError: If the layer cannot register the subscription
        """
        layer = self.layer
        conversation_id = str(conversation_id)
        group = self.group_name(conversation_id)

        try:
            channel_name = await layer.new_channel()
            await layer.group_add(group, channel_name)
        except Exception as e:
            raise TransientNetworkError(
                f"Failed to subscribe to {group}: {e}",
                details={"conversation_id": conversation_id},
            ) from e

        handle = SubscriptionHandle(
            conversation_id=conversation_id,
            channel_name=channel_name,
            group=group,
        )
        handle._task = asyncio.create_task(
            self._pump(handle, on_message, on_disconnect),
            name=f"event-channel:{group}",
        )
        self._handles.add(handle)
        logger.debug(f"Subscribed {channel_name} to {group}")
        return handle

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Stop delivery for a handle. Safe to call more than once."""
        # Deactivate before yielding so a queued event cannot slip through.
        was_active = handle.active
        handle.active = False
        self._handles.discard(handle)

        task = handle._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        if not was_active or self._layer is None:
            return
        try:
            await self._layer.group_discard(handle.group, handle.channel_name)
        except Exception as e:
            # Membership expires on its own; nothing else to undo.
            logger.warning(f"Failed to leave {handle.group}: {e}")
        logger.debug(f"Unsubscribed {handle.channel_name} from {handle.group}")

    async def _pump(
        self,
        handle: SubscriptionHandle,
        on_message: MessageCallback,
        on_disconnect: DisconnectCallback | None,
    ) -> None:
        layer = self._layer
        while handle.active:
            try:
                raw = await layer.receive(handle.channel_name)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not handle.active:
                    return
                handle.disconnected = True
                self._handles.discard(handle)
                logger.warning(f"Subscription to {handle.group} dropped: {e}")
                if on_disconnect is not None:
                    await _maybe_await(on_disconnect(handle, e))
                return

            if raw.get("type") != CHANNEL_MESSAGE_TYPE:
                continue

            try:
                event = MessageAppended.from_dict(raw.get("event"))
            except ValidationError as e:
                logger.warning(f"Dropping malformed event on {handle.group}: {e.details}")
                continue

            if event.conversation_id != handle.conversation_id or not handle.active:
                continue

            try:
                await _maybe_await(on_message(event))
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    f"Subscriber callback failed for message {event.message.id} "
                    f"on {handle.group}"
                )


async def _maybe_await(value: Any) -> None:
    if inspect.isawaitable(value):
        await value


def get_event_channel() -> EventChannel:
    """
    Return the process-wide EventChannel built by ChatConfig.ready().

    Raises:
        ChannelDisconnectedError: If the process has no channel layer
    """
    channel = apps.get_app_config("chat").event_channel
    if channel is None:
        raise ChannelDisconnectedError("Real-time delivery is not configured")
    return channel


def build_event_channel() -> EventChannel | None:
    """
    Build and connect the EventChannel for this process.

    Returns None when CHANNEL_LAYERS is empty so management commands that
    never publish still start.
    """
    if not getattr(settings, "CHANNEL_LAYERS", None):
        logger.warning("CHANNEL_LAYERS is not configured; real-time delivery disabled")
        return None
    return EventChannel().connect()
