"""
Client-side chat session.

ChatSession drives one user's view of one conversation: it subscribes to
the event channel, loads history, keeps an ordered, de-duplicated message
list, sends messages and keeps read flags up to date. It talks to the
messaging core through a MessagingBackend; ServiceBackend is the
in-process implementation over chat.services and an EventChannel.

States:
    CLOSED -> LOADING   open()
    LOADING -> LIVE     history loaded
    LIVE/LOADING -> CLOSED   close()

Failures never move the session between states. They are delivered to
``on_notice`` as SessionNotice records. Fetches and sends are not retried;
read updates are, a bounded number of times. Every backend call runs under
a timeout that surfaces as a retryable TransientNetworkError notice.

Usage:
    channel = EventChannel().connect()
    session = ChatSession(
        ServiceBackend(channel),
        user_id=owner.id,
        conversation_id=conversation.id,
        counterpart_id=renter.id,
        on_notice=show_toast,
    )
    await session.open()
    await session.send("Yes, available tomorrow.")
    await session.close()
"""

from __future__ import annotations

import asyncio
import bisect
import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from channels.db import database_sync_to_async
from django.conf import settings
from django.db import DatabaseError

from chat import api as chat_api
from chat.constants import SESSION_CONFIG
from chat.events import MessagePayload
from chat.exceptions import ChannelDisconnectedError, TransientNetworkError
from core.exceptions import BaseApplicationError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from chat.channel import EventChannel, SubscriptionHandle
    from chat.events import MessageAppended

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CLOSED = "closed"
    LOADING = "loading"
    LIVE = "live"


class NoticeKind(str, Enum):
    ERROR = "error"
    RECONNECTING = "reconnecting"
    RECONNECTED = "reconnected"


@dataclass(frozen=True)
class SessionNotice:
    """A user-visible, non-fatal notification."""

    kind: NoticeKind
    message: str
    error_code: str | None = None
    retryable: bool = False

    @classmethod
    def from_error(cls, exc: BaseApplicationError, kind: NoticeKind = NoticeKind.ERROR):
        return cls(
            kind=kind,
            message=exc.message,
            error_code=exc.error_code,
            retryable=exc.retryable,
        )


def default_timeout() -> float:
    """settings.CHAT_CLIENT_TIMEOUT_SECONDS clamped to the supported range."""
    configured = float(getattr(settings, "CHAT_CLIENT_TIMEOUT_SECONDS", 15.0))
    return min(
        max(configured, SESSION_CONFIG.MIN_TIMEOUT_SECONDS),
        SESSION_CONFIG.MAX_TIMEOUT_SECONDS,
    )


# =============================================================================
# Backends
# =============================================================================


class MessagingBackend(Protocol):
    """Operations a ChatSession needs from the messaging core."""

    async def fetch_history(self, conversation_id) -> list[MessagePayload]: ...

    async def send_message(
        self, conversation_id, sender_id, recipient_id, body: str
    ) -> MessagePayload: ...

    async def mark_message_read(self, message_id) -> bool: ...

    async def mark_all_read_for_user(self, conversation_id, user_id) -> int: ...

    async def subscribe(
        self,
        conversation_id,
        on_message: Callable[[MessageAppended], Awaitable[None] | None],
        on_disconnect: Callable[[Any, Exception], Awaitable[None] | None],
    ) -> Any: ...

    async def unsubscribe(self, handle: Any) -> None: ...


class ServiceBackend:
    """
    MessagingBackend over chat.api and an EventChannel.

    Database work runs in a worker thread via database_sync_to_async;
    database connectivity failures are reported as TransientNetworkError.
    """

    def __init__(self, channel: EventChannel):
        self.channel = channel

    async def _run(self, func, *args):
        try:
            return await database_sync_to_async(func)(*args)
        except DatabaseError as e:
            raise TransientNetworkError(f"Database unavailable: {e}") from e

    async def fetch_history(self, conversation_id) -> list[MessagePayload]:
        messages = await self._run(chat_api.fetch_history, conversation_id)
        return [MessagePayload.from_message(message) for message in messages]

    async def send_message(self, conversation_id, sender_id, recipient_id, body: str):
        message = await self._run(
            lambda: chat_api.send_message(
                conversation_id, sender_id, recipient_id, body, channel=self.channel
            )
        )
        return MessagePayload.from_message(message)

    async def mark_message_read(self, message_id) -> bool:
        return await self._run(chat_api.mark_message_read, message_id)

    async def mark_all_read_for_user(self, conversation_id, user_id) -> int:
        return await self._run(chat_api.mark_all_read_for_user, conversation_id, user_id)

    async def subscribe(self, conversation_id, on_message, on_disconnect) -> SubscriptionHandle:
        return await self.channel.subscribe(conversation_id, on_message, on_disconnect)

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        await self.channel.unsubscribe(handle)


# =============================================================================
# Session
# =============================================================================


class ChatSession:
    """
    One user's live view of one conversation.

    The message list is kept in (created_at, id) order and holds each
    message id once: a message arriving both as the send() result and as
    the channel's echo is stored a single time.

    Every open() starts a new generation. Callbacks and call results that
    belong to an earlier generation are dropped, so nothing from a closed
    session leaks into the next one.
    """

    def __init__(
        self,
        backend: MessagingBackend,
        user_id,
        conversation_id,
        counterpart_id,
        on_notice: Callable[[SessionNotice], None] | None = None,
        timeout: float | None = None,
        read_retry_delay: float = SESSION_CONFIG.READ_RETRY_BASE_DELAY_SECONDS,
        resubscribe_delay: float = SESSION_CONFIG.RESUBSCRIBE_BASE_DELAY_SECONDS,
    ):
        self.backend = backend
        self.user_id = user_id
        self.conversation_id = str(conversation_id)
        self.counterpart_id = counterpart_id
        self.on_notice = on_notice
        self.timeout = timeout if timeout is not None else default_timeout()
        self.read_retry_delay = read_retry_delay
        self.resubscribe_delay = resubscribe_delay

        self.state = SessionState.CLOSED
        self._messages: list[MessagePayload] = []
        self._index: dict[int, int] = {}
        self._generation = 0
        self._handle = None
        self._resubscribing: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return (
            f"ChatSession(user={self.user_id}, conversation={self.conversation_id}, "
            f"state={self.state.value})"
        )

    @property
    def messages(self) -> tuple[MessagePayload, ...]:
        return tuple(self._messages)

    @property
    def is_subscribed(self) -> bool:
        return self._handle is not None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def open(self) -> None:
        """Subscribe, load history, go LIVE and mark everything read."""
        if self.state != SessionState.CLOSED:
            return

        self._generation += 1
        generation = self._generation
        self.state = SessionState.LOADING

        try:
            await self._subscribe(generation)
        except BaseApplicationError as e:
            self._notify(SessionNotice.from_error(e))
        if self._is_stale(generation):
            return

        await self._load(generation)

    async def refresh(self) -> None:
        """Re-fetch history. Also completes a LOADING session whose load failed."""
        if self.state == SessionState.CLOSED:
            return
        generation = self._generation
        resubscribing = self._resubscribing
        if resubscribing is not None and not resubscribing.done():
            # The reconnect loop owns the subscription until it finishes
            await asyncio.wait([resubscribing])
            if self._is_stale(generation):
                return
        if self._handle is None:
            try:
                await self._subscribe(generation)
            except BaseApplicationError as e:
                self._notify(SessionNotice.from_error(e))
            if self._is_stale(generation):
                return
        await self._load(generation)

    async def close(self) -> None:
        """Unsubscribe and return to CLOSED. In-flight results are discarded."""
        if self.state == SessionState.CLOSED:
            return

        self._generation += 1
        self.state = SessionState.CLOSED
        handle, self._handle = self._handle, None
        self._resubscribing = None
        self._messages = []
        self._index = {}

        if handle is not None:
            try:
                await self.backend.unsubscribe(handle)
            except BaseApplicationError as e:
                logger.warning(f"Unsubscribe failed for {self!r}: {e}")

    # =========================================================================
    # Operations
    # =========================================================================

    async def send(self, body: str) -> MessagePayload | None:
        """
        Send a message to the counterpart.

        Returns the stored message, or None if the send failed (a notice
        is emitted) or the session was closed meanwhile.
        """
        if self.state != SessionState.LIVE:
            self._notify(
                SessionNotice.from_error(
                    ValidationError("Conversation is not open", error_code="SESSION_NOT_LIVE")
                )
            )
            return None

        generation = self._generation
        try:
            message = await self._call(
                self.backend.send_message(
                    self.conversation_id, self.user_id, self.counterpart_id, body
                )
            )
        except BaseApplicationError as e:
            if not self._is_stale(generation):
                self._notify(SessionNotice.from_error(e))
            return None

        if self._is_stale(generation):
            return None
        self._merge(message)
        return message

    # =========================================================================
    # Internals
    # =========================================================================

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation or self.state == SessionState.CLOSED

    async def _call(self, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise TransientNetworkError(
                f"Request timed out after {self.timeout:g}s",
                details={"conversation_id": self.conversation_id},
            ) from e

    def _notify(self, notice: SessionNotice) -> None:
        logger.debug(f"{self!r} notice: {notice.kind.value} {notice.error_code}")
        if self.on_notice is not None:
            self.on_notice(notice)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _subscribe(self, generation: int) -> None:
        handle = await self._call(
            self.backend.subscribe(
                self.conversation_id,
                lambda event: self._on_event(generation, event),
                lambda handle, exc: self._on_disconnect(generation, handle, exc),
            )
        )
        if self._is_stale(generation) or self._handle is not None:
            # Closed meanwhile, or a concurrent subscribe already won
            await self.backend.unsubscribe(handle)
            return
        self._handle = handle

    async def _load(self, generation: int) -> None:
        try:
            history = await self._call(self.backend.fetch_history(self.conversation_id))
        except BaseApplicationError as e:
            if not self._is_stale(generation):
                self._notify(SessionNotice.from_error(e))
            return
        if self._is_stale(generation):
            return

        for message in history:
            self._merge(message)
        self.state = SessionState.LIVE

        await self._with_read_retries(
            generation,
            lambda: self.backend.mark_all_read_for_user(self.conversation_id, self.user_id),
        )
        if not self._is_stale(generation):
            self._mark_local_read(
                m.id for m in self._messages if m.recipient_id == self.user_id
            )

    def _merge(self, message: MessagePayload) -> None:
        position = self._index.get(message.id)
        if position is not None:
            current = self._messages[position]
            if current.is_read and not message.is_read:
                message = dataclasses.replace(message, is_read=True)
            self._messages[position] = message
            return

        if not self._messages or self._messages[-1].sort_key <= message.sort_key:
            self._index[message.id] = len(self._messages)
            self._messages.append(message)
            return

        keys = [m.sort_key for m in self._messages]
        position = bisect.bisect_right(keys, message.sort_key)
        self._messages.insert(position, message)
        for offset, shifted in enumerate(self._messages[position:], start=position):
            self._index[shifted.id] = offset

    def _mark_local_read(self, message_ids) -> None:
        for message_id in list(message_ids):
            position = self._index.get(message_id)
            if position is not None and not self._messages[position].is_read:
                self._messages[position] = dataclasses.replace(
                    self._messages[position], is_read=True
                )

    def _on_event(self, generation: int, event: MessageAppended) -> None:
        if self._is_stale(generation):
            return
        message = event.message
        self._merge(message)
        if (
            self.state == SessionState.LIVE
            and message.recipient_id == self.user_id
            and not message.is_read
        ):
            self._spawn(self._mark_read(generation, message.id))

    async def _mark_read(self, generation: int, message_id: int) -> None:
        done = await self._with_read_retries(
            generation, lambda: self.backend.mark_message_read(message_id)
        )
        if done and not self._is_stale(generation):
            self._mark_local_read([message_id])

    async def _with_read_retries(self, generation: int, make_call) -> bool:
        attempts = SESSION_CONFIG.READ_RETRY_ATTEMPTS
        for attempt in range(attempts):
            try:
                await self._call(make_call())
                return True
            except BaseApplicationError as e:
                if self._is_stale(generation):
                    return False
                if not e.retryable or attempt == attempts - 1:
                    self._notify(SessionNotice.from_error(e))
                    return False
                logger.debug(f"{self!r} read update failed ({e}); retry {attempt + 1}")
                await asyncio.sleep(self.read_retry_delay * (2**attempt))
        return False

    async def _on_disconnect(self, generation: int, handle, exc: Exception) -> None:
        if self._is_stale(generation) or handle is not self._handle:
            return
        self._handle = None
        self._notify(
            SessionNotice.from_error(
                ChannelDisconnectedError(f"Live updates paused: {exc}"),
                kind=NoticeKind.RECONNECTING,
            )
        )
        self._resubscribing = self._spawn(self._resubscribe(generation))

    async def _resubscribe(self, generation: int) -> None:
        attempts = SESSION_CONFIG.RESUBSCRIBE_ATTEMPTS
        last_error: BaseApplicationError | None = None
        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(self.resubscribe_delay * (2 ** (attempt - 1)))
            if self._is_stale(generation):
                return
            try:
                await self._subscribe(generation)
            except BaseApplicationError as e:
                last_error = e
                continue
            if self._is_stale(generation):
                return
            self._notify(SessionNotice(kind=NoticeKind.RECONNECTED, message="Live updates resumed"))
            # Messages appended while disconnected are only in the history.
            await self._load(generation)
            return

        if not self._is_stale(generation):
            self._notify(
                SessionNotice.from_error(
                    last_error or ChannelDisconnectedError("Could not resume live updates")
                )
            )
