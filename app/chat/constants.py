"""
Constants and configuration for the messaging core.

This module centralizes configuration values for:
- Message limits
- Client-side chat session behavior (timeouts, retries, reconnects)
- Conversation activity metrics
- WebSocket close codes

Import example:
    from chat.constants import MESSAGE_CONFIG, SESSION_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_BODY_LENGTH: Final[int] = 5000  # Characters, after trimming
    PREVIEW_LENGTH: Final[int] = 50


# =============================================================================
# Session Configuration
# =============================================================================


class SESSION_CONFIG:
    """
    Configuration for chat.session.ChatSession.

    The request timeout default comes from settings.CHAT_CLIENT_TIMEOUT_SECONDS;
    the bounds here clamp misconfiguration.
    """

    MIN_TIMEOUT_SECONDS: Final[float] = 10.0
    MAX_TIMEOUT_SECONDS: Final[float] = 30.0

    # Read-state updates are idempotent and retried automatically
    READ_RETRY_ATTEMPTS: Final[int] = 3
    READ_RETRY_BASE_DELAY_SECONDS: Final[float] = 0.5

    # Event channel re-subscription after a drop
    RESUBSCRIBE_ATTEMPTS: Final[int] = 3
    RESUBSCRIBE_BASE_DELAY_SECONDS: Final[float] = 1.0


# =============================================================================
# Activity Configuration
# =============================================================================


class ACTIVITY_CONFIG:
    """Configuration for dashboard activity metrics."""

    # "Recently active" conversations for the owner dashboard
    RECENT_ACTIVITY_WINDOW_HOURS: Final[int] = 24


# =============================================================================
# WebSocket Configuration
# =============================================================================


class WEBSOCKET_CLOSE_CODES:
    """Application close codes sent by chat.consumers.ChatConsumer."""

    UNAUTHENTICATED: Final[int] = 4001
    NOT_FOUND: Final[int] = 4004
