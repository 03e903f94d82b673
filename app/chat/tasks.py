"""
Celery tasks for chat app.

This module defines async tasks for:
- Read-state updates deferred after a transient database failure

Read updates only ever set is_read from False to True, so re-running them
is harmless and they can be retried with backoff until the database is back.

Related files:
    - services.py: ReadStateService
    - consumers.py: Enqueues these tasks when an inline update fails

Usage:
    from chat.tasks import mark_message_read_task

    mark_message_read_task.delay(message_id)
"""

import logging

from celery import shared_task
from django.db import OperationalError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def mark_message_read_task(self, message_id: int) -> bool:
    """
    Mark a message as read.

    Args:
        message_id: ID of the message

    Returns:
        True if this run flipped the flag, False if it was already read or
        the message no longer exists
    """
    from chat.services import ReadStateService

    result = ReadStateService.mark_message_read(message_id)
    if not result.success:
        logger.warning(f"Deferred read of message {message_id} dropped: {result.error_code}")
        return False
    return result.data


@shared_task(
    bind=True,
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def mark_all_read_task(self, conversation_id: str, user_id: int) -> int:
    """
    Mark every unread message addressed to a user in a conversation.

    Returns:
        Number of messages flipped
    """
    from chat.services import ReadStateService

    result = ReadStateService.mark_all_read_for_user(conversation_id, user_id)
    if not result.success:
        logger.warning(
            f"Deferred read-all for conversation {conversation_id} dropped: {result.error_code}"
        )
        return 0
    return result.data
