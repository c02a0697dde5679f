"""
Celery tasks for chat app.

This module defines periodic tasks for:
- Purging expired ephemeral messages

Scheduled by django_celery_beat (see migrations/0002_purge_schedule.py).

Usage:
    from chat.tasks import purge_expired_messages

    purge_expired_messages.delay()
"""

import logging

from celery import shared_task
from django.db import DatabaseError

from chat.broadcast import announce_message_deleted
from chat.services import MessageService

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def purge_expired_messages(self) -> int:
    """
    Delete messages whose ephemeral_expires_at has passed.

    Each deleted message is announced to its chat group as message:deleted.

    Returns:
        Number of messages deleted
    """
    deleted = MessageService().purge_expired_messages()
    for item in deleted:
        announce_message_deleted(item)

    if deleted:
        logger.info(f"Purged {len(deleted)} expired message(s)")
    return len(deleted)
