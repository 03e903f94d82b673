"""
Celery application for background work.

Redis is both broker and result backend. Tasks are auto-discovered from
each installed app's tasks.py; the chat app uses it to retry read-state
updates that hit a transient database error.

Usage:
    from chat.tasks import mark_message_read_task

    mark_message_read_task.delay(message_id)
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
