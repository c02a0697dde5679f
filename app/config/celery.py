"""
Celery configuration for the chat backend.

Celery runs the periodic maintenance jobs of the chat app (purging expired
ephemeral messages). Redis is both broker and result backend; schedules live
in the database via django-celery-beat.

Usage:
    from celery import shared_task

    @shared_task
    def purge_expired_messages():
        ...

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("chat_backend")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Look for a tasks.py module in each installed app
app.autodiscover_tasks()
