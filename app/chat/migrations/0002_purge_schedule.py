"""
Add the Celery Beat schedule that purges expired ephemeral messages.
"""

from django.db import migrations

PURGE_TASK_NAME = "Chat: Purge Expired Messages"


def create_periodic_tasks(apps, schema_editor):
    """Run the purge task every minute."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    every_minute, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=PURGE_TASK_NAME,
        defaults={
            "task": "chat.tasks.purge_expired_messages",
            "interval": every_minute,
            "enabled": True,
            "description": (
                "Hard-deletes messages whose ephemeral_expires_at has passed "
                "and notifies the chat rooms."
            ),
        },
    )


def remove_periodic_tasks(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name=PURGE_TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
