"""
Add Chat.last_seq, the highest seq ever handed out in a chat.

Existing chats start from their current highest message seq.
"""

from django.db import migrations, models
from django.db.models import Max, OuterRef, Subquery
from django.db.models.functions import Coalesce


def populate_last_seq(apps, schema_editor):
    """Set last_seq to max(seq) of each chat. Safe to run more than once."""
    Chat = apps.get_model("chat", "Chat")
    Message = apps.get_model("chat", "Message")

    highest = (
        Message.objects.filter(chat_id=OuterRef("pk"))
        .order_by()
        .values("chat_id")
        .annotate(top=Max("seq"))
        .values("top")
    )
    Chat.objects.update(
        last_seq=Coalesce(Subquery(highest), 0, output_field=models.PositiveIntegerField())
    )


class Migration(migrations.Migration):
    dependencies = [
        ("chat", "0002_purge_schedule"),
    ]

    operations = [
        migrations.AddField(
            model_name="chat",
            name="last_seq",
            field=models.PositiveIntegerField(
                default=0,
                help_text="Highest seq ever assigned; deleted messages never free their seq",
            ),
        ),
        migrations.RunPython(
            populate_last_seq,
            migrations.RunPython.noop,
            elidable=True,
        ),
    ]
