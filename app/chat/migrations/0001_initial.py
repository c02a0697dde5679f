# Generated manually - initial schema for chats, members, messages and receipts

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def _uuid_pk():
    return (
        "id",
        models.UUIDField(
            default=uuid.uuid4,
            editable=False,
            help_text="Unique identifier for this record",
            primary_key=True,
            serialize=False,
        ),
    )


def _bigint_pk():
    return (
        "id",
        models.BigAutoField(
            auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Chat",
            fields=[
                *_timestamps(),
                _uuid_pk(),
                (
                    "is_group",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Whether this is a group chat"
                    ),
                ),
                (
                    "title",
                    models.CharField(
                        blank=True, default="", help_text="Chat title", max_length=255
                    ),
                ),
                (
                    "description",
                    models.TextField(blank=True, default="", help_text="Chat description"),
                ),
                (
                    "properties",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Opaque client-owned chat properties",
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Timestamp of most recent message (for sorting chat lists)",
                        null=True,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who created this chat",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_chats",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chats",
                "ordering": ["-last_message_at", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="ChatMember",
            fields=[
                _bigint_pk(),
                *_timestamps(),
                (
                    "role",
                    models.PositiveSmallIntegerField(
                        choices=[(0, "Member"), (1, "Admin"), (2, "Owner")],
                        default=0,
                        help_text="Role tier: 0 member, 1 admin, 2 owner",
                    ),
                ),
                (
                    "chat",
                    models.ForeignKey(
                        help_text="Chat this membership belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="chat.chat",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Member user",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_members",
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("chat", "user"), name="unique_chat_member"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                *_timestamps(),
                _uuid_pk(),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Opaque client-supplied key-value metadata",
                    ),
                ),
                (
                    "message_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("image", "Image"),
                            ("video", "Video"),
                            ("audio", "Audio"),
                            ("file", "File"),
                        ],
                        default="text",
                        help_text="Kind of content",
                        max_length=10,
                    ),
                ),
                ("body", models.TextField(blank=True, help_text="Text content", null=True)),
                (
                    "media_id",
                    models.UUIDField(
                        blank=True, help_text="Opaque reference to uploaded media", null=True
                    ),
                ),
                (
                    "ephemeral_expires_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Purge time for disappearing messages",
                        null=True,
                    ),
                ),
                (
                    "seq",
                    models.PositiveIntegerField(
                        help_text="Per-chat sequence number, contiguous from 1"
                    ),
                ),
                (
                    "server_received_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the server accepted the message",
                    ),
                ),
                (
                    "chat",
                    models.ForeignKey(
                        help_text="Chat this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.chat",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "quoted_message",
                    models.ForeignKey(
                        blank=True,
                        help_text="Message this one replies to",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quoted_by",
                        to="chat.message",
                    ),
                ),
                (
                    "edit_of",
                    models.ForeignKey(
                        blank=True,
                        help_text="Message this one supersedes",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="edits",
                        to="chat.message",
                    ),
                ),
            ],
            options={
                "db_table": "messages",
                "ordering": ["chat", "seq"],
                "indexes": [
                    models.Index(
                        fields=["chat", "-created_at"], name="messages_chat_created_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("chat", "seq"), name="unique_message_seq_per_chat"
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("seq__gte", 1)), name="message_seq_positive"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MessageReceipt",
            fields=[
                _bigint_pk(),
                *_timestamps(),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="First time the message reached one of the recipient's devices",
                        null=True,
                    ),
                ),
                (
                    "read_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="First time the recipient read the message",
                        null=True,
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Message this receipt tracks",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="receipts",
                        to="chat.message",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="Recipient user",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="message_receipts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "message_receipts",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["recipient", "delivered_at"],
                        name="receipts_recipient_deliv_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("message", "recipient"), name="unique_message_receipt"
                    ),
                ],
            },
        ),
    ]
