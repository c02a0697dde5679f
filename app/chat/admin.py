"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Chat management (with member inline)
- Message moderation
- Receipt inspection
"""

from django.contrib import admin

from chat.models import Chat, ChatMember, Message, MessageReceipt


class ChatMemberInline(admin.TabularInline):
    """Inline display of members in chat admin."""

    model = ChatMember
    extra = 0
    readonly_fields = ["created_at"]
    raw_id_fields = ["user"]


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    """Admin interface for Chat model."""

    list_display = [
        "id",
        "is_group",
        "title",
        "created_by",
        "created_at",
        "last_message_at",
    ]
    list_filter = ["is_group", "created_at"]
    search_fields = ["title", "id"]
    readonly_fields = ["created_at", "updated_at", "last_message_at", "last_seq"]
    raw_id_fields = ["created_by"]
    inlines = [ChatMemberInline]
    ordering = ["-created_at"]


class MessageReceiptInline(admin.TabularInline):
    model = MessageReceipt
    extra = 0
    readonly_fields = ["recipient", "delivered_at", "read_at"]
    can_delete = False


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "chat",
        "seq",
        "sender",
        "message_type",
        "body_preview",
        "ephemeral_expires_at",
        "created_at",
    ]
    list_filter = ["message_type", "created_at"]
    search_fields = ["body", "id", "chat__id"]
    readonly_fields = ["seq", "created_at", "updated_at", "server_received_at"]
    raw_id_fields = ["chat", "sender", "quoted_message", "edit_of"]
    inlines = [MessageReceiptInline]
    ordering = ["-created_at"]

    @admin.display(description="Body")
    def body_preview(self, obj):
        if not obj.body:
            return ""
        return obj.body[:50] + ("..." if len(obj.body) > 50 else "")


@admin.register(MessageReceipt)
class MessageReceiptAdmin(admin.ModelAdmin):
    """Admin interface for MessageReceipt model."""

    list_display = ["message", "recipient", "delivered_at", "read_at"]
    list_filter = ["delivered_at", "read_at"]
    raw_id_fields = ["message", "recipient"]
