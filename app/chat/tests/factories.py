"""
Factory Boy factories for chat models.

Provides test data generation for:
- Chat: Direct and group chats (creator joins as owner)
- ChatMember: Membership rows
- Message: Messages with a seq
- MessageReceipt: Delivery/read state

Usage:
    from chat.tests.factories import ChatFactory, GroupChatFactory, MessageFactory

    # Direct chat: alice is owner, bob is member
    chat = ChatFactory(created_by=alice, members=[bob])

    # Group chat with three members
    chat = GroupChatFactory(created_by=alice, members=[bob, carol])

    # Raw message row (MessageService.send_message assigns seq for real)
    message = MessageFactory(chat=chat, sender=alice, seq=1)
"""

import factory

from authentication.tests.factories import UserFactory
from chat.models import Chat, ChatMember, Message, MessageReceipt, MessageType


class ChatFactory(factory.django.DjangoModelFactory):
    """
    Factory for Chat model.

    Creates a direct chat by default. The creator is added as OWNER and
    every user passed as ``members`` as MEMBER.
    """

    class Meta:
        model = Chat
        skip_postgeneration_save = True

    is_group = False
    title = ""
    created_by = factory.SubFactory(UserFactory)
    properties = factory.LazyFunction(dict)

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        if not create:
            return
        if self.created_by_id:
            ChatMember.objects.get_or_create(
                chat=self,
                user=self.created_by,
                defaults={"role": ChatMember.Role.OWNER},
            )
        for user in extracted or ():
            ChatMember.objects.get_or_create(chat=self, user=user)


class GroupChatFactory(ChatFactory):
    """Factory for group chats."""

    is_group = True
    title = factory.Sequence(lambda n: f"Group Chat {n}")


class ChatMemberFactory(factory.django.DjangoModelFactory):
    """Factory for ChatMember model."""

    class Meta:
        model = ChatMember

    chat = factory.SubFactory(GroupChatFactory)
    user = factory.SubFactory(UserFactory)
    role = ChatMember.Role.MEMBER


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    seq comes from a global sequence, so it is unique but not contiguous
    within a chat. Pass seq explicitly when the value matters.
    """

    class Meta:
        model = Message

    chat = factory.SubFactory(ChatFactory)
    sender = factory.SubFactory(UserFactory)
    message_type = MessageType.TEXT
    body = factory.Faker("sentence")
    seq = factory.Sequence(lambda n: n + 1)
    metadata = factory.LazyFunction(dict)


class MessageReceiptFactory(factory.django.DjangoModelFactory):
    """Factory for MessageReceipt model (undelivered by default)."""

    class Meta:
        model = MessageReceipt

    message = factory.SubFactory(MessageFactory)
    recipient = factory.SubFactory(UserFactory)
    delivered_at = None
    read_at = None
