"""
Factory Boy factories for authentication models.

Usage:
    from authentication.tests.factories import UserFactory

    user = UserFactory()
    online = UserFactory(is_online=True)
    alice = UserFactory(name="Alice", password="secret1")
"""

import factory

from authentication.models import User

DEFAULT_PASSWORD = "TestPass123!"


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Users are active and offline by default.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    phone_number = factory.Sequence(lambda n: f"+1555{n:07d}")
    name = factory.Faker("name")
    is_active = True
    is_online = False

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Override create to use UserManager.create_user()."""
        password = kwargs.pop("password", DEFAULT_PASSWORD)
        return model_class.objects.create_user(
            phone_number=kwargs.pop("phone_number"), password=password, **kwargs
        )
