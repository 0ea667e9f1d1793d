# system_management/tests/factories.py
import factory
from factory.django import DjangoModelFactory, Password
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group

from system_management.models import Notification

User = get_user_model()


class UserFactory(DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.Sequence(lambda n: f'user{n}@learning-platform.test')
    password = Password('password')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    is_active = True


class StaffUserFactory(UserFactory):
    is_staff = True


class AdminUserFactory(UserFactory):
    is_staff = True
    is_superuser = True


class GroupFactory(DjangoModelFactory):
    class Meta:
        model = Group
        django_get_or_create = ('name',)

    name = 'admin'


class NotificationFactory(DjangoModelFactory):
    class Meta:
        model = Notification

    recipient = factory.SubFactory(UserFactory)
    notification_type = 'info'
    title = factory.Sequence(lambda n: f'Notification {n}')
    message = factory.Faker('sentence')
