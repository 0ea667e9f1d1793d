"""
Role resolution for system management features.

Callers resolve a user's role set once and pass it around; the core only
asks whether a role set carries a capability.
"""
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Q

ROLE_ADMIN = 'admin'
ROLE_STAFF = 'staff'


def admin_role_name():
    return getattr(settings, 'SYSTEM_ADMIN_ROLE', ROLE_ADMIN)


def resolve_roles(user):
    """Return the set of role names held by user (empty for anonymous users)"""
    if not user or not user.is_authenticated:
        return frozenset()

    roles = set(user.groups.values_list('name', flat=True))
    if user.is_superuser:
        roles.add(admin_role_name())
    if user.is_staff:
        roles.add(ROLE_STAFF)
    return frozenset(roles)


def has_role(roles, role):
    return role in roles


def can_view_system_health(roles):
    return has_role(roles, admin_role_name())


def can_manage_system(roles):
    return has_role(roles, admin_role_name()) or has_role(roles, ROLE_STAFF)


def resolve_admin_recipients():
    """Active users holding the admin role"""
    User = get_user_model()
    return User.objects.filter(
        Q(is_superuser=True) | Q(groups__name=admin_role_name()),
        is_active=True,
    ).distinct()


def is_system_admin(user):
    """user_passes_test predicate for the system management endpoints"""
    return can_manage_system(resolve_roles(user))
