"""
Admin permission policy - one table mapping roles to capabilities
"""
import enum
from typing import FrozenSet

from app.models.admin import AdminRole


class Capability(str, enum.Enum):
    """Things an admin can be allowed to do"""
    VIEW_USERS = "view_users"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_CONTENT = "manage_content"  # checklist templates
    MANAGE_ADMINS = "manage_admins"
    MANAGE_USERS = "manage_users"  # protected edit/delete, 2FA resets


ROLE_CAPABILITIES = {
    AdminRole.SUPER_ADMIN: frozenset(Capability),
    AdminRole.ADMIN: frozenset({
        Capability.VIEW_USERS,
        Capability.VIEW_ANALYTICS,
        Capability.MANAGE_CONTENT,
    }),
}


def capabilities_for(role: AdminRole) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role: AdminRole, capability: Capability) -> bool:
    """True when the role grants the capability"""
    return capability in capabilities_for(role)
