"""
SQLAlchemy models - Import all for Alembic autogenerate
"""
from app.models.base import Base, TimestampMixin

# Import all models
from app.models.user import User, UserType
from app.models.admin import AdminUser, AdminRole, AdminStatus
from app.models.checklist import ChecklistTemplate, UserProgress
from app.models.protected_action import ProtectedAction
from app.models.audit import AuditLog

# Export all for easy imports
__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserType",
    "AdminUser",
    "AdminRole",
    "AdminStatus",
    "ChecklistTemplate",
    "UserProgress",
    "ProtectedAction",
    "AuditLog",
]
