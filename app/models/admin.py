"""
Admin dashboard accounts
"""
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
import enum

from app.models.base import Base, TimestampMixin


class AdminRole(str, enum.Enum):
    """Admin roles - capabilities are mapped in app.core.permissions"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"


class AdminStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AdminUser(Base, TimestampMixin):
    """
    Admin dashboard user. Separate from portal users and authenticated
    with admin-scoped tokens.
    """
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(AdminRole), default=AdminRole.ADMIN, nullable=False)
    status = Column(SQLEnum(AdminStatus), default=AdminStatus.ACTIVE, nullable=False)
    added_by = Column(String(255), nullable=False)
    last_login = Column(DateTime, nullable=True)
