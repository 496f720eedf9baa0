"""
Audit trail for admin mutations
"""
from sqlalchemy import Column, Integer, String, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class AuditLog(Base, TimestampMixin):
    """
    Audit trail for protected admin actions
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True)

    # Action details
    action = Column(String(100), nullable=False)  # edit_user, delete_user
    entity_type = Column(String(100), nullable=False)  # user
    entity_ref = Column(String(255), nullable=True)  # email of the affected record

    # Changes (before/after as JSON)
    changes = Column(JSON, nullable=True)

    # Relationships
    admin = relationship("AdminUser")
