"""
Protected admin actions awaiting double verification
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin
from app.services.two_step import ActionType, ConfirmationState


class ProtectedAction(Base, TimestampMixin):
    """
    Persisted state of one two-step confirmation flow.

    The secret is only held while the flow is live; it is wiped when the
    action completes or is cancelled.
    """
    __tablename__ = "protected_actions"

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(Integer, ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)

    action_type = Column(SQLEnum(ActionType), nullable=False)
    target_email = Column(String(255), nullable=False)
    target_snapshot = Column(JSON, nullable=True)

    state = Column(SQLEnum(ConfirmationState), default=ConfirmationState.IDLE, nullable=False)
    secret = Column(String(64), nullable=True)
    first_step = Column(Integer, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    admin = relationship("AdminUser")
