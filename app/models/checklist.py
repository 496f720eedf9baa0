"""
Checklist models - shared template catalog plus per-user completion flags
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class ChecklistTemplate(Base, TimestampMixin):
    """
    One onboarding task shown to every founder.
    """
    __tablename__ = "checklist_templates"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    category = Column(String(255), nullable=False)

    # Relationships
    progress = relationship("UserProgress", back_populates="template", cascade="all, delete-orphan")


class UserProgress(Base, TimestampMixin):
    """
    Completion flag for one (user, template) pair.
    """
    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "template_id", name="uq_user_progress_user_template"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    template_id = Column(Integer, ForeignKey("checklist_templates.id", ondelete="CASCADE"), nullable=False)
    done = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="progress")
    template = relationship("ChecklistTemplate", back_populates="progress")
