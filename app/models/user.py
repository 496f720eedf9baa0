"""
Founder and visitor accounts
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin


class UserType(str, enum.Enum):
    """Portal account types"""
    FOUNDER = "founder"
    VISITOR = "visitor"


def default_notification_preferences() -> dict:
    """Every notification switch starts off"""
    return {
        "email_notifications": {
            "new_opportunities": False,
            "newsletter": False,
            "application_updates": False,
            "investor_messages": False,
        },
        "system_notifications": {
            "task_reminders": False,
            "deadline_alerts": False,
            "news_updates": False,
        },
    }


class User(Base, TimestampMixin):
    """
    Portal user - founders manage a company profile, visitors browse.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    user_type = Column(SQLEnum(UserType), default=UserType.FOUNDER, nullable=False)

    # Profile
    phone = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    company_name = Column(String(255), nullable=True)
    founded_year = Column(Integer, nullable=True)
    linkedin_url = Column(String(500), nullable=True)
    industry = Column(String(255), nullable=True)
    company_description = Column(Text, nullable=True)
    current_stage = Column(String(100), nullable=True)
    company_working_at = Column(String(255), nullable=True)  # visitors only

    # Status & Security
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime, nullable=True)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)

    # Password reset
    password_reset_token = Column(String(255), nullable=True)
    password_reset_expires = Column(DateTime, nullable=True)

    # Email verification
    email_verification_token = Column(String(255), nullable=True)
    email_verification_expires = Column(DateTime, nullable=True)

    # Two-factor authentication
    two_factor_enabled = Column(Boolean, default=False, nullable=False)
    two_factor_secret = Column(String(64), nullable=True)

    notification_preferences = Column(JSON, default=default_notification_preferences, nullable=False)

    # Relationships
    progress = relationship("UserProgress", back_populates="user", cascade="all, delete-orphan")
