"""
Pydantic schemas for User endpoints
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime
from app.models.user import UserType


class UserProfile(BaseModel):
    """Editable profile fields shared by founders and visitors"""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    company_name: Optional[str] = None
    founded_year: Optional[int] = Field(default=None, ge=1800, le=2100)
    linkedin_url: Optional[str] = None
    industry: Optional[str] = None
    company_description: Optional[str] = None
    current_stage: Optional[str] = None
    company_working_at: Optional[str] = None


class UserCreate(UserProfile):
    """Schema for creating a user via registration"""
    email: EmailStr
    full_name: str = Field(min_length=1)
    password: str = Field(min_length=8, description="Password must be at least 8 characters")
    user_type: UserType = UserType.FOUNDER


class UserAdminUpdate(UserProfile):
    """Fields an admin may change on a portal user"""
    two_factor_enabled: Optional[bool] = None

    class Config:
        extra = "forbid"


class UserResponse(UserProfile):
    """Response schema for users"""
    id: int
    email: EmailStr
    full_name: str
    user_type: UserType
    is_active: bool
    is_verified: bool
    two_factor_enabled: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    """Schema for user login"""
    email: EmailStr
    password: str
    totp_code: Optional[str] = Field(default=None, description="Required when 2FA is enabled")


class Token(BaseModel):
    """JWT Token response schema"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class PasswordReset(BaseModel):
    """Schema for password reset request"""
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Schema for password reset confirmation"""
    token: str
    new_password: str = Field(min_length=8, description="Password must be at least 8 characters")


class EmailVerification(BaseModel):
    """Schema for email verification"""
    token: str


class PasswordChange(BaseModel):
    """Schema for changing password (authenticated users)"""
    current_password: str
    new_password: str = Field(min_length=8, description="New password must be at least 8 characters")


class EmailNotifications(BaseModel):
    new_opportunities: bool = False
    newsletter: bool = False
    application_updates: bool = False
    investor_messages: bool = False


class SystemNotifications(BaseModel):
    task_reminders: bool = False
    deadline_alerts: bool = False
    news_updates: bool = False


class NotificationPreferences(BaseModel):
    """Notification switches grouped by channel"""
    email_notifications: EmailNotifications = Field(default_factory=EmailNotifications)
    system_notifications: SystemNotifications = Field(default_factory=SystemNotifications)


class NotificationUpdate(BaseModel):
    """Flip a single notification switch"""
    section: Literal["email_notifications", "system_notifications"]
    key: str
    value: bool


class UserGrowthPoint(BaseModel):
    date: str
    count: int


class UserGrowth(BaseModel):
    """Daily sign-ups over the last 30 days"""
    founders: list[UserGrowthPoint]
    visitors: list[UserGrowthPoint]


class LoggedInUser(BaseModel):
    """Entry of the logged-in users tracker"""
    user_id: int
    email: str
    full_name: str
    user_type: UserType
    last_active: datetime
    device_info: str
    two_factor_enabled: bool


class LoggedInUsers(BaseModel):
    data: list[LoggedInUser]
    total_users: int
