"""
Pydantic schemas for admin dashboard endpoints
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, Optional
from datetime import datetime

from app.models.admin import AdminRole, AdminStatus
from app.schemas.user import UserResponse
from app.services.two_step import ActionType, ConfirmationState


class AdminLogin(BaseModel):
    email: EmailStr
    password: str


class AdminUserResponse(BaseModel):
    """Response schema for admin users"""
    id: int
    email: EmailStr
    name: str
    role: AdminRole
    status: AdminStatus
    added_by: str
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AdminToken(BaseModel):
    """JWT Token response schema for admins"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    admin: AdminUserResponse


class AdminUserCreate(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str = Field(min_length=8)
    role: AdminRole = AdminRole.ADMIN
    status: AdminStatus = AdminStatus.ACTIVE


class AdminUserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    role: Optional[AdminRole] = None
    status: Optional[AdminStatus] = None


# ==================== PROTECTED ACTIONS ====================

class ProtectedActionCreate(BaseModel):
    """Stage an edit or delete of a portal user"""
    action_type: ActionType
    target_email: EmailStr


class ProtectedActionStatus(BaseModel):
    """Current state of a two-step confirmation"""
    id: int
    action_type: ActionType
    target_email: str
    state: ConfirmationState
    target_snapshot: Optional[Dict[str, Any]] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProtectedActionStarted(ProtectedActionStatus):
    """Returned once when the flow starts; the only time the secret is shown"""
    secret: str
    otpauth_url: str


class ProtectedActionCode(BaseModel):
    code: str = Field(min_length=1, max_length=10)


class ProtectedEditRequest(ProtectedActionCode):
    """Second code plus the changes to apply"""
    action_id: int
    fields: Dict[str, Any] = Field(default_factory=dict)


class ProtectedDeleteRequest(ProtectedActionCode):
    action_id: int


class ProtectedActionResult(BaseModel):
    id: int
    state: ConfirmationState
    message: str
    user: Optional[UserResponse] = None
