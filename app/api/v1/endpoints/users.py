"""
User administration endpoints - admin token required
"""
from datetime import datetime, timedelta
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional
import logging

from app.core.permissions import Capability
from app.db.session import get_db
from app.models import AdminUser, User, UserType
from app.schemas.admin import (
    ProtectedActionResult,
    ProtectedDeleteRequest,
    ProtectedEditRequest,
)
from app.schemas.two_factor import (
    TwoFactorSetupResponse,
    TwoFactorVerifyRequest,
    TwoFactorVerifyResponse,
)
from app.schemas.user import (
    LoggedInUsers,
    NotificationPreferences,
    UserGrowth,
    UserGrowthPoint,
    UserResponse,
)
from app.services.admin_actions import AdminActionError, TargetNotFound
from app.services.presence import presence_tracker
from app.services.protected_actions import (
    ProtectedActionError,
    ProtectedActionNotFound,
    ProtectedActionService,
)
from app.services.totp_service import TotpVerifier
from app.services.two_step import ActionType, InvalidTransition
from app.api.dependencies import get_current_admin, get_totp_verifier, require_capability

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== VERIFICATION ====================

@router.post("/setup-2fa", response_model=TwoFactorSetupResponse)
async def setup_two_factor(
    admin: AdminUser = Depends(get_current_admin),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Issue a fresh secret for the admin's authenticator app.
    """
    issued = verifier.issue(admin.email)
    return TwoFactorSetupResponse(secret=issued.secret, otpauth_url=issued.otpauth_url)


@router.post("/verify-2fa", response_model=TwoFactorVerifyResponse)
async def verify_two_factor(
    payload: TwoFactorVerifyRequest,
    admin: AdminUser = Depends(get_current_admin),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Check a code against a secret. Wrong and expired codes look the same.
    """
    verified = verifier.verify(payload.token, payload.secret)
    return TwoFactorVerifyResponse(
        success=verified,
        message="Verification successful" if verified else "Invalid code",
    )


# ==================== PROTECTED MUTATIONS ====================

async def _complete_protected_action(
    service: ProtectedActionService,
    action_type: ActionType,
    email: str,
    request: ProtectedDeleteRequest,
    fields: Optional[dict] = None,
):
    try:
        return await service.complete(request.action_id, action_type, email, request.code, fields)
    except ProtectedActionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TargetNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ProtectedActionError, AdminActionError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/update/{email}", response_model=ProtectedActionResult)
async def update_user(
    email: str,
    request: ProtectedEditRequest,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS)),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Edit a portal user. Submits the second code of a protected edit action;
    the changes are applied only when that code verifies.
    """
    service = ProtectedActionService(db, admin, verifier)
    record, user, error = await _complete_protected_action(
        service, ActionType.EDIT, email, request, request.fields
    )
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    return ProtectedActionResult(
        id=record.id,
        state=record.state,
        message="User updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("/delete/{email}", response_model=ProtectedActionResult)
async def delete_user(
    email: str,
    request: ProtectedDeleteRequest = Body(...),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS)),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Delete a portal user. Submits the second code of a protected delete action.
    """
    service = ProtectedActionService(db, admin, verifier)
    record, _, error = await _complete_protected_action(service, ActionType.DELETE, email, request)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    return ProtectedActionResult(
        id=record.id,
        state=record.state,
        message="User deleted successfully",
    )


@router.post("/reset-2fa/{user_id}")
async def reset_user_two_factor(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS))
):
    """
    Switch 2FA off for a user who lost their authenticator.
    """
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    user.two_factor_enabled = False
    user.two_factor_secret = None
    await db.commit()

    logger.info(f"Admin {admin.email} reset 2FA for user {user_id}")
    return {"message": "2FA reset successfully"}


# ==================== DIRECTORY ====================

@router.get("/all-users", response_model=List[UserResponse])
async def list_all_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user_type: Optional[UserType] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.VIEW_USERS))
):
    """
    List founders and visitors, newest first.
    """
    query = select(User)
    if user_type is not None:
        query = query.where(User.user_type == user_type)
    if search:
        query = query.where(
            User.email.ilike(f"%{search}%") | User.full_name.ilike(f"%{search}%")
        )

    query = query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit)
    result = await db.execute(query)

    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.get("/logged-in-users", response_model=LoggedInUsers)
async def get_logged_in_users(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.VIEW_ANALYTICS))
):
    """
    Users who logged in within the presence window, plus the total user count.
    """
    total_result = await db.execute(select(func.count(User.id)))
    return LoggedInUsers(
        data=presence_tracker.active(),
        total_users=total_result.scalar() or 0,
    )


@router.get("/notifications/{email}", response_model=NotificationPreferences)
async def get_user_notifications(
    email: str,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.VIEW_USERS))
):
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return NotificationPreferences.model_validate(user.notification_preferences or {})


@router.get("/user-growth", response_model=UserGrowth)
async def get_user_growth(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.VIEW_ANALYTICS))
):
    """
    Daily sign-ups over the last 30 days, split by account type.
    """
    since = datetime.utcnow() - timedelta(days=30)
    day = func.date(User.created_at)

    result = await db.execute(
        select(User.user_type, day.label("day"), func.count(User.id))
        .where(User.created_at >= since)
        .group_by(User.user_type, day)
        .order_by(day)
    )

    growth = {UserType.FOUNDER: [], UserType.VISITOR: []}
    for user_type, signup_day, count in result.all():
        growth[user_type].append(UserGrowthPoint(date=str(signup_day), count=count))

    return UserGrowth(founders=growth[UserType.FOUNDER], visitors=growth[UserType.VISITOR])
