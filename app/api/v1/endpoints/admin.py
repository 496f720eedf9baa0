"""
Admin API Endpoints - admin-scoped tokens only
Handles admin accounts, protected user actions and dashboard statistics
"""
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List
import logging

from app.core.permissions import Capability
from app.db.session import get_db
from app.models import AdminUser, AdminRole, ChecklistTemplate, ProtectedAction, User, UserType
from app.schemas.admin import (
    AdminLogin,
    AdminToken,
    AdminUserCreate,
    AdminUserResponse,
    AdminUserUpdate,
    ProtectedActionCode,
    ProtectedActionCreate,
    ProtectedActionStarted,
    ProtectedActionStatus,
)
from app.services.auth_service import auth_service
from app.services.protected_actions import ProtectedActionNotFound, ProtectedActionService
from app.services.totp_service import TotpVerifier
from app.services.two_step import ConfirmationState, InvalidTransition
from app.api.dependencies import get_current_admin, get_totp_verifier, require_capability

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== AUTH ====================

@router.post("/auth/login", response_model=AdminToken)
async def admin_login(
    credentials: AdminLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Authenticate an admin and return an admin-scoped JWT.
    """
    admin = await auth_service.authenticate_admin(db, credentials.email, credentials.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"Admin {admin.email} logged in")
    return await auth_service.create_admin_token_response(admin)


@router.get("/auth/me", response_model=AdminUserResponse)
async def get_current_admin_info(
    admin: AdminUser = Depends(get_current_admin)
):
    return AdminUserResponse.model_validate(admin)


# ==================== ADMIN USERS ====================

async def _get_admin_or_404(db: AsyncSession, admin_id: int) -> AdminUser:
    admin = await db.get(AdminUser, admin_id)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Admin user with ID {admin_id} not found"
        )
    return admin


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(AdminUser.id).where(AdminUser.email == email))
    return result.scalar_one_or_none() is not None


async def _super_admin_count(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(AdminUser.id)).where(AdminUser.role == AdminRole.SUPER_ADMIN)
    )
    return result.scalar() or 0


@router.get("/admin-users", response_model=List[AdminUserResponse])
async def list_admin_users(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin)
):
    result = await db.execute(select(AdminUser).order_by(AdminUser.created_at.desc(), AdminUser.id.desc()))
    return [AdminUserResponse.model_validate(a) for a in result.scalars().all()]


@router.post("/admin-users", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
async def create_admin_user(
    admin_data: AdminUserCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_ADMINS))
):
    """
    Add an admin account (super admins only).
    """
    if await _email_taken(db, admin_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Admin with email '{admin_data.email}' already exists"
        )

    new_admin = AdminUser(
        email=admin_data.email,
        name=admin_data.name,
        password_hash=auth_service.hash_password(admin_data.password),
        role=admin_data.role,
        status=admin_data.status,
        added_by=admin.email,
    )
    db.add(new_admin)
    await db.commit()
    await db.refresh(new_admin)

    logger.info(f"Admin {admin.email} added {new_admin.role.value} {new_admin.email}")
    return AdminUserResponse.model_validate(new_admin)


@router.put("/admin-users/{admin_id}", response_model=AdminUserResponse)
async def update_admin_user(
    admin_id: int,
    admin_data: AdminUserUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_ADMINS))
):
    target = await _get_admin_or_404(db, admin_id)
    update_data = admin_data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in update_data and update_data["email"] != target.email:
        if await _email_taken(db, update_data["email"]):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Admin with email '{update_data['email']}' already exists"
            )

    # Demoting the last super admin would lock everyone out of admin management
    if (
        target.role == AdminRole.SUPER_ADMIN
        and update_data.get("role", AdminRole.SUPER_ADMIN) != AdminRole.SUPER_ADMIN
        and await _super_admin_count(db) <= 1
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot demote the last super admin"
        )

    for field, value in update_data.items():
        setattr(target, field, value)

    await db.commit()
    await db.refresh(target)

    return AdminUserResponse.model_validate(target)


@router.delete("/admin-users/{admin_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_admin_user(
    admin_id: int,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_ADMINS))
):
    """
    Remove an admin account. The last super admin cannot be removed,
    and nobody can remove their own account.
    """
    target = await _get_admin_or_404(db, admin_id)

    if target.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account"
        )

    if target.role == AdminRole.SUPER_ADMIN and await _super_admin_count(db) <= 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete the last super admin"
        )

    await db.delete(target)
    await db.commit()

    logger.info(f"Admin {admin.email} removed admin {target.email}")


# ==================== PROTECTED ACTIONS ====================

@router.post("/protected-actions", response_model=ProtectedActionStarted, status_code=status.HTTP_201_CREATED)
async def start_protected_action(
    action_data: ProtectedActionCreate,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS)),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Stage an edit or delete of a portal user.

    Returns a fresh secret for the admin's authenticator app. The action then
    needs two codes from consecutive time windows: the first via
    /protected-actions/{id}/verify, the second together with the change itself
    via /user/update/{email} or /user/delete/{email}.
    """
    service = ProtectedActionService(db, admin, verifier)
    try:
        record, issued = await service.start(action_data.action_type, action_data.target_email)
    except ProtectedActionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    status_data = ProtectedActionStatus.model_validate(record).model_dump()
    return ProtectedActionStarted(
        **status_data,
        secret=issued.secret,
        otpauth_url=issued.otpauth_url,
    )


@router.get("/protected-actions/{action_id}", response_model=ProtectedActionStatus)
async def get_protected_action(
    action_id: int,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS)),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    service = ProtectedActionService(db, admin, verifier)
    try:
        record = await service.get(action_id)
    except ProtectedActionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ProtectedActionStatus.model_validate(record)


@router.post("/protected-actions/{action_id}/verify", response_model=ProtectedActionStatus)
async def verify_protected_action(
    action_id: int,
    payload: ProtectedActionCode,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS)),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Submit the first code. On success the action waits for a code from a
    later time window.
    """
    service = ProtectedActionService(db, admin, verifier)
    try:
        record, error = await service.submit_first_code(action_id, payload.code)
    except ProtectedActionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    return ProtectedActionStatus.model_validate(record)


@router.delete("/protected-actions/{action_id}", response_model=ProtectedActionStatus)
async def cancel_protected_action(
    action_id: int,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS)),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Abandon a pending action. The target record is left untouched.
    """
    service = ProtectedActionService(db, admin, verifier)
    try:
        record = await service.cancel(action_id)
    except ProtectedActionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return ProtectedActionStatus.model_validate(record)


# ==================== STATISTICS ====================

@router.get("/stats")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(require_capability(Capability.VIEW_ANALYTICS))
):
    """
    Get dashboard statistics.

    Returns:
    - Total, founder and visitor user counts
    - Verified and 2FA-enabled user counts
    - Sign-ups in the last 7 days
    - Checklist template count
    - Pending protected actions
    """
    async def count(*criteria) -> int:
        query = select(func.count(User.id))
        if criteria:
            query = query.where(*criteria)
        result = await db.execute(query)
        return result.scalar() or 0

    template_result = await db.execute(select(func.count(ChecklistTemplate.id)))
    pending_result = await db.execute(
        select(func.count(ProtectedAction.id)).where(
            ProtectedAction.state.notin_([ConfirmationState.COMPLETED, ConfirmationState.CANCELLED])
        )
    )

    return {
        "total_users": await count(),
        "founders": await count(User.user_type == UserType.FOUNDER),
        "visitors": await count(User.user_type == UserType.VISITOR),
        "verified_users": await count(User.is_verified == True),
        "two_factor_users": await count(User.two_factor_enabled == True),
        "new_users_last_7_days": await count(User.created_at >= datetime.utcnow() - timedelta(days=7)),
        "checklist_templates": template_result.scalar() or 0,
        "pending_protected_actions": pending_result.scalar() or 0,
    }
