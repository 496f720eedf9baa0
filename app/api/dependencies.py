"""
API Dependencies for authentication and authorization
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.permissions import Capability, has_capability
from app.db.session import get_db
from app.models.admin import AdminUser, AdminStatus
from app.models.user import User
from app.services.auth_service import auth_service, USER_SCOPE, ADMIN_SCOPE
from app.services.totp_service import TotpVerifier, totp_verifier


security = HTTPBearer(auto_error=False)


def _subject_from_token(credentials: Optional[HTTPAuthorizationCredentials], scope: str) -> int:
    """
    Validate a bearer token of the given scope and return its subject id.

    SECURITY: Always requires valid JWT token - no bypasses in any environment.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = auth_service.decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    if not subject or payload.get("scope") != scope:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return int(subject)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid subject in token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """Get current portal user ID from JWT token."""
    return _subject_from_token(credentials, USER_SCOPE)


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get the current authenticated user object.
    """
    user = await db.get(User, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current authenticated and active user.
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return current_user


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> AdminUser:
    """
    Get the current admin. Inactive admins are refused even with a valid token.
    """
    admin_id = _subject_from_token(credentials, ADMIN_SCOPE)
    admin = await db.get(AdminUser, admin_id)

    if not admin or admin.status != AdminStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access denied"
        )

    return admin


def require_capability(capability: Capability):
    """
    Dependency factory for the admin permission policy.
    Usage: admin: AdminUser = Depends(require_capability(Capability.MANAGE_USERS))
    """
    def check_capability(admin: AdminUser = Depends(get_current_admin)) -> AdminUser:
        if not has_capability(admin.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return admin

    return check_capability


def get_totp_verifier() -> TotpVerifier:
    """TOTP verifier used by every endpoint that checks codes"""
    return totp_verifier
