from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from app.db.session import get_db
from app.models.user import User
from app.schemas.user import (
    UserCreate, UserLogin, Token, PasswordReset,
    PasswordResetConfirm, EmailVerification, UserResponse,
    PasswordChange, NotificationPreferences, NotificationUpdate,
)
from app.services.auth_service import auth_service
from app.services.email_service import email_service
from app.services.presence import presence_tracker
from app.services.totp_service import TotpVerifier
from app.api.dependencies import get_current_active_user, get_totp_verifier

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _display_name(user: User) -> str:
    return (user.full_name or "").strip() or user.email


# Register a new user account
@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db)
) -> Token:
    """
    Register a new founder or visitor account.
    Creates a new user with hashed password and sends email verification.
    Returns JWT token for immediate login.
    """

    result = await db.execute(
        select(User).where(User.email == user_data.email)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = await auth_service.create_user(db, user_data)
    token_response = await auth_service.create_token_response(user)

    # Email problems never fail registration
    if user.email_verification_token:
        email_sent = email_service.send_verification_email(
            user_email=user.email,
            user_name=_display_name(user),
            verification_token=user.email_verification_token
        )
        if email_sent:
            logger.info(f"Verification email sent to {user.email}")
        else:
            logger.warning(f"Failed to send verification email to {user.email}")

    return token_response


# Authenticate user and return JWT token
@router.post("/login", response_model=Token)
async def login(
    user_credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db),
    verifier: TotpVerifier = Depends(get_totp_verifier)
) -> Token:
    """
    Authenticate user and return JWT token.
    Validates email/password, then the TOTP code when 2FA is enabled.
    Implements account locking after failed attempts.
    """

    user = await auth_service.authenticate_user(
        db, user_credentials.email, user_credentials.password
    )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.two_factor_enabled:
        if not user.two_factor_secret:
            logger.error(f"2FA is enabled but secret is missing for user {user.id}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="2FA configuration error"
            )

        if not user_credentials.totp_code:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Two-factor code required",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not verifier.verify(user_credentials.totp_code, user.two_factor_secret):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid two-factor code",
                headers={"WWW-Authenticate": "Bearer"},
            )

    await auth_service.record_login(db, user)
    presence_tracker.touch(user, request.headers.get("user-agent"))

    return await auth_service.create_token_response(user)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    current_user: User = Depends(get_current_active_user)
) -> dict:
    """
    Drop the user from the logged-in users list.
    Tokens are stateless; the client discards its copy.
    """
    presence_tracker.remove(current_user.id)
    return {"message": "Logged out successfully"}


# Verify user email address with token
@router.post("/verify-email", status_code=status.HTTP_200_OK)
async def verify_email(
    verification_data: EmailVerification,
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Verify user email address with token.
    """

    user = await auth_service.verify_email(db, verification_data.token)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token"
        )

    if email_service.send_welcome_email(user_email=user.email, user_name=_display_name(user)):
        logger.info(f"Welcome email sent to {user.email}")
    else:
        logger.warning(f"Failed to send welcome email to {user.email}")

    return {"message": "Email verified successfully"}


# Resend email verification link
@router.post("/resend-verification", status_code=status.HTTP_200_OK)
async def resend_verification_email(
    email_request: PasswordReset,
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resend email verification link.
    Always returns success to prevent email enumeration attacks.
    """

    result = await db.execute(select(User).where(User.email == email_request.email))
    user = result.scalar_one_or_none()

    if user and not user.is_verified:
        user = await auth_service.generate_email_verification_token(db, user)

        if user and user.email_verification_token:
            email_sent = email_service.send_verification_email(
                user_email=user.email,
                user_name=_display_name(user),
                verification_token=user.email_verification_token
            )
            if email_sent:
                logger.info(f"Verification email resent to {user.email}")
            else:
                logger.warning(f"Failed to resend verification email to {user.email}")

    return {
        "message": "If the email exists and is unverified, a new verification link has been sent"
    }


# Request password reset token
@router.post("/forgot-password", status_code=status.HTTP_200_OK)
async def forgot_password(
    reset_request: PasswordReset,
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Request password reset token.
    Always returns success to prevent email enumeration attacks.
    """
    user = await auth_service.request_password_reset(db, reset_request.email)
    if user and user.password_reset_token:
        email_sent = email_service.send_password_reset_email(
            user_email=user.email,
            user_name=_display_name(user),
            reset_token=user.password_reset_token
        )
        if email_sent:
            logger.info(f"Password reset email sent to {user.email}")
        else:
            logger.warning(f"Failed to send password reset email to {user.email}")

    return {
        "message": "If the email exists, a password reset link has been sent"
    }


# Reset password with token
@router.post("/reset-password", status_code=status.HTTP_200_OK)
async def reset_password(
    reset_data: PasswordResetConfirm,
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Reset password with token.
    """

    success = await auth_service.reset_password(
        db, reset_data.token, reset_data.new_password
    )

    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    return {"message": "Password reset successfully"}


# Change password for authenticated user
@router.post("/change-password", status_code=status.HTTP_200_OK)
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Change password for authenticated user.
    Requires current password verification.
    Prevents same password from being used again.
    """

    if auth_service.verify_password(password_data.new_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from current password"
        )

    success = await auth_service.change_password(
        db, current_user, password_data.current_password, password_data.new_password
    )

    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    logger.info(f"Password changed successfully for user {current_user.email}")

    return {"message": "Password changed successfully"}


# Get current authenticated user information
@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> UserResponse:
    """
    Get current authenticated user information.
    """
    return UserResponse.model_validate(current_user)


@router.get("/notifications", response_model=NotificationPreferences)
async def get_notification_preferences(
    current_user: User = Depends(get_current_active_user)
) -> NotificationPreferences:
    """
    Get the current user's notification switches.
    """
    return NotificationPreferences.model_validate(current_user.notification_preferences or {})


@router.put("/notifications", response_model=NotificationPreferences)
async def update_notification_preferences(
    update: NotificationUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
) -> NotificationPreferences:
    """
    Flip one notification switch.
    """
    preferences = NotificationPreferences.model_validate(current_user.notification_preferences or {})
    section = getattr(preferences, update.section)

    if update.key not in type(section).model_fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown notification setting '{update.key}' in {update.section}"
        )

    setattr(section, update.key, update.value)
    # Assign a new dict so the JSON column is flagged dirty
    current_user.notification_preferences = preferences.model_dump()
    await db.commit()

    return preferences
