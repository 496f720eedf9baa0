"""
Self-service two-factor authentication for portal users
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.db.session import get_db
from app.models.user import User
from app.schemas.two_factor import (
    TwoFactorCode,
    TwoFactorSetupResponse,
    TwoFactorStatus,
)
from app.services.totp_service import TotpVerifier
from app.api.dependencies import get_current_active_user, get_totp_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Two-Factor Authentication"])


@router.get("/2fa-status", response_model=TwoFactorStatus)
async def get_two_factor_status(
    current_user: User = Depends(get_current_active_user)
):
    return TwoFactorStatus(enabled=current_user.two_factor_enabled)


@router.post("/2fa/setup", response_model=TwoFactorSetupResponse)
async def setup_two_factor(
    current_user: User = Depends(get_current_active_user),
    verifier: TotpVerifier = Depends(get_totp_verifier)
):
    """
    Issue a new secret for the user's authenticator app.

    Nothing is stored until a code is confirmed via /2fa/verify-setup, so an
    abandoned setup leaves the current 2FA configuration untouched.
    """
    issued = verifier.issue(current_user.email)
    return TwoFactorSetupResponse(secret=issued.secret, otpauth_url=issued.otpauth_url)


@router.post("/2fa/verify-setup", response_model=TwoFactorStatus)
async def verify_two_factor_setup(
    payload: TwoFactorCode,
    current_user: User = Depends(get_current_active_user),
    verifier: TotpVerifier = Depends(get_totp_verifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Confirm a code for the secret from /2fa/setup and enable 2FA.
    """
    if not payload.secret or not verifier.verify(payload.code, payload.secret):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification code"
        )

    current_user.two_factor_enabled = True
    current_user.two_factor_secret = payload.secret
    await db.commit()

    logger.info(f"2FA enabled for user {current_user.id}")
    return TwoFactorStatus(enabled=True)


@router.post("/2fa/disable", response_model=TwoFactorStatus)
async def disable_two_factor(
    payload: TwoFactorCode,
    current_user: User = Depends(get_current_active_user),
    verifier: TotpVerifier = Depends(get_totp_verifier),
    db: AsyncSession = Depends(get_db)
):
    """
    Turn 2FA off. Requires a current code from the enrolled authenticator.
    """
    if not current_user.two_factor_enabled:
        return TwoFactorStatus(enabled=False)

    if not verifier.verify(payload.code, current_user.two_factor_secret):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid verification code"
        )

    current_user.two_factor_enabled = False
    current_user.two_factor_secret = None
    await db.commit()

    logger.info(f"2FA disabled for user {current_user.id}")
    return TwoFactorStatus(enabled=False)
