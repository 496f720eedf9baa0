"""
Pydantic schemas for two-factor authentication
"""
from pydantic import BaseModel, Field
from typing import Optional


class TwoFactorSetupResponse(BaseModel):
    """Freshly issued secret to be scanned as a QR code"""
    secret: str
    otpauth_url: str


class TwoFactorVerifyRequest(BaseModel):
    """Check a code against an explicitly supplied secret"""
    token: str = Field(min_length=1, max_length=10)
    secret: str = Field(min_length=1)


class TwoFactorVerifyResponse(BaseModel):
    success: bool
    message: str


class TwoFactorCode(BaseModel):
    """A single code typed from an authenticator app"""
    code: str = Field(min_length=1, max_length=10)
    secret: Optional[str] = None


class TwoFactorStatus(BaseModel):
    enabled: bool
