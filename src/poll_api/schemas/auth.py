"""Identity and authentication Pydantic v2 schemas.

Defines request/response schemas for registration, verification, login,
and password reset.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Registration with a school email and password."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class RegisterResponse(BaseModel):
    """Registration accepted; a verification code was sent."""

    message: str
    requires_verification: bool = True
    email: str


class VerifyRequest(BaseModel):
    """Verification code confirmation."""

    email: str = Field(min_length=3, max_length=255)
    code: str = Field(min_length=1, max_length=20)


class LoginRequest(BaseModel):
    """Login with email and password."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class ForgotPasswordRequest(BaseModel):
    """Request a password reset code."""

    email: str = Field(min_length=3, max_length=255)


class ResetPasswordRequest(BaseModel):
    """Replace the password using a reset code."""

    email: str = Field(min_length=3, max_length=255)
    code: str = Field(min_length=1, max_length=20)
    new_password: str = Field(min_length=1, max_length=128)


class IdentityResponse(BaseModel):
    """Public view of an identity."""

    id: UUID
    email: str
    verified: bool
    status: Literal["pending", "verified"]
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Access token issued after verification or login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiration in seconds")
    identity: IdentityResponse
