"""
Authentication Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class LoginRequest(BaseModel):
    """Login request schema"""
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginResponse(BaseModel):
    """Login response schema"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: "AuthUser"


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema"""
    refresh_token: str


class RefreshTokenResponse(BaseModel):
    """Refresh token response schema"""
    access_token: str
    token_type: str = "bearer"


class CheckUserRequest(BaseModel):
    email: EmailStr


class CheckUserResponse(BaseModel):
    exists: bool
    has_permissions: bool


class AuthUser(BaseModel):
    """Signed-in user"""
    id: str
    email: str
    display_name: Optional[str] = None
    is_active: bool


# Update forward reference
LoginResponse.model_rebuild()
