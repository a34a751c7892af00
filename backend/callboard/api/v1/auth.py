"""
Authentication API Routes
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from callboard.config import settings
from callboard.database import get_db
from callboard.rate_limit import limiter
from callboard.schemas.auth import (
    AuthUser,
    CheckUserRequest,
    CheckUserResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
)
from callboard.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
@limiter.limit(f"{settings.LOGIN_RATE_LIMIT_PER_MINUTE}/minute")
async def login(
    request: Request,
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Login with email and password

    Returns access token, refresh token, and user info
    """
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)

    if not user:
        logger.info("Failed login for %s", auth_service.normalize_email(credentials.email))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, refresh_token = auth_service.create_user_tokens(user)

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=AuthUser(
            id=str(user.id),
            email=user.email,
            display_name=user.display_name,
            is_active=user.is_active,
        )
    )


@router.post("/refresh", response_model=RefreshTokenResponse)
async def refresh_token(
    data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """
    Refresh access token using refresh token
    """
    new_access_token = auth_service.refresh_access_token(db, data.refresh_token)

    if not new_access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return RefreshTokenResponse(access_token=new_access_token)


@router.post("/check-user", response_model=CheckUserResponse)
async def check_user(
    data: CheckUserRequest,
    db: Session = Depends(get_db)
):
    """Whether an email is registered and holds at least one location grant"""
    exists, has_permissions = auth_service.check_user_exists(db, data.email)
    return CheckUserResponse(exists=exists, has_permissions=has_permissions)


@router.post("/logout")
async def logout():
    """
    Logout user

    Client should delete tokens from local storage
    """
    return {"message": "Successfully logged out"}
