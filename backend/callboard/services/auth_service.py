"""
Authentication Service
"""
import uuid
from datetime import datetime
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from callboard.models import User, UserRolePermission
from callboard.utils.security import (
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_token_type
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_user_id(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def get_user_by_id(db: Session, user_id) -> Optional[User]:
    parsed = parse_user_id(user_id)
    if parsed is None:
        return None
    return db.query(User).filter(User.id == parsed).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Authenticate a user with email and password

    Args:
        db: Database session
        email: User email (case-insensitive)
        password: Plain text password

    Returns:
        User object if authentication successful, None otherwise
    """
    user = get_user_by_email(db, email)

    if not user:
        return None

    if not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        return None

    # Update last login
    user.last_login = datetime.utcnow()
    db.commit()

    return user


def check_user_exists(db: Session, email: str) -> Tuple[bool, bool]:
    """(exists, has_permissions): whether the email is registered and holds any grant."""
    user = get_user_by_email(db, email)
    if not user:
        return False, False
    grant = db.query(UserRolePermission.id).filter(UserRolePermission.user_id == user.id).first()
    return True, grant is not None


def _token_data(user: User) -> dict:
    return {"sub": str(user.id), "email": user.email}


def create_user_tokens(user: User) -> Tuple[str, str]:
    """
    Create access and refresh tokens for a user

    Returns:
        Tuple of (access_token, refresh_token)
    """
    access_token = create_access_token(_token_data(user))
    refresh_token = create_refresh_token({"sub": str(user.id)})
    return access_token, refresh_token


def decode_access_token(token: str) -> Optional[dict]:
    """Decoded payload of a valid access token, else None"""
    payload = decode_token(token)

    if payload is None:
        return None

    if not verify_token_type(payload, "access"):
        return None

    return payload


def decode_refresh_token(token: str) -> Optional[dict]:
    """Decoded payload of a valid refresh token, else None"""
    payload = decode_token(token)

    if payload is None:
        return None

    if not verify_token_type(payload, "refresh"):
        return None

    return payload


def refresh_access_token(db: Session, refresh_token: str) -> Optional[str]:
    """
    Create a new access token from a refresh token

    Args:
        db: Database session
        refresh_token: JWT refresh token

    Returns:
        New access token or None if invalid
    """
    payload = decode_refresh_token(refresh_token)

    if payload is None:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    user = get_user_by_id(db, user_id)

    if not user or not user.is_active:
        return None

    return create_access_token(_token_data(user))
