"""
User Management API Routes
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from callboard.database import get_db
from callboard.dependencies import get_current_user
from callboard.models import User
from callboard.schemas.user import (
    AccountUser,
    AssignableLocation,
    CreatableRole,
    MessageResponse,
    UserCreate,
    UserCreatedResponse,
    UserCreationPermission,
    UserUpdate,
)
from callboard.services import user_service

router = APIRouter(tags=["users"])


@router.get("/permissions", response_model=UserCreationPermission)
async def get_user_creation_permission(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Whether the current user may manage users in their account."""
    return user_service.can_user_create_users(db, current_user)


@router.get("/creatable-roles", response_model=List[CreatableRole])
async def get_creatable_roles(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.get_creatable_roles(db, current_user)


@router.get("/assignable-locations", response_model=List[AssignableLocation])
async def get_assignable_locations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.get_assignable_locations(db, current_user)


@router.get("", response_model=List[AccountUser])
async def list_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List all users in the current user's account."""
    return user_service.get_account_users(db, current_user)


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a user with one role at one of the current user's locations."""
    user = user_service.create_user(db, current_user, data)
    return UserCreatedResponse(user_id=str(user.id))


@router.patch("/{user_id}", response_model=MessageResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service.update_user(db, current_user, user_id, data)
    return MessageResponse(message="User updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_service.delete_user(db, current_user, user_id)
    return MessageResponse(message="User deleted successfully")
