"""
User management workflows: create, list, update and delete users within the
actor's account.

Every mutating workflow runs the same checks, in order:

1. resolve the actor's role and account (404 when missing),
2. the account's tier threshold for user management (403),
3. self-protection (403),
4. resolve the target (404) and compare permission sets (403).
"""
import logging
from collections import OrderedDict
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from callboard.config.permissions import DEFAULT_USER_CREATION_TIER
from callboard.models import (
    AccountSetting,
    Location,
    RolePermissionSet,
    User,
    UserAuditLog,
    UserRolePermission,
)
from callboard.schemas.user import (
    AccountUser,
    AssignableLocation,
    CreatableRole,
    UserCreate,
    UserCreationPermission,
    UserLocation,
    UserUpdate,
)
from callboard.services.access_control import can_assign, filter_creatable_roles, meets_creation_threshold
from callboard.services.auth_service import get_user_by_email, get_user_by_id, normalize_email, parse_user_id
from callboard.services.location_service import get_accessible_locations
from callboard.utils.security import hash_password

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────
# Lookups
# ─────────────────────────────────────────────────


def _first_grant(db: Session, user: User) -> Optional[UserRolePermission]:
    """
    Earliest grant. Roles are held per location, so this only stands in for
    the user's own role and account when acting as the actor.
    """
    return (
        db.query(UserRolePermission)
        .options(joinedload(UserRolePermission.role_permission), joinedload(UserRolePermission.location))
        .filter(UserRolePermission.user_id == user.id)
        .order_by(UserRolePermission.created_at, UserRolePermission.location_id)
        .first()
    )


def get_user_role(db: Session, user: User) -> Optional[RolePermissionSet]:
    grant = _first_grant(db, user)
    return grant.role_permission if grant else None


def get_account_id(db: Session, user: User) -> Optional[int]:
    grant = _first_grant(db, user)
    if grant is None or grant.location is None:
        return None
    return grant.location.account_id


def get_creation_threshold(db: Session, account_id: int) -> int:
    setting = db.query(AccountSetting).filter(AccountSetting.account_id == account_id).first()
    if setting is None or setting.user_creation_permission_level is None:
        return DEFAULT_USER_CREATION_TIER
    return setting.user_creation_permission_level


def can_user_create_users(db: Session, user: User) -> UserCreationPermission:
    """Whether the user passes the account's tier threshold, with their tier."""
    role = get_user_role(db, user)
    if role is None:
        return UserCreationPermission(can_create=False, user_role_id=None)

    account_id = get_account_id(db, user)
    if account_id is None:
        return UserCreationPermission(can_create=False, user_role_id=role.role_id)

    required = get_creation_threshold(db, account_id)
    return UserCreationPermission(
        can_create=meets_creation_threshold(role.role_id, required),
        user_role_id=role.role_id,
    )


def _require_actor_role(db: Session, actor: User, detail: str = "User role not found") -> RolePermissionSet:
    role = get_user_role(db, actor)
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return role


def _require_user_management(db: Session, actor: User, action: str) -> Tuple[RolePermissionSet, int]:
    """Actor's role and account id, once the tier threshold is met."""
    role = _require_actor_role(db, actor, "Your role not found")
    account_id = get_account_id(db, actor)
    if account_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Creator account not found")

    if not meets_creation_threshold(role.role_id, get_creation_threshold(db, account_id)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not have permission to {action} users",
        )
    return role, account_id


def _require_role_set(db: Session, role_permission_id: int) -> RolePermissionSet:
    role = db.get(RolePermissionSet, role_permission_id)
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target role not found")
    return role


def _require_target(db: Session, target_user_id: str, account_id: int) -> User:
    """Target user holding at least one grant inside the actor's account."""
    target = get_user_by_id(db, target_user_id)
    if target is None or not any(
        g.location is not None and g.location.account_id == account_id for g in target.grants
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Target user not found")
    return target


def _account_grants(target: User, account_id: int) -> List[UserRolePermission]:
    return [g for g in target.grants if g.location is not None and g.location.account_id == account_id]


def _outranks_all(actor_role: RolePermissionSet, grants: List[UserRolePermission]) -> bool:
    """The actor covers the role the target holds at every one of these locations."""
    return all(can_assign(actor_role.permission_set, g.role_permission.permission_set) for g in grants)


def _is_self(actor: User, target_user_id: str) -> bool:
    return parse_user_id(target_user_id) == actor.id


def _record_audit(db: Session, target_id, actor_id, action: str, changes: dict) -> None:
    db.add(UserAuditLog(
        modified_user_id=target_id,
        modified_by_user_id=actor_id,
        action=action,
        changes=changes,
    ))


def _commit(db: Session, failure_detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s: %s", failure_detail, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail)


# ─────────────────────────────────────────────────
# Catalog / options for the create form
# ─────────────────────────────────────────────────


def get_creatable_roles(db: Session, actor: User) -> List[CreatableRole]:
    """Role-permission-sets the actor may hand out, ordered by tier."""
    actor_role = _require_actor_role(db, actor)

    catalog = (
        db.query(RolePermissionSet)
        .options(joinedload(RolePermissionSet.role))
        .order_by(RolePermissionSet.role_id, RolePermissionSet.role_permission_id)
        .all()
    )

    return [
        CreatableRole(
            role_permission_id=role.role_permission_id,
            name=role.name,
            description=role.description,
            role_name=role.role.name if role.role else None,
            role_id=role.role_id,
            permission_ids=sorted(role.permission_set),
        )
        for role in filter_creatable_roles(actor_role.permission_set, catalog)
    ]


def get_assignable_locations(db: Session, actor: User) -> List[AssignableLocation]:
    locations = get_accessible_locations(db, actor)
    if not locations:
        logger.warning("No locations found for user %s", actor.id)
    return [
        AssignableLocation(location_id=loc.location_id, location_name=loc.name, account_id=loc.account_id)
        for loc in locations
    ]


# ─────────────────────────────────────────────────
# Workflows
# ─────────────────────────────────────────────────


def create_user(db: Session, actor: User, data: UserCreate) -> User:
    """Create a user with one role at one of the actor's locations."""
    email = normalize_email(data.email)
    creator_role, _ = _require_user_management(db, actor, "create")

    target_role = _require_role_set(db, data.role_permission_id)
    if not can_assign(creator_role.permission_set, target_role.permission_set):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have sufficient permissions to create users with this role",
        )

    creator_location_ids = {loc.location_id for loc in get_accessible_locations(db, actor)}
    if data.location_id not in creator_location_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this location",
        )

    if get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'A user with the email "{email}" already exists in the system',
        )

    # User, grant and audit row commit together; a failed grant leaves no user behind
    user = User(
        email=email,
        display_name=data.full_name or None,
        password_hash=hash_password(data.password),
        created_by=actor.id,
    )
    db.add(user)
    db.flush()

    db.add(UserRolePermission(
        user_id=user.id,
        location_id=data.location_id,
        role_permission_id=target_role.role_permission_id,
    ))
    _record_audit(db, user.id, actor.id, "created", {
        "email": email,
        "full_name": data.full_name or None,
        "role_permission_id": target_role.role_permission_id,
        "location_id": data.location_id,
    })
    _commit(db, "Failed to create user account")
    db.refresh(user)

    logger.info("User %s created by %s", user.id, actor.id)
    return user


def get_account_users(db: Session, actor: User) -> List[AccountUser]:
    """Everyone holding a grant at any location of the actor's account, sorted by email."""
    account_id = get_account_id(db, actor)
    if account_id is None:
        return []

    grants = (
        db.query(UserRolePermission)
        .join(Location, UserRolePermission.location_id == Location.location_id)
        .options(
            joinedload(UserRolePermission.user),
            joinedload(UserRolePermission.location),
            joinedload(UserRolePermission.role_permission).joinedload(RolePermissionSet.role),
        )
        .filter(Location.account_id == account_id)
        .order_by(UserRolePermission.created_at, UserRolePermission.location_id)
        .all()
    )

    by_user: "OrderedDict[str, List[UserRolePermission]]" = OrderedDict()
    for grant in grants:
        by_user.setdefault(str(grant.user_id), []).append(grant)

    users = []
    for user_id, user_grants in by_user.items():
        user = user_grants[0].user
        role_set = user_grants[0].role_permission
        users.append(AccountUser(
            user_id=user_id,
            email=user.email if user else "Unknown",
            display_name=user.display_name if user else None,
            created_at=user.created_at if user else None,
            role_name=role_set.role.name if role_set and role_set.role else "No role",
            role_permission_name=role_set.name if role_set else "No permission set",
            role_permission_id=role_set.role_permission_id if role_set else None,
            locations=[
                UserLocation(location_id=g.location_id, location_name=g.location.name)
                for g in user_grants
            ],
        ))

    return sorted(users, key=lambda u: u.email)


def update_user(db: Session, actor: User, target_user_id: str, data: UserUpdate) -> None:
    """Apply the set fields of ``data`` to another user's grants in the actor's account."""
    actor_role, account_id = _require_user_management(db, actor, "update")

    if _is_self(actor, target_user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Use your profile page to update your own information",
        )

    target = _require_target(db, target_user_id, account_id)
    account_grants = _account_grants(target, account_id)
    if not _outranks_all(actor_role, account_grants):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot update users with higher permissions than yours",
        )

    new_role = None
    if data.role_permission_id is not None:
        new_role = _require_role_set(db, data.role_permission_id)
        if not can_assign(actor_role.permission_set, new_role.permission_set):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have sufficient permissions to assign this role",
            )

    location_ids = None
    if data.location_ids is not None:
        if not data.location_ids:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="At least one location is required",
            )
        creator_location_ids = {loc.location_id for loc in get_accessible_locations(db, actor)}
        if any(loc_id not in creator_location_ids for loc_id in data.location_ids):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have access to some of the specified locations",
            )
        location_ids = list(dict.fromkeys(data.location_ids))

    # Everything validated; apply
    changes = {}
    if "full_name" in data.model_fields_set:
        target.display_name = data.full_name or None
        changes["display_name"] = target.display_name

    if new_role is not None:
        for grant in account_grants:
            grant.role_permission_id = new_role.role_permission_id
        changes["role_permission_id"] = new_role.role_permission_id

    if location_ids is not None:
        # Kept locations keep their grant; new ones take the new role or the first existing one
        default_role_id = new_role.role_permission_id if new_role else account_grants[0].role_permission_id
        kept = {g.location_id: g for g in account_grants}
        for grant in account_grants:
            if grant.location_id not in location_ids:
                target.grants.remove(grant)
        db.flush()
        for loc_id in location_ids:
            if loc_id not in kept:
                target.grants.append(UserRolePermission(
                    location_id=loc_id,
                    role_permission_id=default_role_id,
                ))
        changes["location_ids"] = location_ids

    if changes:
        _record_audit(db, target.id, actor.id, "updated", changes)
    _commit(db, "Failed to update user")
    logger.info("User %s updated by %s: %s", target.id, actor.id, sorted(changes))


def delete_user(db: Session, actor: User, target_user_id: str) -> None:
    """
    Remove a user from the actor's account.

    Only grants inside the account are removed. The user row goes too once no
    grant anywhere remains.
    """
    actor_role, account_id = _require_user_management(db, actor, "delete")

    if _is_self(actor, target_user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot delete your own account",
        )

    target = _require_target(db, target_user_id, account_id)
    account_grants = _account_grants(target, account_id)
    if not _outranks_all(actor_role, account_grants):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot delete users with higher permissions than yours",
        )

    target_id = target.id
    for grant in account_grants:
        target.grants.remove(grant)
    user_removed = not target.grants

    _record_audit(db, target_id, actor.id, "deleted", {
        "email": target.email,
        "account_id": account_id,
        "user_removed": user_removed,
        "deleted_at": datetime.utcnow().isoformat(),
    })
    if user_removed:
        db.delete(target)
    _commit(db, "Failed to delete user")
    logger.info("User %s removed from account %s by %s", target_id, account_id, actor.id)
