"""
Access control evaluation for user management.

Two independent gates:

* the coarse tier gate (``meets_creation_threshold``) decides whether an actor
  may create/update/delete users at all, against the account's threshold;
* the permission-set gate (``can_assign``) decides which role an actor may
  hand out or act upon. Permission sets are not nested by tier, so this is a
  subset test over permission ids, never a tier comparison.

Nothing here raises on a negative decision. Callers resolve both sides first
and report lookup failures separately from denials.
"""
from typing import Iterable, List, Optional, TypeVar

from callboard.config.permissions import DEFAULT_USER_CREATION_TIER

T = TypeVar("T")


def can_assign(actor_permissions: Iterable[int], target_permissions: Iterable[int]) -> bool:
    """True iff every permission the target role grants is held by the actor."""
    return set(target_permissions).issubset(actor_permissions)


def filter_creatable_roles(actor_permissions: Iterable[int], catalog: Iterable[T]) -> List[T]:
    """
    Keep the catalog entries the actor may assign, preserving order.

    Entries are RolePermissionSet rows or anything else exposing
    ``permission_ids``.
    """
    held = frozenset(actor_permissions)
    return [role for role in catalog if can_assign(held, role.permission_ids or ())]


def meets_creation_threshold(actor_tier: int, required_tier: Optional[int] = None) -> bool:
    """Tier gate for user management. An unset threshold means owners only."""
    if required_tier is None:
        required_tier = DEFAULT_USER_CREATION_TIER
    return actor_tier >= required_tier
