"""Ownership and role rules, independent of any HTTP framework."""

from typing import Optional

from .errors import PermissionDeniedError
from .models.user import ROLE_ADMIN


def can_access(actor_role: str, actor_id: Optional[int], resource_owner_id: Optional[int]) -> bool:
    """Admins may touch anything; everyone else only what they own."""
    if actor_role == ROLE_ADMIN:
        return True
    return actor_id is not None and actor_id == resource_owner_id


def ensure_access(actor_role: str, actor_id: Optional[int], resource_owner_id: Optional[int]) -> None:
    if not can_access(actor_role, actor_id, resource_owner_id):
        raise PermissionDeniedError("You can only access your own resources")


def require_role(actor_role: str, *allowed: str) -> None:
    if allowed and actor_role not in allowed:
        raise PermissionDeniedError(f"Insufficient permissions. Required roles: {', '.join(allowed)}")
