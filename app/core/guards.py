"""
Authorization guards - pure decision functions consulted before any write.
Challenge: One place for "who may do what"; handlers call them explicitly.
Design: Guards return Allow/Reject values and never raise; `enforce` turns the
first Reject into its error.
"""

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from app.core.errors import MutationError, NotAuthenticated, OwnershipDenied, PermissionDenied

if TYPE_CHECKING:
    from app.db.models.user import User


class Permission(str, enum.Enum):
    """Capability tags granted to users."""

    ADMIN = "ADMIN"
    USER = "USER"
    ITEMCREATE = "ITEMCREATE"
    ITEMUPDATE = "ITEMUPDATE"
    ITEMDELETE = "ITEMDELETE"
    PERMISSIONUPDATE = "PERMISSIONUPDATE"


DEFAULT_PERMISSIONS = [
    Permission.USER,
    Permission.ITEMCREATE,
    Permission.ITEMUPDATE,
    Permission.ITEMDELETE,
]


@dataclass(frozen=True)
class AuthContext:
    """Per-request identity. Read-only; resolved once by the API layer."""

    user_id: int | None = None
    user: "User | None" = None

    @property
    def permissions(self) -> frozenset[str] | None:
        """Granted tags, or None for an anonymous caller."""
        if self.user is None:
            return None
        return frozenset(self.user.permissions or [])


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Reject:
    error: MutationError


Decision = Union[Allow, Reject]
ALLOW = Allow()


def _tags(values: Iterable) -> set[str]:
    return {v.value if isinstance(v, Permission) else str(v) for v in values}


def check_authenticated(auth: AuthContext) -> Decision:
    if auth.user_id is None:
        return Reject(NotAuthenticated())
    return ALLOW


def check_permission(user_permissions: Iterable | None, required: Iterable) -> Decision:
    """Allow if the caller holds any one of `required`.

    `None` means there is no caller at all, which is reported as
    NotAuthenticated rather than PermissionDenied.
    """
    if user_permissions is None:
        return Reject(NotAuthenticated())
    needed = _tags(required)
    if _tags(user_permissions) & needed:
        return ALLOW
    return Reject(
        PermissionDenied(f"You do not have sufficient permissions: {sorted(needed)}")
    )


def check_ownership(owner_id, caller_id) -> Decision:
    if owner_id is not None and owner_id == caller_id:
        return ALLOW
    return Reject(OwnershipDenied())


def enforce(*decisions: Decision) -> None:
    """Raise the error of the first rejection, in the order given."""
    for decision in decisions:
        if isinstance(decision, Reject):
            raise decision.error
