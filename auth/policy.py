"""
auth/policy.py -- Authorization decisions for principals and records.

Every function here is pure: it looks only at the AuthContext it is given and
at the target's identifier or owner, raises a core.errors exception to deny,
and returns normally to allow. No store access, no request object, no global
state -- routes fetch the target first and pass the fields in.

Rules:
  Principals (user management): Admin only. An admin may not delete their
      own account (InvalidOperation, distinct from Forbidden).
  Records:
      list    -- any principal; narrowed by record_scope() BEFORE the query
                 runs (General User sees only records they own).
      create  -- any principal; the caller becomes the owner.
      read/update/delete -- Admin always; General User only as owner.

Record classification (Public/Private/Restricted) is stored on every record
but is deliberately not an input to any decision below. Ownership and role
are the whole authorization surface.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from auth.models import AuthContext
from core.errors import Forbidden, InvalidOperation


class UserOperation(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RecordOperation(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class RecordScope:
    """Owner filter for record listings. owner_id=None means every record."""

    owner_id: str | None = None

    @property
    def unrestricted(self) -> bool:
        return self.owner_id is None


# ---------------------------------------------------------------------------
# Principal management
# ---------------------------------------------------------------------------


def require_admin(principal: AuthContext) -> None:
    """Deny with Forbidden unless the principal is an Admin."""
    if not principal.is_admin:
        raise Forbidden("Access denied. Admin privileges required.")


def authorize_user_operation(
    principal: AuthContext,
    operation: UserOperation,
    target_identifier: str | None = None,
) -> None:
    """Decide a user-management operation.

    The admin check runs first so a General User asking to delete themselves
    gets Forbidden, not InvalidOperation.
    """
    require_admin(principal)
    if operation is UserOperation.DELETE and target_identifier == principal.identifier:
        raise InvalidOperation("Cannot delete your own account.")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def record_scope(principal: AuthContext) -> RecordScope:
    """Return the listing scope for a principal.

    Admins see everything; everyone else is limited to records they own.
    """
    if principal.is_admin:
        return RecordScope()
    return RecordScope(owner_id=principal.identifier)


def authorize_record_operation(
    principal: AuthContext,
    operation: RecordOperation,
    owner_id: str | None = None,
) -> None:
    """Decide a record operation against the target record's owner.

    For READ/UPDATE/DELETE the caller must have located the record already
    and pass its owner_id -- a missing record is a NotFound decided by the
    caller before this check runs.
    """
    if operation in (RecordOperation.LIST, RecordOperation.CREATE):
        return
    if principal.is_admin:
        return
    if owner_id != principal.identifier:
        raise Forbidden(f"Access denied to {operation.value} this record.")
