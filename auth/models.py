"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in records/models.py -- dataclasses own domain shape; stores, policy and
routes do the work.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of principal roles. Values are the wire/storage strings."""

    GENERAL_USER = "General User"
    ADMIN = "Admin"


@dataclass
class Principal:
    """A stored identity that can log in.

    identifier and email are each unique across all principals.
    hashed_password is a bcrypt hash and never leaves the server -- API
    response models are built field by field and do not include it.

    id is None before the record is written to the database.
    """

    identifier: str
    role: Role
    name: str
    email: str
    department: str | None = None
    hashed_password: str | None = None
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class AuthContext:
    """The authenticated principal for the duration of one request.

    Built from verified token claims by the authentication gate and passed
    explicitly to every authorization decision. Role comes from the token,
    not from a fresh store read.
    """

    identifier: str
    role: Role
    email: str

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
