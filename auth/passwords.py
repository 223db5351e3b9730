"""
auth/passwords.py -- Password hashing and credential verification.

Passwords: bcrypt directly (no passlib wrapper). Bcrypt is the right choice
for low-entropy secrets because its cost factor makes brute-force expensive,
and bcrypt.checkpw compares digests in constant time.

The _DUMMY_HASH constant enables timing equalization in
authenticate_principal() so response time does not reveal whether an
identifier exists.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from core.errors import ValidationError

if TYPE_CHECKING:
    from auth.models import Principal
    from auth.store import PrincipalStore

logger = logging.getLogger("verifytrack.auth")

MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only accepts 72 bytes of input (recent releases raise rather than
    truncate). Longer passwords raise ValidationError here so every caller,
    the store and the CLI included, gets a 400 instead of a driver error.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or non-bcrypt hash, or a password too long for bcrypt,
    verifies as False rather than raising.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("verifytrack_timing_dummy")


def authenticate_principal(store: PrincipalStore, identifier: str, password: str, role: str) -> Principal | None:
    """Check an (identifier, password, claimed role) triple against the store.

    Always runs bcrypt whether or not the identifier exists:
    - Unknown identifier: bcrypt runs against _DUMMY_HASH
    - Wrong password or wrong role: bcrypt runs against the real hash

    The role is compared only after the password so a role mismatch costs the
    same as any other failure. Returns the Principal on success, None on any
    failure -- callers must not tell the three cases apart.
    """
    principal = store.get_by_identifier(identifier)
    if principal is None or principal.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        logger.info("Login failed for %r: unknown identifier", identifier)
        return None
    if not verify_password(password, principal.hashed_password):
        logger.info("Login failed for %r: bad password", identifier)
        return None
    if principal.role.value != role:
        logger.info("Login failed for %r: role mismatch", identifier)
        return None
    return principal
