"""
auth/tokens.py -- JWT issue and verification.

Security design decisions:
  JWT: python-jose with HS256. Issuer and verifier are the same process, so a
       symmetric HMAC signature is sufficient. Tokens carry the principal's
       identifier (sub), role, email, issue time and expiry. There is no
       server-side session store and no revocation: a token is good until exp.

  Failure kinds: decode_access_token() raises TokenInvalid or TokenExpired.
       The gate logs them separately but answers the client with one uniform
       401. The signature is checked before the claims, so a tampered token is
       always TokenInvalid even when it has also expired.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       refuses to start without a key outside DEBUG mode and rejects keys
       shorter than 32 characters.

Layer rule: no imports from api/ or records/. Import from core/ is allowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import Role
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Principal

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"


# ---------------------------------------------------------------------------
# Errors and claims
# ---------------------------------------------------------------------------


class TokenRejected(Exception):
    """Base for token verification failures. reason is for logs only."""

    reason = "rejected"


class TokenInvalid(TokenRejected):
    reason = "invalid_signature"


class TokenExpired(TokenRejected):
    reason = "expired"


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    role: Role
    email: str
    issued_at: datetime
    expires_at: datetime


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def issue_access_token(principal: Principal, expire_seconds: int = 0, now: datetime | None = None) -> str:
    """Encode a signed JWT for the given principal.

    Args:
        principal:      The authenticated principal (identifier, role, email).
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
        now:            Issue time override, used by tests to mint tokens that
                        are already past their expiry.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": principal.identifier,
        "role": Role(principal.role).value,
        "email": principal.email,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """Verify signature and expiry of a JWT and return its claims.

    Raises TokenExpired when the signature is good but exp has passed, and
    TokenInvalid for everything else (bad signature, malformed token, missing
    or unknown claims).
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired(str(exc)) from exc
    except JWTError as exc:
        raise TokenInvalid(str(exc)) from exc

    try:
        return TokenClaims(
            subject=payload["sub"],
            role=Role(payload["role"]),
            email=payload["email"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenInvalid(f"Malformed claims: {exc}") from exc
