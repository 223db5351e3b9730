"""
auth/dependencies.py -- Authentication gate and FastAPI Depends() helpers.

One credential is accepted: an "Authorization: Bearer <token>" header
carrying a JWT issued by POST /auth/login.

authenticate_token() is the gate itself. It is a plain function of
(token, store) so it can be tested without a request object:
  - no token                         -> Unauthenticated("...required.")
  - bad signature / malformed / expired
    / principal no longer exists     -> Unauthenticated("Invalid or expired token.")
The token failure kinds are logged separately but never reach the client.

get_current_principal() wraps the gate for FastAPI and returns the
AuthContext as a handler argument; nothing is attached to the request.
require_admin() adds the admin-role decision from auth/policy.py.

Layer rule: no imports from api/ or records/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth import policy
from auth.models import AuthContext
from auth.store import PrincipalStore
from auth.tokens import TokenRejected, decode_access_token
from core.errors import Unauthenticated

logger = logging.getLogger("verifytrack.auth")

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an Authorization header value, or None.

    Anything other than "Bearer <non-empty token>" counts as no token.
    """
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None


def authenticate_token(token: str | None, store: PrincipalStore) -> AuthContext:
    """Turn a presented token into an AuthContext or raise Unauthenticated.

    The store lookup only confirms the principal still exists. The role in
    the returned context is the one the token was issued with.
    """
    if not token:
        raise Unauthenticated("Authentication token is required.")
    try:
        claims = decode_access_token(token)
    except TokenRejected as exc:
        logger.info("Rejected bearer token (%s)", exc.reason)
        raise Unauthenticated("Invalid or expired token.") from exc

    if store.get_by_identifier(claims.subject) is None:
        logger.info("Rejected bearer token (unknown_subject) for %r", claims.subject)
        raise Unauthenticated("Invalid or expired token.")

    return AuthContext(identifier=claims.subject, role=claims.role, email=claims.email)


def get_current_principal(request: Request) -> AuthContext:
    """Require authentication. Raises Unauthenticated (HTTP 401) on any failure.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: AuthContext = Depends(get_current_principal)): ...
    """
    store: PrincipalStore = request.app.state.principal_store
    token = extract_bearer_token(request.headers.get("Authorization"))
    return authenticate_token(token, store)


def require_admin(request: Request) -> AuthContext:
    """Require admin role. Raises HTTP 401 if unauthenticated, HTTP 403 if not admin.

    Use as a FastAPI dependency:
        @router.post("/admin-only")
        def route(principal: AuthContext = Depends(require_admin)): ...
    """
    principal = get_current_principal(request)
    policy.require_admin(principal)
    return principal
