"""
api/routes/v1/auth.py -- Login, logout and identity endpoints.

Routes:
  POST /api/v1/auth/login   -- identifier + password + role; returns a bearer JWT
  POST /api/v1/auth/logout  -- stateless; the client discards its token
  GET  /api/v1/auth/me      -- current principal (requires auth)

Security:
  POST /login is rate-limited per client IP (Settings.login_rate_limit).
  authenticate_principal() provides timing equalization -- use it, never inline.
  Unknown identifier, wrong password and role mismatch all return the same
  401 bad_credentials body so the response cannot be used to enumerate IDs.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, MessageResponse, PrincipalView
from auth.dependencies import get_current_principal
from auth.models import AuthContext
from auth.passwords import authenticate_principal
from auth.store import PrincipalStore
from auth.tokens import issue_access_token
from core.config import get_settings
from core.errors import NotFound

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/login:  public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout: public -- no server-side session to end
# - GET  /api/v1/auth/me:     requires auth (get_current_principal)
router = APIRouter()


@limiter.limit(_settings.login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with identifier, password and claimed role; return a JWT.

    The token is returned in the body only. Clients send it back as
    "Authorization: Bearer <token>".
    """
    store: PrincipalStore = request.app.state.principal_store
    principal = authenticate_principal(store, body.identifier, body.password, body.role)
    if principal is None:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Invalid credentials.")
            ).model_dump(exclude_none=True),
        )
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["WWW-Authenticate"] = "Bearer"
        return resp

    token = issue_access_token(principal)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            expires_in=_settings.token_expire_seconds,
            principal=PrincipalView.from_principal(principal),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Acknowledge logout. Tokens are self-contained and simply expire."""
    return MessageResponse(message="Logout successful.")


@router.get("/auth/me", response_model=PrincipalView)
def me(request: Request, principal: AuthContext = Depends(get_current_principal)) -> PrincipalView:
    """Return the stored profile of the currently authenticated principal."""
    store: PrincipalStore = request.app.state.principal_store
    current = store.get_by_identifier(principal.identifier)
    if current is None:
        raise NotFound("User not found.")
    return PrincipalView.from_principal(current)
