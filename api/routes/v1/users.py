"""
api/routes/v1/users.py -- Principal management endpoints (admin only).

Routes:
  GET    /api/v1/users               -- list all principals
  GET    /api/v1/users/{identifier}  -- one principal
  POST   /api/v1/users               -- create principal (409 on duplicate identifier/email)
  PUT    /api/v1/users/{identifier}  -- partial update; password re-hashed by the store
  DELETE /api/v1/users/{identifier}  -- delete; an admin may not delete themself

Every handler takes the admin AuthContext from require_admin(), so a
General User gets 403 before any store access, and then passes it with the
operation and target to authorize_user_operation(). For DELETE that call
rejects self-deletion before the store is reached.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.models import PrincipalCreate, PrincipalUpdate, PrincipalView
from auth.dependencies import require_admin
from auth.models import AuthContext, Principal
from auth.policy import UserOperation, authorize_user_operation
from auth.store import PrincipalStore
from core.errors import NotFound, ValidationError

logger = logging.getLogger("verifytrack.api")

router = APIRouter()


@router.get("/users", response_model=list[PrincipalView])
def list_users(request: Request, admin: AuthContext = Depends(require_admin)) -> list[PrincipalView]:
    """List all principals, newest first."""
    store: PrincipalStore = request.app.state.principal_store
    authorize_user_operation(admin, UserOperation.LIST)
    return [PrincipalView.from_principal(p) for p in store.list_principals()]


@router.get("/users/{identifier}", response_model=PrincipalView)
def get_user(request: Request, identifier: str, admin: AuthContext = Depends(require_admin)) -> PrincipalView:
    store: PrincipalStore = request.app.state.principal_store
    authorize_user_operation(admin, UserOperation.READ, identifier)
    principal = store.get_by_identifier(identifier)
    if principal is None:
        raise NotFound("User not found.")
    return PrincipalView.from_principal(principal)


@router.post("/users", response_model=PrincipalView, status_code=201)
def create_user(
    request: Request,
    body: PrincipalCreate,
    admin: AuthContext = Depends(require_admin),
) -> PrincipalView:
    """Create a principal. The store hashes the password and enforces uniqueness."""
    store: PrincipalStore = request.app.state.principal_store
    authorize_user_operation(admin, UserOperation.CREATE, body.identifier)
    created = store.create_principal(
        Principal(
            identifier=body.identifier,
            role=body.role,
            name=body.name,
            email=body.email,
            department=body.department,
        ),
        body.password,
    )
    logger.info("Admin %r created user %r", admin.identifier, created.identifier)
    return PrincipalView.from_principal(created)


@router.put("/users/{identifier}", response_model=PrincipalView)
def update_user(
    request: Request,
    identifier: str,
    body: PrincipalUpdate,
    admin: AuthContext = Depends(require_admin),
) -> PrincipalView:
    """Update any subset of name, email, role, department, password."""
    store: PrincipalStore = request.app.state.principal_store
    authorize_user_operation(admin, UserOperation.UPDATE, identifier)
    updates = body.model_dump(exclude_unset=True)
    # name/email/role/password cannot be cleared; department can (explicit null).
    updates = {k: v for k, v in updates.items() if v is not None or k == "department"}
    if not updates:
        raise ValidationError("No fields to update.", code="no_changes")
    updated = store.update_principal(identifier, **updates)
    logger.info("Admin %r updated user %r (%s)", admin.identifier, identifier, ", ".join(sorted(updates)))
    return PrincipalView.from_principal(updated)


@router.delete("/users/{identifier}", status_code=204)
def delete_user(request: Request, identifier: str, admin: AuthContext = Depends(require_admin)) -> Response:
    store: PrincipalStore = request.app.state.principal_store
    authorize_user_operation(admin, UserOperation.DELETE, identifier)
    store.delete_principal(identifier)
    logger.info("Admin %r deleted user %r", admin.identifier, identifier)
    return Response(status_code=204)
