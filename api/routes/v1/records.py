"""
api/routes/v1/records.py -- Verification record routes.

Routes:
  GET    /api/v1/records              -- list records in the caller's scope
  POST   /api/v1/records              -- create; the caller becomes the owner
  GET    /api/v1/records/{record_id}  -- record detail
  PUT    /api/v1/records/{record_id}  -- partial update
  DELETE /api/v1/records/{record_id}  -- delete

Check order for a specific record: locate it first (404 if absent), then run
the ownership decision (403 if a General User does not own it). The
decisions themselves live in auth/policy.py; this module only feeds them the
principal and the stored owner_id.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.models import RecordCreate, RecordListResponse, RecordResponse, RecordUpdate
from auth.dependencies import get_current_principal
from auth.models import AuthContext
from auth.policy import RecordOperation, authorize_record_operation, record_scope
from core.errors import NotFound, ValidationError
from records.models import Record
from records.store import RecordStore

logger = logging.getLogger("verifytrack.api")

router = APIRouter()


def _load_authorized(store: RecordStore, record_id: str, principal: AuthContext, operation: RecordOperation) -> Record:
    record = store.get_record(record_id)
    if record is None:
        raise NotFound("Record not found.")
    authorize_record_operation(principal, operation, record.owner_id)
    return record


@router.get("/records", response_model=RecordListResponse)
def list_records(request: Request, principal: AuthContext = Depends(get_current_principal)) -> RecordListResponse:
    """Return records newest first. General Users only ever see their own."""
    store: RecordStore = request.app.state.record_store
    authorize_record_operation(principal, RecordOperation.LIST)
    scope = record_scope(principal)
    records = store.list_records(owner_id=scope.owner_id)
    return RecordListResponse(
        records=[RecordResponse.from_record(r) for r in records],
        count=len(records),
        role=principal.role,
    )


@router.post("/records", response_model=RecordResponse, status_code=201)
def create_record(
    request: Request,
    body: RecordCreate,
    principal: AuthContext = Depends(get_current_principal),
) -> RecordResponse:
    store: RecordStore = request.app.state.record_store
    authorize_record_operation(principal, RecordOperation.CREATE)
    created = store.create_record(
        Record(
            owner_id=principal.identifier,
            title=body.title,
            description=body.description,
            category=body.category,
            status=body.status,
            priority=body.priority,
            classification=body.classification,
            assigned_to=body.assigned_to,
            metadata=body.metadata,
        )
    )
    logger.info("%r created record %s", principal.identifier, created.record_id)
    return RecordResponse.from_record(created)


@router.get("/records/{record_id}", response_model=RecordResponse)
def get_record(
    request: Request,
    record_id: str,
    principal: AuthContext = Depends(get_current_principal),
) -> RecordResponse:
    store: RecordStore = request.app.state.record_store
    record = _load_authorized(store, record_id, principal, RecordOperation.READ)
    return RecordResponse.from_record(record)


@router.put("/records/{record_id}", response_model=RecordResponse)
def update_record(
    request: Request,
    record_id: str,
    body: RecordUpdate,
    principal: AuthContext = Depends(get_current_principal),
) -> RecordResponse:
    """Update any subset of the mutable fields. The owner never changes."""
    store: RecordStore = request.app.state.record_store
    _load_authorized(store, record_id, principal, RecordOperation.UPDATE)
    updates = body.model_dump(exclude_unset=True)
    # Required columns cannot be cleared; assigned_to and metadata can (explicit null).
    updates = {k: v for k, v in updates.items() if v is not None or k in ("assigned_to", "metadata")}
    if not updates:
        raise ValidationError("No fields to update.", code="no_changes")
    updated = store.update_record(record_id, **updates)
    if updated is None:
        # Deleted between the ownership check and the write.
        raise NotFound("Record not found.")
    return RecordResponse.from_record(updated)


@router.delete("/records/{record_id}", status_code=204)
def delete_record(
    request: Request,
    record_id: str,
    principal: AuthContext = Depends(get_current_principal),
) -> Response:
    store: RecordStore = request.app.state.record_store
    _load_authorized(store, record_id, principal, RecordOperation.DELETE)
    if not store.delete_record(record_id):
        raise NotFound("Record not found.")
    logger.info("%r deleted record %s", principal.identifier, record_id)
    return Response(status_code=204)
