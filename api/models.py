"""
API request and response models for VerifyTrack REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
records/models.py, which own the internal domain representation. Route
handlers map between the two.

Password hashes never appear here: PrincipalView is built field by field from
the domain Principal.

Passwords are taken verbatim. Models that carry one do not use the
model-wide str_strip_whitespace setting; their other text fields strip via
the _Text annotated type instead.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import Principal, Role
from auth.passwords import MAX_PASSWORD_BYTES
from records.models import Classification, Record, RecordPriority, RecordStatus

# Identifier format shared by login and user management.
IDENTIFIER_PATTERN = r"^[A-Za-z0-9_.-]+$"
# Deliberately loose: uniqueness matters more than RFC 5322 conformance.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
# Stripped text for models that cannot strip model-wide because they hold a password.
_Text = Annotated[str, StringConstraints(strip_whitespace=True)]


def _check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")
    return value


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    role is a plain string rather than Role so an unknown role is rejected the
    same way as a wrong one (401), not with a 422 that confirms the identifier
    exists.
    """

    identifier: _Text = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)
    role: _Text = Field(min_length=1, max_length=30)


class PrincipalView(BaseModel):
    """Outward view of a principal. Never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    name: str
    email: str
    role: Role
    department: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalView":
        return cls(
            identifier=principal.identifier,
            name=principal.name,
            email=principal.email,
            role=principal.role,
            department=principal.department,
            created_at=principal.created_at,
            updated_at=principal.updated_at,
        )


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"  # noqa: S105 # nosec B105 -- OAuth token type, not a password
    expires_in: int
    principal: PrincipalView


# ---------------------------------------------------------------------------
# User management
# ---------------------------------------------------------------------------


class PrincipalCreate(BaseModel):
    """Request body for POST /api/v1/users."""

    identifier: _Text = Field(min_length=1, max_length=64, pattern=IDENTIFIER_PATTERN)
    password: str = Field(min_length=8, max_length=MAX_PASSWORD_BYTES)
    role: Role
    name: _Text = Field(min_length=1, max_length=255)
    email: _Text = Field(max_length=255, pattern=EMAIL_PATTERN)
    department: Optional[_Text] = Field(default=None, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: Optional[str]) -> Optional[str]:
        """Reject passwords bcrypt cannot hash (over 72 bytes once UTF-8 encoded)."""
        return _check_password_bytes(value)


class PrincipalUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{identifier}. Every field optional."""

    name: Optional[_Text] = Field(default=None, min_length=1, max_length=255)
    email: Optional[_Text] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: Optional[Role] = None
    department: Optional[_Text] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=8, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: Optional[str]) -> Optional[str]:
        return _check_password_bytes(value)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class RecordCreate(BaseModel):
    """Request body for POST /api/v1/records.

    There is no owner field: the owner is always the caller. Unknown keys
    (owner_id included) are ignored.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    category: str = Field(min_length=1, max_length=255)
    status: RecordStatus = RecordStatus.PENDING
    priority: RecordPriority = RecordPriority.MEDIUM
    classification: Classification = Classification.PUBLIC
    assigned_to: Optional[str] = Field(default=None, max_length=64)
    metadata: Optional[dict[str, Any]] = None


class RecordUpdate(BaseModel):
    """Request body for PUT /api/v1/records/{record_id}. Every field optional."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    category: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[RecordStatus] = None
    priority: Optional[RecordPriority] = None
    classification: Optional[Classification] = None
    assigned_to: Optional[str] = Field(default=None, max_length=64)
    metadata: Optional[dict[str, Any]] = None


class RecordResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_id: str
    owner_id: str
    title: str
    description: str
    status: RecordStatus
    priority: RecordPriority
    category: str
    classification: Classification
    assigned_to: Optional[str]
    metadata: Optional[dict[str, Any]]
    created_at: str
    updated_at: str

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        return cls(
            record_id=record.record_id,
            owner_id=record.owner_id,
            title=record.title,
            description=record.description,
            status=record.status,
            priority=record.priority,
            category=record.category,
            classification=record.classification,
            assigned_to=record.assigned_to,
            metadata=record.metadata,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class RecordListResponse(BaseModel):
    """Response for GET /api/v1/records. role echoes the scope that was applied."""

    model_config = ConfigDict(frozen=True)

    records: list[RecordResponse]
    count: int
    role: Role
