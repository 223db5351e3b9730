"""
core/errors.py -- Domain error taxonomy shared by auth/, records/ and api/.

Every class carries a fixed HTTP status and a machine-readable code. The API
layer has a single exception handler for TrackerError that turns any of these
into the standard {"error": {...}} envelope, so stores and policy functions
raise domain errors without knowing anything about HTTP.

Anything that is not a TrackerError (driver errors, bugs) falls through to the
generic 500 handler and is never echoed to the client.
"""

from typing import Optional


class TrackerError(Exception):
    """Base class for request-scoped failures with a fixed client-visible status."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(TrackerError):
    """Missing or malformed input detected before the store is touched."""

    status_code = 400
    code = "invalid_request"


class Unauthenticated(TrackerError):
    status_code = 401
    code = "unauthorized"


class Forbidden(TrackerError):
    status_code = 403
    code = "forbidden"


class NotFound(TrackerError):
    status_code = 404
    code = "not_found"


class Conflict(TrackerError):
    """Uniqueness violation on create or update."""

    status_code = 409
    code = "conflict"


class InvalidOperation(TrackerError):
    """Authenticated and authorized, but structurally disallowed (e.g. self-deletion)."""

    status_code = 400
    code = "invalid_operation"
