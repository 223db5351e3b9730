"""
auth/store.py -- SQLAlchemy Core persistence layer for principals.

Pattern: Repository + Data Mapper (same as records/store.py).
PrincipalStore is the repository; _row_to_principal is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Raw passwords are hashed here on every create and update -- the table
  never sees plaintext, and callers cannot bypass hashing by writing
  hashed_password directly.

  identifier and email are UNIQUE in SQL. The store also checks both up front
  so the common duplicate case raises Conflict without attempting a write;
  the IntegrityError path covers the race between two concurrent creates.

Layer rule: no imports from api/ or records/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, or_, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Principal, Role
from auth.passwords import hash_password
from core.config import get_settings
from core.errors import Conflict, NotFound

logger = logging.getLogger("verifytrack.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_principals = Table(
    "principals",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("identifier", String(64), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("role", String(30), nullable=False, server_default=Role.GENERAL_USER.value),
    Column("department", String(255)),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Fields update_principal() accepts. "password" is the raw value and is
# hashed before it reaches the table.
_UPDATABLE_FIELDS = frozenset({"name", "email", "role", "department", "password"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PrincipalStore:
    """Repository for Principal entities -- the source of truth for who exists.

    Usage:
        store = PrincipalStore()
        store.create_principal(Principal(identifier="admin001", role=Role.ADMIN, ...), "secret")
        principal = store.get_by_identifier("admin001")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_principals(self) -> bool:
        """Return True if at least one principal exists. Used by seed bootstrap."""
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM principals")).scalar()
        return (result or 0) > 0

    def get_by_identifier(self, identifier: str) -> Principal | None:
        """Look up a principal by exact identifier (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_principals.select().where(_principals.c.identifier == identifier)).fetchone()
        return _row_to_principal(row) if row is not None else None

    def find_by_identifier_or_email(self, identifier: str, email: str) -> Principal | None:
        """Return any principal holding either the identifier or the email."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _principals.select().where(
                    or_(_principals.c.identifier == identifier, _principals.c.email == email)
                )
            ).fetchone()
        return _row_to_principal(row) if row is not None else None

    def list_principals(self) -> list[Principal]:
        """Return all principals, newest first. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _principals.select().order_by(_principals.c.created_at.desc(), _principals.c.id.desc())
            ).fetchall()
        return [_row_to_principal(r) for r in rows]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_principal(self, principal: Principal, password: str) -> Principal:
        """Hash the raw password, insert the principal, and return the stored record.

        Raises Conflict if the identifier or email is already taken. A failed
        create writes nothing.
        """
        if self.find_by_identifier_or_email(principal.identifier, principal.email) is not None:
            raise Conflict("User ID or email already exists.")
        now = _now_iso()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _principals.insert().values(
                        identifier=principal.identifier,
                        email=principal.email,
                        name=principal.name,
                        role=Role(principal.role).value,
                        department=principal.department,
                        hashed_password=hash_password(password),
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise Conflict("User ID or email already exists.") from exc
        logger.info("Created principal %r (%s)", principal.identifier, Role(principal.role).value)
        return self.get_by_identifier(principal.identifier)

    def update_principal(self, identifier: str, /, **fields) -> Principal:
        """Apply a partial update and return the stored record.

        Accepted fields: name, email, role, department, password. A raw
        password is re-hashed; hashes are never compared or copied.

        Raises NotFound if the principal does not exist and Conflict if the
        new email belongs to someone else. Unknown fields raise ValueError.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown principal fields: {unknown!r}")

        current = self.get_by_identifier(identifier)
        if current is None:
            raise NotFound("User not found.")

        values: dict = {k: v for k, v in fields.items() if k != "password"}
        if "role" in values:
            values["role"] = Role(values["role"]).value
        if fields.get("password"):
            values["hashed_password"] = hash_password(fields["password"])
        if "email" in values and values["email"] != current.email:
            with self.engine.connect() as conn:
                taken = conn.execute(
                    _principals.select().where(
                        (_principals.c.email == values["email"]) & (_principals.c.identifier != identifier)
                    )
                ).fetchone()
            if taken is not None:
                raise Conflict("Email already exists.")
        values["updated_at"] = _now_iso()

        try:
            with self.engine.connect() as conn:
                conn.execute(_principals.update().where(_principals.c.identifier == identifier).values(**values))
                conn.commit()
        except IntegrityError as exc:
            raise Conflict("Email already exists.") from exc
        return self.get_by_identifier(identifier)

    def delete_principal(self, identifier: str) -> None:
        """Permanently delete a principal. Raises NotFound if absent.

        The self-deletion rule is the caller's responsibility (auth/policy.py);
        the store deletes whatever identifier it is given. Records owned by the
        principal are left in place.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_principals.delete().where(_principals.c.identifier == identifier))
            conn.commit()
        if result.rowcount == 0:
            raise NotFound("User not found.")
        logger.info("Deleted principal %r", identifier)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Principal store health check failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_principal(row) -> Principal:
    return Principal(
        id=row.id,
        identifier=row.identifier,
        email=row.email,
        name=row.name,
        role=Role(row.role),
        department=row.department,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
