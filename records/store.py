"""
records/store.py -- SQLAlchemy-backed persistence layer for verification records.

Uses SQLAlchemy Core (not ORM) so the dataclasses in records/models.py remain
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change, not a rewrite.

Pattern: Repository + Data Mapper. RecordStore is the repository; the
_row_to_record function is the mapper. Route handlers never touch SQL directly.

Scoping: list_records(owner_id=...) narrows the SELECT itself. The owner
filter comes from auth.policy.record_scope(); out-of-scope rows are never
fetched, not fetched-then-dropped.

Record IDs: "REC-<epoch ms>-<9 base36 chars>". The UNIQUE constraint on
record_id is the only collision check. When a generated ID collides, the
insert is retried with a fresh ID up to Settings.record_id_attempts times;
after that the collision surfaces as Conflict.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = RecordStore()                               # DATABASE_URL
    store = RecordStore("postgresql://user:pw@host/db") # PostgreSQL
    record = store.create_record(Record(owner_id="user001", ...))
    mine = store.list_records(owner_id="user001")
    store.close()
"""

import json
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from core.config import get_settings
from core.errors import Conflict
from records.models import Classification, Record, RecordPriority, RecordStatus

logger = logging.getLogger("verifytrack.records")

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LEN = 9

# Mutable fields. owner_id and record_id are fixed at insert.
_UPDATABLE_FIELDS = frozenset(
    {"title", "description", "status", "priority", "category", "classification", "assigned_to", "metadata"}
)

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_records = Table(
    "records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("record_id", String(64), nullable=False, unique=True),
    Column("owner_id", String(64), nullable=False, index=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("status", String(20), nullable=False, server_default=RecordStatus.PENDING.value),
    Column("priority", String(10), nullable=False, server_default=RecordPriority.MEDIUM.value),
    Column("category", String(255), nullable=False),
    Column("classification", String(20), nullable=False, server_default=Classification.PUBLIC.value),
    Column("assigned_to", String(64)),
    Column("metadata_json", Text),  # JSON object serialized as text
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_record_id() -> str:
    """Return a new record ID: timestamp in milliseconds plus a random base36 suffix."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LEN))
    return f"REC-{int(time.time() * 1000)}-{suffix}"


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RecordStore:
    def __init__(self, db_url: Optional[str] = None, id_attempts: Optional[int] = None) -> None:
        settings = get_settings()
        db_url = db_url or settings.database_url
        self.id_attempts = id_attempts or settings.record_id_attempts
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # SQLite requires check_same_thread=False when used from FastAPI's
            # threadpool where the same connection may be accessed across threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_record(self, record: Record) -> Record:
        """Insert a record and return it as stored.

        If record.record_id is empty an ID is generated, retrying on collision.
        A caller-supplied ID (seed data) gets exactly one attempt.
        Raises Conflict when no attempt succeeds.
        """
        explicit = bool(record.record_id)
        attempts = 1 if explicit else self.id_attempts
        now = _now_iso()
        for attempt in range(1, attempts + 1):
            record_id = record.record_id if explicit else generate_record_id()
            try:
                with self.engine.connect() as conn:
                    conn.execute(
                        _records.insert().values(
                            record_id=record_id,
                            owner_id=record.owner_id,
                            title=record.title,
                            description=record.description,
                            status=RecordStatus(record.status).value,
                            priority=RecordPriority(record.priority).value,
                            category=record.category,
                            classification=Classification(record.classification).value,
                            assigned_to=record.assigned_to,
                            metadata_json=_dump_metadata(record.metadata),
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    conn.commit()
            except IntegrityError:
                logger.warning("Record ID collision on %s (attempt %d of %d)", record_id, attempt, attempts)
                continue
            return self.get_record(record_id)
        raise Conflict("Could not allocate a unique record ID. Retry the request.")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_record(self, record_id: str) -> Optional[Record]:
        """Fetch a single record by record_id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_records.select().where(_records.c.record_id == record_id)).fetchone()
        return _row_to_record(row) if row is not None else None

    def list_records(self, owner_id: Optional[str] = None) -> list[Record]:
        """Return records newest first, limited to one owner when owner_id is given."""
        query = _records.select()
        if owner_id is not None:
            query = query.where(_records.c.owner_id == owner_id)
        query = query.order_by(_records.c.created_at.desc(), _records.c.id.desc())
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_record(r) for r in rows]

    def count_records(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM records")).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def update_record(self, record_id: str, /, **fields) -> Optional[Record]:
        """Apply a partial update and return the stored record, or None if absent.

        Accepts any subset of: title, description, status, priority, category,
        classification, assigned_to, metadata. owner_id and record_id are not
        updatable; passing them (or any unknown field) raises ValueError.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown or immutable record fields: {unknown!r}")

        values: dict = dict(fields)
        if "status" in values:
            values["status"] = RecordStatus(values["status"]).value
        if "priority" in values:
            values["priority"] = RecordPriority(values["priority"]).value
        if "classification" in values:
            values["classification"] = Classification(values["classification"]).value
        if "metadata" in values:
            values["metadata_json"] = _dump_metadata(values.pop("metadata"))
        values["updated_at"] = _now_iso()

        with self.engine.connect() as conn:
            result = conn.execute(_records.update().where(_records.c.record_id == record_id).values(**values))
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_record(record_id)

    def delete_record(self, record_id: str) -> bool:
        """Delete a record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_records.delete().where(_records.c.record_id == record_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Record store health check failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _dump_metadata(value: Optional[dict]) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def _row_to_record(row) -> Record:
    return Record(
        record_id=row.record_id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        status=RecordStatus(row.status),
        priority=RecordPriority(row.priority),
        category=row.category,
        classification=Classification(row.classification),
        assigned_to=row.assigned_to,
        metadata=json.loads(row.metadata_json) if row.metadata_json else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
