"""
records/models.py -- Domain dataclasses and enums for verification records.

These are pure data containers with zero logic. Persistence and record ID
generation live in records/store.py; access decisions live in auth/policy.py.

The enums are the domain truth for allowed values. api/models.py reuses them
directly so the HTTP contract and the store cannot drift apart.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class RecordStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class RecordPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Classification(str, Enum):
    """Declared sensitivity label. Stored and returned, never enforced."""

    PUBLIC = "Public"
    PRIVATE = "Private"
    RESTRICTED = "Restricted"


@dataclass
class Record:
    """A background-verification record owned by the principal who created it.

    owner_id is the creator's identifier and never changes after insert.
    Any status may follow any other -- there is no transition graph.

    record_id is empty before the record is written; the store generates it.
    """

    owner_id: str
    title: str
    description: str
    category: str
    status: RecordStatus = RecordStatus.PENDING
    priority: RecordPriority = RecordPriority.MEDIUM
    classification: Classification = Classification.PUBLIC
    assigned_to: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    record_id: str = ""
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, refreshed on every update
