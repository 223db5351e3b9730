"""
seed.py -- Demo data bootstrap for VerifyTrack.

Creates one admin, three general users and eight sample verification records
so a fresh install has something to log in to. Runs only against an empty
principal table: an existing database is never cleared or overwritten.

Triggered at API startup when SEED_DEMO_DATA=true, or manually with
`python main.py seed`.

The demo passwords below are public. Never enable seeding for a deployment
that is reachable by anyone but you.
"""

import logging

from auth.models import Principal, Role
from auth.store import PrincipalStore
from records.models import Classification, Record, RecordPriority, RecordStatus
from records.store import RecordStore

logger = logging.getLogger("verifytrack.seed")

_ADMIN_PASSWORD = "Admin@123"  # noqa: S105 # nosec B105 -- documented demo credential
_USER_PASSWORD = "User@123"  # noqa: S105 # nosec B105 -- documented demo credential

DEMO_PRINCIPALS: list[tuple[Principal, str]] = [
    (
        Principal(
            identifier="admin001",
            role=Role.ADMIN,
            name="Administrator",
            email="admin@verifytrack.local",
            department="IT Operations",
        ),
        _ADMIN_PASSWORD,
    ),
    (
        Principal(
            identifier="user001",
            role=Role.GENERAL_USER,
            name="John Doe",
            email="john.doe@verifytrack.local",
            department="Engineering",
        ),
        _USER_PASSWORD,
    ),
    (
        Principal(
            identifier="user002",
            role=Role.GENERAL_USER,
            name="Jane Smith",
            email="jane.smith@verifytrack.local",
            department="Marketing",
        ),
        _USER_PASSWORD,
    ),
    (
        Principal(
            identifier="user003",
            role=Role.GENERAL_USER,
            name="Robert Johnson",
            email="robert.johnson@verifytrack.local",
            department="Sales",
        ),
        _USER_PASSWORD,
    ),
]

DEMO_RECORDS: list[Record] = [
    Record(
        record_id="REC-001",
        owner_id="user001",
        title="Background Verification - Tech Corp",
        description="Complete background verification for employment at Tech Corp",
        status=RecordStatus.IN_PROGRESS,
        priority=RecordPriority.HIGH,
        category="Employment Verification",
        classification=Classification.PRIVATE,
        metadata={"company": "Tech Corp", "position": "Senior Developer"},
    ),
    Record(
        record_id="REC-002",
        owner_id="user001",
        title="Education Verification - MIT",
        description="Verify Master's degree from MIT",
        status=RecordStatus.COMPLETED,
        priority=RecordPriority.MEDIUM,
        category="Education Verification",
        classification=Classification.PUBLIC,
        metadata={"institution": "MIT", "degree": "MS Computer Science"},
    ),
    Record(
        record_id="REC-003",
        owner_id="user001",
        title="Identity Verification",
        description="Government ID and address proof verification",
        status=RecordStatus.COMPLETED,
        priority=RecordPriority.HIGH,
        category="Identity Verification",
        classification=Classification.RESTRICTED,
    ),
    Record(
        record_id="REC-004",
        owner_id="user002",
        title="Employment History Check",
        description="Verify previous employment at Digital Solutions Inc.",
        status=RecordStatus.PENDING,
        priority=RecordPriority.MEDIUM,
        category="Employment Verification",
        classification=Classification.PRIVATE,
        metadata={"company": "Digital Solutions Inc.", "duration": "2020-2023"},
    ),
    Record(
        record_id="REC-005",
        owner_id="user002",
        title="Professional References",
        description="Contact and verify professional references",
        status=RecordStatus.IN_PROGRESS,
        priority=RecordPriority.LOW,
        category="Reference Check",
        classification=Classification.PUBLIC,
    ),
    Record(
        record_id="REC-006",
        owner_id="user003",
        title="Criminal Background Check",
        description="Standard criminal background verification",
        status=RecordStatus.COMPLETED,
        priority=RecordPriority.HIGH,
        category="Criminal Verification",
        classification=Classification.RESTRICTED,
    ),
    Record(
        record_id="REC-007",
        owner_id="user003",
        title="Credit History Check",
        description="Financial background and credit score verification",
        status=RecordStatus.REJECTED,
        priority=RecordPriority.MEDIUM,
        category="Financial Verification",
        classification=Classification.PRIVATE,
        metadata={"reason": "Insufficient documentation"},
    ),
    Record(
        record_id="REC-008",
        owner_id="user003",
        title="Address Verification",
        description="Current and previous address verification",
        status=RecordStatus.IN_PROGRESS,
        priority=RecordPriority.LOW,
        category="Address Verification",
        classification=Classification.PUBLIC,
    ),
]


def seed_demo_data(principals: PrincipalStore, records: RecordStore) -> bool:
    """Insert demo principals and records if no principal exists yet.

    Returns True if data was written, False if the database was already
    populated and left untouched.
    """
    if principals.has_principals():
        logger.info("Seed skipped: principals already exist")
        return False

    for principal, password in DEMO_PRINCIPALS:
        principals.create_principal(principal, password)
    for record in DEMO_RECORDS:
        records.create_record(record)

    logger.warning(
        "Seeded %d demo accounts (%s) with well-known passwords and %d records",
        len(DEMO_PRINCIPALS),
        ", ".join(p.identifier for p, _ in DEMO_PRINCIPALS),
        len(DEMO_RECORDS),
    )
    return True
