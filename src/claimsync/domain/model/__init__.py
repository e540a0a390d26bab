"""Domain model package."""

from __future__ import annotations

from claimsync.domain.model.claims import Claim, ClaimSubject, Evidence, VerificationFlags
from claimsync.domain.model.entity import Entity, new_id
from claimsync.domain.model.enums import (
    Category,
    ConfidenceLevel,
    EvidenceType,
    LockOutcome,
    RunStatus,
    UnlockType,
    UpsertOutcome,
)
from claimsync.domain.model.lock import Lock
from claimsync.domain.model.records import Classification, IngestedRecord, NormalizedItem

__all__ = [
    "Category",
    "Claim",
    "ClaimSubject",
    "Classification",
    "ConfidenceLevel",
    "Entity",
    "Evidence",
    "EvidenceType",
    "IngestedRecord",
    "Lock",
    "LockOutcome",
    "NormalizedItem",
    "RunStatus",
    "UnlockType",
    "UpsertOutcome",
    "VerificationFlags",
    "new_id",
]
