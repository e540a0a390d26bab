"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EvidenceType(StrEnum):
    SOCIAL_POST = "social_post"
    NARRATIVE = "narrative"
    AGGREGATOR_LISTING = "aggregator_listing"
    PUBLIC_DASHBOARD = "public_dashboard"
    MANUAL = "manual"


class ConfidenceLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class UnlockType(StrEnum):
    """How much a capability update changes what can be built."""

    NEW_CAPABILITY = "new_capability"
    IMPROVEMENT = "improvement"
    OPERATIONAL = "operational"


class Category(StrEnum):
    NEW_MODEL = "new_model"
    API_UPDATE = "api_update"
    FEATURE = "feature"
    PRICING = "pricing"
    DEPRECATION = "deprecation"
    SDK = "sdk"
    DOCS = "docs"
    OTHER = "other"


class UpsertOutcome(StrEnum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


class LockOutcome(StrEnum):
    ACQUIRED = "acquired"
    HELD = "held"
    UNAVAILABLE = "unavailable"


class RunStatus(StrEnum):
    COMPLETED = "completed"
    LOCKED = "locked"
    FAILED = "failed"
