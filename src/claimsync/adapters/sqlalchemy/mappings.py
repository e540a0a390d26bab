"""SQLAlchemy mapping metadata for the claimsync domain model."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import composite

from claimsync.domain.model import (
    Category,
    Claim,
    ClaimSubject,
    Classification,
    ConfidenceLevel,
    Evidence,
    EvidenceType,
    IngestedRecord,
    UnlockType,
    VerificationFlags,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class TagSetType(TypeDecorator[frozenset[str]]):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: frozenset[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> frozenset[str]:
        _ = dialect
        if value is None:
            return frozenset()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        return frozenset(item for item in items if isinstance(item, str))


class ClassificationType(TypeDecorator[Classification]):
    """Stores a ``Classification`` as one JSON document."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Classification | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = asdict(value)
        payload["enables_building"] = list(value.enables_building)
        return json.dumps(payload, sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> Classification | None:
        _ = dialect
        if value is None:
            return None
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return None
        payload = cast(dict[str, Any], loaded)
        return Classification(
            unlock_type=UnlockType(payload["unlock_type"]),
            category=Category(payload.get("category", Category.OTHER)),
            confidence=float(payload.get("confidence", 0.0)),
            capability=payload.get("capability"),
            enables_building=tuple(payload.get("enables_building") or ()),
        )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tables ------------------------------------------------------------------------

ingest_lock_table = Table(
    "ingest_lock",
    mapper_registry.metadata,
    Column("name", String, primary_key=True),
    Column("acquired_at", UTCDateTime(), nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
)

ingested_record_table = Table(
    "ingested_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("source_id", String, nullable=False),
    Column("url", String, nullable=False),
    Column("title", String, nullable=False),
    Column("body_text", Text, nullable=False, default=""),
    Column("body_rich", Text, nullable=False, default=""),
    Column("published_at", UTCDateTime(), nullable=False),
    Column("external_id", String, nullable=True),
    Column("fingerprint", String(64), nullable=False),
    Column("first_seen_at", UTCDateTime(), nullable=False),
    Column("last_seen_at", UTCDateTime(), nullable=False),
    Column("classification", ClassificationType(), nullable=True),
    UniqueConstraint("source_id", "url", name="uq_ingested_record_natural_key"),
)

claim_subject_table = Table(
    "claim_subject",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False),
    Column("url", String, nullable=True, unique=True),
    Column("author", String, nullable=True),
    Column("tags", TagSetType(), nullable=False),
    Column("share_percent", Integer, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_claim_subject_name", "name"),
)

claim_table = Table(
    "claim",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "subject_id",
        UUIDColumnType,
        ForeignKey("claim_subject.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("value", Integer, nullable=False),
    Column("secondary_value", Integer, nullable=True),
    Column("currency", String(3), nullable=False, default="USD"),
    Column("claim_date", UTCDateTime(), nullable=False),
    Column("confidence_level", Enum(ConfidenceLevel, native_enum=False), nullable=False),
    Column("confidence_reason", String, nullable=False, default=""),
    Column("confidence_score", Integer, nullable=True),
    Column("payment_verified", Boolean, nullable=False, default=False),
    Column("public_dashboard", Boolean, nullable=False, default=False),
    Column("derived", Boolean, nullable=False, default=False),
    Column("speculative", Boolean, nullable=False, default=False),
    Column("extraction_confidence", Float, nullable=False, default=0.0),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_claim_subject_value", "subject_id", "value"),
)

evidence_table = Table(
    "evidence",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "claim_id",
        UUIDColumnType,
        ForeignKey("claim.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("evidence_type", Enum(EvidenceType, native_enum=False), nullable=False),
    Column("source_url", String, nullable=False),
    Column("source_date", UTCDateTime(), nullable=True),
    Column("raw_text", Text, nullable=False, default=""),
    Column("created_at", UTCDateTime(), nullable=False),
)


def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model. Safe to call repeatedly."""

    if mapper_registry.mappers:
        return mapper_registry

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(IngestedRecord, ingested_record_table)
    mapper_registry.map_imperatively(ClaimSubject, claim_subject_table)
    mapper_registry.map_imperatively(
        Claim,
        claim_table,
        properties={
            "verification": composite(
                VerificationFlags,
                claim_table.c.payment_verified,
                claim_table.c.public_dashboard,
            ),
        },
    )
    mapper_registry.map_imperatively(Evidence, evidence_table)
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create missing tables for the mapped metadata."""

    log.info("Creating missing tables")
    mapper_registry.metadata.create_all(engine, checkfirst=True)
