"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from claimsync.adapters.sqlalchemy.mappings import (
    claim_subject_table,
    claim_table,
    evidence_table,
    ingest_lock_table,
    ingested_record_table,
)
from claimsync.domain.errors import StorageError
from claimsync.domain.model import Claim, ClaimSubject, Evidence, IngestedRecord, Lock

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

_UPSERT_INSERTS: dict[str, Callable[[Table], Any]] = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into the domain's ``StorageError``."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"{operation} failed: {exc}") from exc


class SqlAlchemyLockRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def try_acquire(self, name: str, *, now: datetime, expires_at: datetime) -> bool:
        """Insert the lock row, or take it over where ``expires_at <= now``.

        One ``INSERT ... ON CONFLICT DO UPDATE ... WHERE`` statement; the affected
        row count says whether this caller now holds the lock.
        """

        with storage_errors(f"Acquiring lock {name!r}"):
            dialect = self.session.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                raise StorageError(f"Locks are not supported on the {dialect!r} dialect")
            stmt = insert(ingest_lock_table).values(
                name=name, acquired_at=now, expires_at=expires_at
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[ingest_lock_table.c.name],
                set_={
                    "acquired_at": stmt.excluded.acquired_at,
                    "expires_at": stmt.excluded.expires_at,
                },
                where=ingest_lock_table.c.expires_at <= now,
            )
            result = cast("CursorResult[Any]", self.session.execute(stmt))
            return result.rowcount == 1

    def release(self, name: str) -> None:
        with storage_errors(f"Releasing lock {name!r}"):
            self.session.execute(delete(ingest_lock_table).where(ingest_lock_table.c.name == name))

    def get(self, name: str) -> Lock | None:
        with storage_errors(f"Reading lock {name!r}"):
            row = self.session.execute(
                select(
                    ingest_lock_table.c.name,
                    ingest_lock_table.c.acquired_at,
                    ingest_lock_table.c.expires_at,
                ).where(ingest_lock_table.c.name == name)
            ).one_or_none()
        if row is None:
            return None
        return Lock(name=row.name, acquired_at=row.acquired_at, expires_at=row.expires_at)


class SqlAlchemyRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: IngestedRecord) -> None:
        self.session.add(entity)

    def get_by_natural_key(self, source_id: str, url: str) -> IngestedRecord | None:
        stmt = (
            select(IngestedRecord)
            .where(ingested_record_table.c.source_id == source_id)
            .where(ingested_record_table.c.url == url)
        )
        with storage_errors("Looking up record"):
            return self.session.execute(stmt).scalar_one_or_none()

    def count(self) -> int:
        with storage_errors("Counting records"):
            return self.session.execute(
                select(func.count()).select_from(ingested_record_table)
            ).scalar_one()


class SqlAlchemySubjectRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ClaimSubject) -> None:
        self.session.add(entity)
        # claims reference the row by foreign key only
        with storage_errors("Adding subject"):
            self.session.flush()

    def get(self, subject_id: UUID) -> ClaimSubject | None:
        with storage_errors("Loading subject"):
            return self.session.get(ClaimSubject, subject_id)

    def get_by_url(self, url: str) -> ClaimSubject | None:
        stmt = select(ClaimSubject).where(claim_subject_table.c.url == url)
        with storage_errors("Looking up subject by url"):
            return self.session.execute(stmt).scalar_one_or_none()

    def get_by_name(self, name: str) -> ClaimSubject | None:
        stmt = (
            select(ClaimSubject)
            .where(func.lower(claim_subject_table.c.name) == name.strip().lower())
            .order_by(claim_subject_table.c.created_at)
            .limit(1)
        )
        with storage_errors("Looking up subject by name"):
            return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyClaimRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Claim) -> None:
        self.session.add(entity)
        with storage_errors("Adding claim"):
            self.session.flush()

    def get(self, claim_id: UUID) -> Claim | None:
        with storage_errors("Loading claim"):
            return self.session.get(Claim, claim_id)

    def find_by_value(self, subject_id: UUID, value: int) -> Claim | None:
        stmt = (
            select(Claim)
            .where(claim_table.c.subject_id == subject_id)
            .where(claim_table.c.value == value)
            .order_by(claim_table.c.created_at.desc())
            .limit(1)
        )
        with storage_errors("Looking up claim"):
            return self.session.execute(stmt).scalar_one_or_none()

    def list_all(self) -> Sequence[Claim]:
        stmt = select(Claim).order_by(claim_table.c.created_at)
        with storage_errors("Listing claims"):
            return self.session.execute(stmt).scalars().all()


class SqlAlchemyEvidenceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Evidence) -> None:
        self.session.add(entity)

    def for_claim(self, claim_id: UUID) -> Sequence[Evidence]:
        stmt = (
            select(Evidence)
            .where(evidence_table.c.claim_id == claim_id)
            .order_by(evidence_table.c.created_at)
        )
        with storage_errors("Loading evidence"):
            return self.session.execute(stmt).scalars().all()

    def has_source(self, claim_id: UUID, source_url: str) -> bool:
        stmt = (
            select(evidence_table.c.id)
            .where(evidence_table.c.claim_id == claim_id)
            .where(evidence_table.c.source_url == source_url)
            .limit(1)
        )
        with storage_errors("Checking evidence"):
            return self.session.execute(stmt).first() is not None

    def count_for_subject(self, subject_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(evidence_table.join(claim_table))
            .where(claim_table.c.subject_id == subject_id)
        )
        with storage_errors("Counting evidence"):
            return self.session.execute(stmt).scalar_one()


if TYPE_CHECKING:
    from claimsync.domain.ports import (
        ClaimRepository,
        EvidenceRepository,
        LockRepository,
        RecordRepository,
        SubjectRepository,
    )

    _session_stub = cast("Session", object())
    _lock_repo: LockRepository = SqlAlchemyLockRepository(_session_stub)
    _record_repo: RecordRepository = SqlAlchemyRecordRepository(_session_stub)
    _subject_repo: SubjectRepository = SqlAlchemySubjectRepository(_session_stub)
    _claim_repo: ClaimRepository = SqlAlchemyClaimRepository(_session_stub)
    _evidence_repo: EvidenceRepository = SqlAlchemyEvidenceRepository(_session_stub)
