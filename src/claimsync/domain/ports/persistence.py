"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from claimsync.domain.model import Claim, ClaimSubject, Evidence, IngestedRecord

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from claimsync.domain.model import Lock


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class LockRepository(Protocol):
    """Persistence contract for advisory locks."""

    def try_acquire(self, name: str, *, now: datetime, expires_at: datetime) -> bool:
        """Insert or take over an expired row in one atomic statement."""
        ...

    def release(self, name: str) -> None: ...

    def get(self, name: str) -> Lock | None: ...


@runtime_checkable
class RecordRepository(Repository[IngestedRecord], Protocol):
    """Persistence contract for ingested records."""

    def get_by_natural_key(self, source_id: str, url: str) -> IngestedRecord | None: ...

    def count(self) -> int: ...


@runtime_checkable
class SubjectRepository(Repository[ClaimSubject], Protocol):
    """Persistence contract for claim subjects."""

    def get(self, subject_id: UUID) -> ClaimSubject | None: ...

    def get_by_url(self, url: str) -> ClaimSubject | None: ...

    def get_by_name(self, name: str) -> ClaimSubject | None: ...


@runtime_checkable
class ClaimRepository(Repository[Claim], Protocol):
    """Persistence contract for claims."""

    def get(self, claim_id: UUID) -> Claim | None: ...

    def find_by_value(self, subject_id: UUID, value: int) -> Claim | None: ...

    def list_all(self) -> Sequence[Claim]: ...


@runtime_checkable
class EvidenceRepository(Repository[Evidence], Protocol):
    """Persistence contract for claim evidence."""

    def for_claim(self, claim_id: UUID) -> Sequence[Evidence]: ...

    def has_source(self, claim_id: UUID, source_url: str) -> bool: ...

    def count_for_subject(self, subject_id: UUID) -> int: ...
