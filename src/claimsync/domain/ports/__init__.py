"""Ports (interfaces) the domain depends on."""

from __future__ import annotations

from claimsync.domain.ports.fetching import SourceAdapter
from claimsync.domain.ports.persistence import (
    ClaimRepository,
    EvidenceRepository,
    LockRepository,
    RecordRepository,
    Repository,
    SubjectRepository,
)
from claimsync.domain.ports.unit_of_work import (
    IngestRepositories,
    IngestUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "ClaimRepository",
    "EvidenceRepository",
    "IngestRepositories",
    "IngestUnitOfWork",
    "LockRepository",
    "RecordRepository",
    "Repository",
    "RepositoryCollection",
    "SourceAdapter",
    "SubjectRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
