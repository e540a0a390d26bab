"""SQLAlchemy adapter package for claimsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyClaimRepository,
    SqlAlchemyEvidenceRepository,
    SqlAlchemyLockRepository,
    SqlAlchemyRecordRepository,
    SqlAlchemySubjectRepository,
    storage_errors,
)
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyClaimRepository",
    "SqlAlchemyEvidenceRepository",
    "SqlAlchemyLockRepository",
    "SqlAlchemyRecordRepository",
    "SqlAlchemySubjectRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "storage_errors",
]
