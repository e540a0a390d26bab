"""TTL-based advisory locks serialising ingestion runs."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.domain.clock import utcnow
from claimsync.domain.errors import StorageError
from claimsync.domain.model import LockOutcome

if TYPE_CHECKING:
    from datetime import timedelta

    from claimsync.domain.clock import Clock
    from claimsync.domain.ports import UnitOfWorkFactory

log = getLogger(__name__)


class LockManager:
    """Acquire and release named locks, each in its own committed transaction.

    Acquisition is one conditional upsert in the repository: the row is inserted,
    or taken over only when its ``expires_at`` has passed. A holder that never
    releases is freed by the TTL alone.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory, *, clock: Clock = utcnow) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock

    def try_acquire(self, name: str, ttl: timedelta) -> LockOutcome:
        now = self._clock()
        try:
            with self._unit_of_work_factory() as uow:
                acquired = uow.repositories.locks.try_acquire(
                    name, now=now, expires_at=now + ttl
                )
                uow.commit()
        except StorageError:
            log.exception("Could not reach lock storage for %s", name)
            return LockOutcome.UNAVAILABLE

        if not acquired:
            log.info("Lock %s is held by another run", name)
            return LockOutcome.HELD
        log.info("Acquired lock %s until %s", name, now + ttl)
        return LockOutcome.ACQUIRED

    def acquire(self, name: str, ttl: timedelta) -> bool:
        return self.try_acquire(name, ttl) is LockOutcome.ACQUIRED

    def release(self, name: str) -> None:
        """Delete the lock row. Idempotent; storage errors are logged only."""

        try:
            with self._unit_of_work_factory() as uow:
                uow.repositories.locks.release(name)
                uow.commit()
        except StorageError:
            log.exception("Failed to release lock %s; it expires with its TTL", name)
            return
        log.info("Released lock %s", name)
