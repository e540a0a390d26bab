from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import create_engine

from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup
from claimsync.domain.locking import LockManager
from claimsync.domain.model import LockOutcome
from tests.helpers.storage import UnreachableUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from tests.helpers.clock import FrozenClock

    type UowFactory = Callable[[], SqlAlchemyUnitOfWork]

TTL = timedelta(minutes=10)


def test_acquire_then_held_until_released(
    sqlite_unit_of_work: UowFactory,
    clock: FrozenClock,
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)

    assert locks.try_acquire("ingest:updates", TTL) is LockOutcome.ACQUIRED
    assert locks.try_acquire("ingest:updates", TTL) is LockOutcome.HELD

    locks.release("ingest:updates")

    assert locks.try_acquire("ingest:updates", TTL) is LockOutcome.ACQUIRED


def test_lock_row_records_expiry(sqlite_unit_of_work: UowFactory, clock: FrozenClock) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)
    locks.acquire("ingest:claims", TTL)

    with sqlite_unit_of_work() as uow:
        row = uow.repositories.locks.get("ingest:claims")

    assert row is not None
    assert row.acquired_at == clock()
    assert row.expires_at == clock() + TTL
    assert row.is_held(clock())
    assert not row.is_held(clock() + TTL)


def test_expired_lock_can_be_taken_over(
    sqlite_unit_of_work: UowFactory,
    clock: FrozenClock,
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)
    assert locks.acquire("ingest:updates", TTL)

    clock.advance(minutes=9)
    assert locks.try_acquire("ingest:updates", TTL) is LockOutcome.HELD

    clock.advance(minutes=1)
    assert locks.try_acquire("ingest:updates", TTL) is LockOutcome.ACQUIRED

    with sqlite_unit_of_work() as uow:
        row = uow.repositories.locks.get("ingest:updates")
    assert row is not None
    assert row.expires_at == clock() + TTL


def test_locks_are_independent_by_name(
    sqlite_unit_of_work: UowFactory,
    clock: FrozenClock,
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)

    assert locks.acquire("ingest:updates", TTL)
    assert locks.acquire("ingest:claims", TTL)


def test_release_is_idempotent(sqlite_unit_of_work: UowFactory) -> None:
    locks = LockManager(sqlite_unit_of_work)

    locks.release("never-acquired")
    locks.release("never-acquired")

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.locks.get("never-acquired") is None


def test_unreachable_storage_is_unavailable_not_held() -> None:
    locks = LockManager(UnreachableUnitOfWork)

    assert locks.try_acquire("ingest:updates", TTL) is LockOutcome.UNAVAILABLE
    assert locks.acquire("ingest:updates", TTL) is False
    locks.release("ingest:updates")


def test_concurrent_acquirers_get_exactly_one_holder(tmp_path: Path) -> None:
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'locks.db'}",
        connect_args={"timeout": 30},
    )
    startup(engine=engine, force=True)
    locks = LockManager(SqlAlchemyUnitOfWork)
    contenders = 8
    barrier = threading.Barrier(contenders)

    def contend() -> LockOutcome:
        barrier.wait()
        return locks.try_acquire("ingest:updates", TTL)

    try:
        with ThreadPoolExecutor(max_workers=contenders) as pool:
            outcomes = list(pool.map(lambda _: contend(), range(contenders)))
    finally:
        shutdown()

    assert outcomes.count(LockOutcome.ACQUIRED) == 1
    assert set(outcomes) - {LockOutcome.ACQUIRED} <= {LockOutcome.HELD, LockOutcome.UNAVAILABLE}
