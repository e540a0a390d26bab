"""Lock-protected ingestion runs: acquire, collect, upsert, release."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from claimsync.domain.clock import utcnow
from claimsync.domain.collection import SourceFailure, collect
from claimsync.domain.model import LockOutcome, RunStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime, timedelta

    from claimsync.domain.change_detection import UpsertEngine, UpsertReport
    from claimsync.domain.clock import Clock
    from claimsync.domain.locking import LockManager
    from claimsync.domain.ports import SourceAdapter

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestionPipeline:
    """Everything one run needs: its lock, its sources and its upsert engine."""

    name: str
    lock_name: str
    lock_ttl: timedelta
    adapters: Sequence[SourceAdapter]
    engine: UpsertEngine


@dataclass(slots=True)
class RunReport:
    pipeline: str
    status: RunStatus
    started_at: datetime
    finished_at: datetime | None = None
    upserts: UpsertReport | None = None
    collected: dict[str, int] = field(default_factory=dict[str, int])
    source_failures: list[SourceFailure] = field(default_factory=list[SourceFailure])
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"pipeline": self.pipeline, "status": self.status.value}
        if self.error is not None:
            payload["error"] = self.error
        if self.upserts is not None:
            payload["totals"] = self.upserts.totals.as_dict()
            payload["sources"] = {
                source_id: counts.as_dict()
                for source_id, counts in sorted(self.upserts.per_source.items())
            }
            payload["enrichment"] = dict(sorted(self.upserts.enrichment.items()))
            payload["record_failures"] = [
                {"source": failure.source_id, "url": failure.url, "error": failure.error}
                for failure in self.upserts.failures
            ]
        if self.status is RunStatus.COMPLETED:
            payload["collected"] = dict(sorted(self.collected.items()))
            payload["failures"] = [
                {"source": failure.source, "error": failure.error}
                for failure in self.source_failures
            ]
        return payload


def run_ingestion(
    pipeline: IngestionPipeline,
    *,
    lock_manager: LockManager,
    clock: Clock = utcnow,
) -> RunReport:
    """Run one pipeline under its lock.

    ``LOCKED`` means another run holds the lock and nothing was done. ``FAILED``
    covers unreachable lock storage and errors escaping the run itself. Once the
    lock is acquired it is released on every exit path.
    """

    started_at = clock()
    outcome = lock_manager.try_acquire(pipeline.lock_name, pipeline.lock_ttl)
    if outcome is LockOutcome.HELD:
        return RunReport(
            pipeline=pipeline.name,
            status=RunStatus.LOCKED,
            started_at=started_at,
            finished_at=clock(),
        )
    if outcome is LockOutcome.UNAVAILABLE:
        return RunReport(
            pipeline=pipeline.name,
            status=RunStatus.FAILED,
            started_at=started_at,
            finished_at=clock(),
            error="Lock storage unavailable",
        )

    log.info("Starting %s ingestion with %s sources", pipeline.name, len(pipeline.adapters))
    try:
        collection = asyncio.run(collect(pipeline.adapters))
        upserts = pipeline.engine.upsert_all(collection.items)
    except Exception as exc:
        log.exception("Ingestion run %s failed", pipeline.name)
        return RunReport(
            pipeline=pipeline.name,
            status=RunStatus.FAILED,
            started_at=started_at,
            finished_at=clock(),
            error=f"{type(exc).__name__}: {exc}",
        )
    finally:
        lock_manager.release(pipeline.lock_name)

    report = RunReport(
        pipeline=pipeline.name,
        status=RunStatus.COMPLETED,
        started_at=started_at,
        finished_at=clock(),
        upserts=upserts,
        collected=dict(collection.counts),
        source_failures=collection.failures,
    )
    log.info(
        "Finished %s ingestion: inserted=%s, updated=%s, skipped=%s, source failures=%s",
        pipeline.name,
        upserts.totals.inserted,
        upserts.totals.updated,
        upserts.totals.skipped,
        len(collection.failures),
    )
    return report
