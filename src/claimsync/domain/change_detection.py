"""Natural-key upserts with fingerprint-based change detection."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.domain.clock import utcnow
from claimsync.domain.fingerprint import fingerprint_item
from claimsync.domain.model import IngestedRecord, NormalizedItem, UpsertOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable

    from claimsync.domain.clock import Clock
    from claimsync.domain.ports import IngestRepositories, UnitOfWorkFactory

log = getLogger(__name__)

type EnrichmentHook = Callable[[IngestRepositories, IngestedRecord, NormalizedItem], str | None]
"""Runs once, inside the inserting unit of work; returns a label to tally."""


@dataclass(slots=True)
class SourceCounts:
    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def add(self, outcome: UpsertOutcome) -> None:
        match outcome:
            case UpsertOutcome.INSERTED:
                self.inserted += 1
            case UpsertOutcome.UPDATED:
                self.updated += 1
            case UpsertOutcome.SKIPPED:
                self.skipped += 1

    def as_dict(self) -> dict[str, int]:
        return {
            "fetched": self.fetched,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass(frozen=True, slots=True)
class RecordFailure:
    source_id: str
    url: str
    error: str


@dataclass(slots=True)
class UpsertReport:
    """Outcome counts for a batch, overall and per source.

    Records that raised are counted as ``skipped`` and ``failed`` and listed in
    ``failures``.
    """

    totals: SourceCounts = field(default_factory=SourceCounts)
    per_source: dict[str, SourceCounts] = field(default_factory=dict[str, SourceCounts])
    failures: list[RecordFailure] = field(default_factory=list[RecordFailure])
    enrichment: Counter[str] = field(default_factory=Counter[str])

    def source(self, source_id: str) -> SourceCounts:
        return self.per_source.setdefault(source_id, SourceCounts())

    def note_fetched(self, source_id: str) -> None:
        self.totals.fetched += 1
        self.source(source_id).fetched += 1

    def note_outcome(self, source_id: str, outcome: UpsertOutcome) -> None:
        self.totals.add(outcome)
        self.source(source_id).add(outcome)

    def note_failure(self, failure: RecordFailure) -> None:
        self.note_outcome(failure.source_id, UpsertOutcome.SKIPPED)
        self.totals.failed += 1
        self.source(failure.source_id).failed += 1
        self.failures.append(failure)


class UpsertEngine:
    """Insert, update or skip records keyed by ``(source_id, url)``.

    Each record gets its own unit of work. An unchanged fingerprint means no write
    at all; ``enrich`` runs on first insert only.
    """

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        enrich: EnrichmentHook | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._enrich = enrich
        self._clock = clock

    def upsert(self, item: NormalizedItem) -> UpsertOutcome:
        outcome, _ = self._upsert(item)
        return outcome

    def upsert_all(self, items: Iterable[NormalizedItem]) -> UpsertReport:
        report = UpsertReport()
        for item in items:
            report.note_fetched(item.source_id)
            try:
                outcome, label = self._upsert(item)
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "Failed to upsert %s %s: %s", item.source_id, item.url, exc, exc_info=True
                )
                report.note_failure(
                    RecordFailure(
                        source_id=item.source_id,
                        url=item.url,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                )
                continue
            report.note_outcome(item.source_id, outcome)
            if label is not None:
                report.enrichment[label] += 1

        totals = report.totals
        log.info(
            "Upserted %s items: inserted=%s updated=%s skipped=%s failed=%s",
            totals.fetched,
            totals.inserted,
            totals.updated,
            totals.skipped,
            totals.failed,
        )
        return report

    def _upsert(self, item: NormalizedItem) -> tuple[UpsertOutcome, str | None]:
        fingerprint = fingerprint_item(item)
        now = self._clock()
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            existing = repositories.records.get_by_natural_key(item.source_id, item.url)

            if existing is None:
                record = IngestedRecord.from_item(item, fingerprint=fingerprint, seen_at=now)
                repositories.records.add(record)
                label = self._enrich(repositories, record, item) if self._enrich else None
                uow.commit()
                return UpsertOutcome.INSERTED, label

            if existing.fingerprint == fingerprint:
                return UpsertOutcome.SKIPPED, None

            existing.refresh(item, fingerprint=fingerprint, seen_at=now)
            uow.commit()
            log.debug("Updated %s %s", item.source_id, item.url)
            return UpsertOutcome.UPDATED, None
