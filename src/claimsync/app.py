"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from claimsync.adapters.openai import build_classifier
from claimsync.adapters.sources import build_claim_adapters, build_update_adapters
from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, startup
from claimsync.config import (
    get_claims_pipeline_config,
    get_classifier_config,
    get_sources_config,
    get_updates_pipeline_config,
)
from claimsync.domain.change_detection import UpsertEngine
from claimsync.domain.claims import ClaimRecorder, rescore_claims, submit_claim
from claimsync.domain.classification import ClassifyOnInsert
from claimsync.domain.clock import utcnow
from claimsync.domain.errors import StorageError
from claimsync.domain.initialization import seed_if_empty
from claimsync.domain.locking import LockManager
from claimsync.domain.model import RunStatus
from claimsync.domain.orchestrator import IngestionPipeline, RunReport, run_ingestion
from claimsync.seed import sample_updates

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from claimsync.config import PipelineConfig
    from claimsync.domain.change_detection import UpsertReport
    from claimsync.domain.claims import RescoreReport, SubmissionRequest, SubmissionResult
    from claimsync.domain.classification import Classifier
    from claimsync.domain.clock import Clock
    from claimsync.domain.ports import SourceAdapter, UnitOfWorkFactory

UPDATES_PIPELINE = "updates"
CLAIMS_PIPELINE = "claims"

log = getLogger(__name__)


def build_updates_pipeline(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    adapters: Sequence[SourceAdapter] | None = None,
    classifier: Classifier | None = None,
    config: PipelineConfig | None = None,
    clock: Clock = utcnow,
) -> IngestionPipeline:
    """Capability updates from provider changelogs, classified on first insert."""

    effective_config = config or get_updates_pipeline_config()
    effective_classifier = classifier or build_classifier(get_classifier_config())
    return IngestionPipeline(
        name=UPDATES_PIPELINE,
        lock_name=effective_config.lock_name,
        lock_ttl=effective_config.lock_ttl,
        adapters=(
            adapters if adapters is not None else build_update_adapters(get_sources_config())
        ),
        engine=UpsertEngine(
            unit_of_work_factory,
            enrich=ClassifyOnInsert(effective_classifier),
            clock=clock,
        ),
    )


def build_claims_pipeline(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    adapters: Sequence[SourceAdapter] | None = None,
    config: PipelineConfig | None = None,
    clock: Clock = utcnow,
) -> IngestionPipeline:
    """Revenue claims from social searches and public dashboards."""

    effective_config = config or get_claims_pipeline_config()
    return IngestionPipeline(
        name=CLAIMS_PIPELINE,
        lock_name=effective_config.lock_name,
        lock_ttl=effective_config.lock_ttl,
        adapters=(
            adapters if adapters is not None else build_claim_adapters(get_sources_config())
        ),
        engine=UpsertEngine(
            unit_of_work_factory,
            enrich=ClaimRecorder(clock=clock),
            clock=clock,
        ),
    )


def run_updates_ingest(
    *,
    adapters: Sequence[SourceAdapter] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    classifier: Classifier | None = None,
    config: PipelineConfig | None = None,
    clock: Clock = utcnow,
) -> RunReport:
    """Run the capability-update pipeline once under its lock."""

    started_at = clock()
    try:
        startup()
    except StorageError as exc:
        return _storage_unavailable(UPDATES_PIPELINE, started_at, exc, clock)
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    pipeline = build_updates_pipeline(
        unit_of_work_factory=effective_uow,
        adapters=adapters,
        classifier=classifier,
        config=config,
        clock=clock,
    )
    lock_manager = LockManager(effective_uow, clock=clock)
    return run_ingestion(pipeline, lock_manager=lock_manager, clock=clock)


def run_claims_ingest(
    *,
    adapters: Sequence[SourceAdapter] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: PipelineConfig | None = None,
    clock: Clock = utcnow,
) -> RunReport:
    """Run the revenue-claim pipeline once under its lock."""

    started_at = clock()
    try:
        startup()
    except StorageError as exc:
        return _storage_unavailable(CLAIMS_PIPELINE, started_at, exc, clock)
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    pipeline = build_claims_pipeline(
        unit_of_work_factory=effective_uow,
        adapters=adapters,
        config=config,
        clock=clock,
    )
    lock_manager = LockManager(effective_uow, clock=clock)
    return run_ingestion(pipeline, lock_manager=lock_manager, clock=clock)


def submit_manual_claim(
    request: SubmissionRequest,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    clock: Clock = utcnow,
) -> SubmissionResult:
    startup()
    return submit_claim(
        request,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyUnitOfWork,
        clock=clock,
    )


def rescore(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> RescoreReport:
    startup()
    return rescore_claims(unit_of_work_factory=unit_of_work_factory or SqlAlchemyUnitOfWork)


def initialize(
    *,
    seed: bool = False,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    classifier: Classifier | None = None,
    clock: Clock = utcnow,
) -> UpsertReport | None:
    """Create missing tables and, with ``seed``, load sample updates into an empty store.

    Safe to run on every start.
    """

    startup()
    if not seed:
        return None
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    effective_classifier = classifier or build_classifier(get_classifier_config())
    engine = UpsertEngine(
        effective_uow,
        enrich=ClassifyOnInsert(effective_classifier),
        clock=clock,
    )
    return seed_if_empty(
        sample_updates(clock()),
        engine=engine,
        unit_of_work_factory=effective_uow,
    )


def _storage_unavailable(
    pipeline: str,
    started_at: datetime,
    exc: StorageError,
    clock: Clock,
) -> RunReport:
    log.error(f"Storage unavailable for {pipeline} ingestion: {exc}")
    return RunReport(
        pipeline=pipeline,
        status=RunStatus.FAILED,
        started_at=started_at,
        finished_at=clock(),
        error="Lock storage unavailable",
    )
