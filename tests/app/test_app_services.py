from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync import app as app_module
from claimsync.config import CLAIMS_LOCK_NAME, PipelineConfig
from claimsync.domain.classification import HeuristicClassifier
from claimsync.domain.errors import StorageError
from claimsync.domain.model import RunStatus
from claimsync.seed import sample_updates
from tests.helpers.items import FakeAdapter, make_claim_item

if TYPE_CHECKING:
    from collections.abc import Callable

    import pytest

    from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from tests.helpers.clock import FrozenClock

    type UowFactory = Callable[[], SqlAlchemyUnitOfWork]

CLAIMS_CONFIG = PipelineConfig(
    lock_name=CLAIMS_LOCK_NAME, lock_ttl_seconds=1800, max_run_seconds=900
)


def test_unreachable_storage_fails_the_run(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(**_: object) -> None:
        raise StorageError("connection refused")

    adapter = FakeAdapter("social", [make_claim_item()])
    monkeypatch.setattr(app_module, "startup", refuse)

    report = app_module.run_claims_ingest(adapters=[adapter], config=CLAIMS_CONFIG)

    assert report.status is RunStatus.FAILED
    assert report.error == "Lock storage unavailable"
    assert report.finished_at is not None
    assert adapter.calls == 0


def test_claims_run_then_rescore(sqlite_unit_of_work: UowFactory, clock: FrozenClock) -> None:
    report = app_module.run_claims_ingest(
        adapters=[FakeAdapter("social", [make_claim_item()])],
        unit_of_work_factory=sqlite_unit_of_work,
        config=CLAIMS_CONFIG,
        clock=clock,
    )

    assert report.status is RunStatus.COMPLETED
    assert report.upserts is not None
    assert report.upserts.enrichment == {"claim_created": 1}

    rescored = app_module.rescore(unit_of_work_factory=sqlite_unit_of_work)

    assert rescored.rescored == 1
    assert len(rescored.flagged) == 1


def test_initialize_without_seed_only_prepares_storage(sqlite_unit_of_work: UowFactory) -> None:
    assert app_module.initialize(unit_of_work_factory=sqlite_unit_of_work) is None

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.records.count() == 0


def test_initialize_seeds_once(sqlite_unit_of_work: UowFactory, clock: FrozenClock) -> None:
    first = app_module.initialize(
        seed=True,
        unit_of_work_factory=sqlite_unit_of_work,
        classifier=HeuristicClassifier(),
        clock=clock,
    )
    second = app_module.initialize(
        seed=True,
        unit_of_work_factory=sqlite_unit_of_work,
        classifier=HeuristicClassifier(),
        clock=clock,
    )

    assert first is not None
    assert first.totals.inserted == len(sample_updates(clock()))
    assert second is None
