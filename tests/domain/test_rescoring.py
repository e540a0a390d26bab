from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync.domain.change_detection import UpsertEngine
from claimsync.domain.claims import ClaimRecorder, SubmissionRequest, rescore_claims, submit_claim
from claimsync.domain.model import ConfidenceLevel, EvidenceType
from tests.helpers.items import make_claim_item

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork

    type UowFactory = Callable[[], SqlAlchemyUnitOfWork]

PRODUCT_URL = "https://maker.example"


def _seed(uow_factory: UowFactory) -> None:
    submit_claim(
        SubmissionRequest(
            subject_name="Side Project",
            claim_text="$2k MRR",
            source_url="https://forum.example/thread/4",
        ),
        unit_of_work_factory=uow_factory,
    )
    engine = UpsertEngine(uow_factory, enrich=ClaimRecorder())
    engine.upsert_all(
        [
            make_claim_item(subject_url=PRODUCT_URL),
            make_claim_item(
                "MRR: $10,000",
                source_id="dashboards",
                url=f"{PRODUCT_URL}#snapshot-2024-05-1000000",
                subject_url=PRODUCT_URL,
                author=None,
                evidence_type=EvidenceType.PUBLIC_DASHBOARD,
            ),
            make_claim_item(
                "Maker App crossed $10k MRR",
                source_id="stories",
                url="https://stories.example/maker-app",
                subject_url=PRODUCT_URL,
                evidence_type=EvidenceType.NARRATIVE,
            ),
        ]
    )


def test_rescore_recomputes_every_claim(sqlite_unit_of_work: UowFactory) -> None:
    _seed(sqlite_unit_of_work)

    report = rescore_claims(unit_of_work_factory=sqlite_unit_of_work)

    assert report.rescored == 2
    assert report.changed >= 1
    with sqlite_unit_of_work() as uow:
        manual = uow.repositories.subjects.get_by_name("Side Project")
        product = uow.repositories.subjects.get_by_url(PRODUCT_URL)
        assert manual is not None
        assert product is not None
        by_subject = {claim.subject_id: claim for claim in uow.repositories.claims.list_all()}

    manual_claim = by_subject[manual.id]
    product_claim = by_subject[product.id]
    assert manual_claim.confidence_level is ConfidenceLevel.LOW
    assert "Unverified manual submission" in manual_claim.confidence_reason
    assert product_claim.confidence_level is ConfidenceLevel.HIGH
    assert product_claim.confidence_score == 90
    assert report.flagged == [manual_claim.id]


def test_rescore_is_idempotent(sqlite_unit_of_work: UowFactory) -> None:
    _seed(sqlite_unit_of_work)
    rescore_claims(unit_of_work_factory=sqlite_unit_of_work)

    report = rescore_claims(unit_of_work_factory=sqlite_unit_of_work)

    assert report.rescored == 2
    assert report.changed == 0


def test_rescore_empty_store(sqlite_unit_of_work: UowFactory) -> None:
    report = rescore_claims(unit_of_work_factory=sqlite_unit_of_work)

    assert (report.rescored, report.changed, report.flagged) == (0, 0, [])
