from __future__ import annotations

from typing import TYPE_CHECKING

from claimsync.domain.change_detection import UpsertEngine
from claimsync.domain.classification import ClassifyOnInsert, HeuristicClassifier
from claimsync.domain.model import Category, Classification, UnlockType
from tests.helpers.items import make_item

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork

    type UowFactory = Callable[[], SqlAlchemyUnitOfWork]


class CountingClassifier:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def classify(self, source_id: str, title: str, body: str) -> Classification:
        _ = (source_id, body)
        self.calls.append(title)
        return Classification(
            unlock_type=UnlockType.NEW_CAPABILITY,
            category=Category.FEATURE,
            confidence=0.9,
            capability="video understanding",
            enables_building=("video search", "meeting notes"),
        )


def test_heuristic_detects_new_capability() -> None:
    result = HeuristicClassifier().classify(
        "google",
        "Gemini now supports video understanding",
        "Send clips up to an hour long.",
    )

    assert result.unlock_type is UnlockType.NEW_CAPABILITY
    assert result.capability == "now supports video"
    assert result.category is Category.NEW_MODEL
    assert result.confidence == 0.6


def test_heuristic_detects_operational_update() -> None:
    result = HeuristicClassifier().classify("openai", "Python SDK 1.4 released", "Bug fixes.")

    assert result.unlock_type is UnlockType.OPERATIONAL
    assert result.category is Category.SDK
    assert result.capability is None


def test_heuristic_defaults_to_improvement() -> None:
    result = HeuristicClassifier().classify(
        "anthropic",
        "Faster responses",
        "Latency is down 40% across all tiers.",
    )

    assert result.unlock_type is UnlockType.IMPROVEMENT
    assert result.category is Category.OTHER
    assert result.confidence == 0.5


def test_classification_is_stored_on_insert_only(sqlite_unit_of_work: UowFactory) -> None:
    classifier = CountingClassifier()
    engine = UpsertEngine(sqlite_unit_of_work, enrich=ClassifyOnInsert(classifier))
    url = "https://example.com/google/changelog#video"

    report = engine.upsert_all([make_item("Video understanding", url=url)])
    engine.upsert_all([make_item("Video understanding (GA)", url=url)])

    assert report.enrichment == {"new_capability": 1}
    assert classifier.calls == ["Video understanding"]
    with sqlite_unit_of_work() as uow:
        record = uow.repositories.records.get_by_natural_key("openai", url)
    assert record is not None
    assert record.title == "Video understanding (GA)"
    assert record.classification == Classification(
        unlock_type=UnlockType.NEW_CAPABILITY,
        category=Category.FEATURE,
        confidence=0.9,
        capability="video understanding",
        enables_building=("video search", "meeting notes"),
    )
