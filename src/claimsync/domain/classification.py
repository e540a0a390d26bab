"""Classification of capability updates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from claimsync.domain.extraction import categorize
from claimsync.domain.model import Classification, UnlockType

if TYPE_CHECKING:
    from claimsync.domain.model import IngestedRecord, NormalizedItem
    from claimsync.domain.ports import IngestRepositories

NEW_CAPABILITY_KEYWORDS: Final[tuple[str, ...]] = (
    "now supports video",
    "video understanding",
    "image editing",
    "edit images",
    "computer use",
    "control your computer",
    "web search",
    "browse the web",
    "real-time voice",
    "voice conversation",
    "multimodal output",
    "generate images",
    "generate audio",
    "function calling",
    "tool use",
    "code execution",
    "file upload",
    "vision capabilities",
    "can now see",
    "can now hear",
)

OPERATIONAL_KEYWORDS: Final[tuple[str, ...]] = (
    "sdk",
    "library",
    "package",
    "pricing",
    "price",
    "cost",
    "deprecated",
    "deprecation",
    "sunset",
    "migration",
    "documentation",
    "docs update",
    "rate limit",
    "availability",
    "region",
)


@runtime_checkable
class Classifier(Protocol):
    """Decide whether an update unlocks something new."""

    def classify(self, source_id: str, title: str, body: str) -> Classification: ...


class HeuristicClassifier:
    """Keyword matcher used without a model, and as the model's fallback."""

    def classify(self, source_id: str, title: str, body: str) -> Classification:
        _ = source_id
        text = f"{title} {body}".lower()
        category = categorize(title, body)

        for keyword in NEW_CAPABILITY_KEYWORDS:
            if keyword in text:
                return Classification(
                    unlock_type=UnlockType.NEW_CAPABILITY,
                    category=category,
                    capability=keyword,
                    confidence=0.6,
                )

        if any(keyword in text for keyword in OPERATIONAL_KEYWORDS):
            return Classification(
                unlock_type=UnlockType.OPERATIONAL,
                category=category,
                confidence=0.7,
            )

        return Classification(
            unlock_type=UnlockType.IMPROVEMENT,
            category=category,
            confidence=0.5,
        )


class ClassifyOnInsert:
    """Enrichment hook attaching a classification to newly inserted updates."""

    def __init__(self, classifier: Classifier) -> None:
        self.classifier = classifier

    def __call__(
        self,
        repositories: IngestRepositories,
        record: IngestedRecord,
        item: NormalizedItem,
    ) -> str:
        _ = repositories
        record.classification = self.classifier.classify(
            item.source_id, item.title, item.body_text
        )
        return record.classification.unlock_type.value


if TYPE_CHECKING:
    _heuristic_check: Classifier = HeuristicClassifier()
