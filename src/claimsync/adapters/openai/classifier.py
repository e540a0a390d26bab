"""Model-backed update classifier using the OpenAI chat completions API."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import openai
from pydantic import ValidationError

from claimsync.domain.classification import Classifier, HeuristicClassifier
from claimsync.domain.extraction import categorize
from claimsync.domain.model import Classification, UnlockType

from .schema import ClassificationPayload, classification_response_format

if TYPE_CHECKING:
    from collections.abc import Callable

    from claimsync.config.classifier import ClassifierConfig

log = getLogger(__name__)

MAX_CONTENT_CHARS: Final[int] = 1500
TEMPERATURE: Final[float] = 0.1

SYSTEM_PROMPT: Final[str] = """\
You decide which AI provider announcements give developers something that was not \
possible before.

new_capability: a genuinely new ability. A new modality (vision, audio, video \
understanding or generation), a new interaction paradigm (computer control, real-time \
voice, web browsing) or a new endpoint for a previously unavailable feature. Name the \
capability and list the kinds of apps it enables.

improvement: something the model or API already did, done better. Faster, cheaper, \
longer context, better benchmarks, a smarter version with the same abilities.

operational: pricing changes, deprecations, SDK and library releases, documentation, \
regional availability, rate limits.

Be strict about new_capability. Most updates are improvements or operational; true \
unlocks are rare."""


def _default_client_factory(config: ClassifierConfig) -> openai.OpenAI:
    return openai.OpenAI(api_key=config.api_key, timeout=config.timeout_seconds)


@dataclass(slots=True)
class ModelBackedClassifier:
    """Asks a chat model for a structured classification.

    API errors and malformed replies fall back to ``fallback`` so that a run never
    fails because the model is unavailable.
    """

    config: ClassifierConfig
    fallback: Classifier = field(default_factory=HeuristicClassifier)
    client_factory: Callable[[ClassifierConfig], openai.OpenAI] = field(
        default=_default_client_factory
    )
    _client: openai.OpenAI | None = field(default=None, init=False, repr=False)

    def classify(self, source_id: str, title: str, body: str) -> Classification:
        try:
            payload = self._request(source_id, title, body)
        except openai.OpenAIError as exc:
            log.warning(f"Classifier API call failed for {title!r}, using heuristic: {exc}")
            return self.fallback.classify(source_id, title, body)
        except ValidationError as exc:
            log.warning(f"Classifier returned an unusable reply for {title!r}: {exc}")
            return self.fallback.classify(source_id, title, body)

        unlock_type = UnlockType(payload.unlock_type)
        return Classification(
            unlock_type=unlock_type,
            category=categorize(title, body),
            confidence=payload.confidence,
            capability=payload.capability if unlock_type is UnlockType.NEW_CAPABILITY else None,
            enables_building=tuple(payload.enables_building),
        )

    def _request(self, source_id: str, title: str, body: str) -> ClassificationPayload:
        if self._client is None:
            self._client = self.client_factory(self.config)
        completion = self._client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f"Provider: {source_id}\n\nTitle: {title}\n\n"
                        f"Content: {body[:MAX_CONTENT_CHARS]}\n\nClassify this update."
                    ),
                },
            ],
            response_format=classification_response_format(),
            temperature=TEMPERATURE,
        )
        content = completion.choices[0].message.content if completion.choices else None
        return ClassificationPayload.model_validate_json(content or "{}")


def build_classifier(config: ClassifierConfig) -> Classifier:
    if config.backend == "model":
        return ModelBackedClassifier(config)
    return HeuristicClassifier()


if TYPE_CHECKING:
    _classifier_check: Classifier = ModelBackedClassifier(ClassifierConfig())
