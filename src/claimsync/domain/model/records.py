"""Ingested source records and their adapter-facing input shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from claimsync.domain.clock import ensure_utc, utcnow
from claimsync.domain.model.entity import Entity

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from claimsync.domain.model.enums import Category, UnlockType


@dataclass(frozen=True, slots=True, kw_only=True)
class NormalizedItem:
    """What a source adapter hands to the pipeline.

    ``published_at=None`` means the source shows no date. The stored record then
    takes its first sighting time, and the fingerprint leaves the date out, so an
    undated entry stays unchanged from run to run.

    ``attributes`` carries adapter-specific hints. Claim sources use
    ``subject_name``, ``subject_url`` and ``author``.
    """

    source_id: str
    title: str
    url: str
    body_text: str
    body_rich: str = ""
    published_at: datetime | None = None
    external_id: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict[str, str])

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.source_id, self.url)

    def attribute(self, name: str) -> str | None:
        value = self.attributes.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()


@dataclass(frozen=True, slots=True, kw_only=True)
class Classification:
    unlock_type: UnlockType
    category: Category
    confidence: float
    capability: str | None = None
    enables_building: tuple[str, ...] = ()


@dataclass(eq=False, kw_only=True)
class IngestedRecord(Entity):
    """A stored source item identified by ``(source_id, url)``.

    Content fields and ``fingerprint`` change in place when the source edits the
    item. ``classification`` is written once, on first insert.
    """

    source_id: str
    url: str
    title: str
    body_text: str
    body_rich: str = ""
    published_at: datetime
    external_id: str | None = None
    fingerprint: str
    first_seen_at: datetime = field(default_factory=utcnow)
    last_seen_at: datetime = field(default_factory=utcnow)
    classification: Classification | None = None

    @classmethod
    def from_item(
        cls, item: NormalizedItem, *, fingerprint: str, seen_at: datetime
    ) -> IngestedRecord:
        return cls(
            source_id=item.source_id,
            url=item.url,
            title=item.title,
            body_text=item.body_text,
            body_rich=item.body_rich,
            published_at=(
                seen_at if item.published_at is None else ensure_utc(item.published_at)
            ),
            external_id=item.external_id,
            fingerprint=fingerprint,
            first_seen_at=seen_at,
            last_seen_at=seen_at,
        )

    @property
    def natural_key(self) -> tuple[str, str]:
        return (self.source_id, self.url)

    def refresh(self, item: NormalizedItem, *, fingerprint: str, seen_at: datetime) -> None:
        """Overwrite the mutable content fields with a newer sighting."""

        self.title = item.title
        self.body_text = item.body_text
        self.body_rich = item.body_rich
        if item.published_at is not None:
            self.published_at = ensure_utc(item.published_at)
        self.fingerprint = fingerprint
        self.last_seen_at = seen_at
