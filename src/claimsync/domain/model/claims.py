"""Claim subjects, claims and the evidence backing them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from claimsync.domain.clock import utcnow
from claimsync.domain.model.entity import Entity
from claimsync.domain.model.enums import ConfidenceLevel

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from claimsync.domain.model.enums import EvidenceType


@dataclass(frozen=True, slots=True)
class VerificationFlags:
    payment_verified: bool = False
    public_dashboard: bool = False

    @property
    def strong(self) -> bool:
        return self.payment_verified or self.public_dashboard

    def __composite_values__(self) -> tuple[bool, bool]:
        """For SQLAlchemy composite columns (adapter-side convenience)."""
        return (self.payment_verified, self.public_dashboard)


@dataclass(eq=False, kw_only=True)
class ClaimSubject(Entity):
    """The product or person a claim is about.

    Identified by ``url`` when known, otherwise by ``name``. Name identity is
    fuzzier and surfaces as ``matched_by_name``.
    """

    name: str
    url: str | None = None
    author: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset[str])
    share_percent: int | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def matched_by_name(self) -> bool:
        return self.url is None

    def merge_details(
        self,
        *,
        tags: frozenset[str],
        share_percent: int | None,
        author: str | None,
        now: datetime,
    ) -> None:
        if tags:
            self.tags = self.tags | tags
        if share_percent is not None:
            self.share_percent = share_percent
        if author and not self.author:
            self.author = author
        self.updated_at = now


@dataclass(eq=False, kw_only=True)
class Claim(Entity):
    """One stated value for a subject; claims form an append-only history.

    Values are integers in the smallest currency unit: ``value`` per month and
    ``secondary_value`` per year when the source stated an annual figure.
    """

    subject_id: UUID
    value: int
    secondary_value: int | None = None
    currency: str = "USD"
    claim_date: datetime = field(default_factory=utcnow)
    confidence_level: ConfidenceLevel = ConfidenceLevel.LOW
    confidence_reason: str = ""
    confidence_score: int | None = None
    verification: VerificationFlags = field(default_factory=VerificationFlags)
    derived: bool = False
    speculative: bool = False
    extraction_confidence: float = 0.0
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Evidence(Entity):
    claim_id: UUID
    evidence_type: EvidenceType
    source_url: str
    raw_text: str = ""
    source_date: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
