"""Claim recording, manual submission and rescoring services."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

from claimsync.domain.clock import utcnow
from claimsync.domain.errors import InvalidSubmissionError
from claimsync.domain.extraction import extract_percent, extract_tags, parse_claim
from claimsync.domain.model import Claim, ClaimSubject, Evidence, EvidenceType, VerificationFlags
from claimsync.domain.scoring import (
    DEFAULT_POLICY,
    NAME_MATCH_LABEL,
    apply_confidence,
    initial_confidence,
    score_confidence,
    should_flag_for_review,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from claimsync.domain.clock import Clock
    from claimsync.domain.extraction import ParsedClaim
    from claimsync.domain.model import ConfidenceLevel, IngestedRecord, NormalizedItem
    from claimsync.domain.ports import IngestRepositories, UnitOfWorkFactory
    from claimsync.domain.scoring import ScoringPolicy

log = getLogger(__name__)

CLAIM_CREATED: Final[str] = "claim_created"
CLAIM_CORROBORATED: Final[str] = "claim_corroborated"
UNPROCESSABLE: Final[str] = "unprocessable"

EVIDENCE_TYPE_ATTRIBUTE: Final[str] = "evidence_type"

INITIAL_REASONS: Final[dict[EvidenceType, str]] = {
    EvidenceType.SOCIAL_POST: "Social post claim",
    EvidenceType.NARRATIVE: "Detailed narrative source",
    EvidenceType.AGGREGATOR_LISTING: "Aggregator listing",
    EvidenceType.PUBLIC_DASHBOARD: "Public dashboard",
    EvidenceType.MANUAL: "Manual submission - pending review",
}


@dataclass(frozen=True, slots=True)
class RecordedClaim:
    claim: Claim
    subject: ClaimSubject
    corroborated: bool


class ClaimRecorder:
    """Enrichment hook turning a newly inserted claim-source record into a claim.

    The subject is resolved by URL, else by name, and created when absent. A claim
    for the same subject and monthly value is corroborated with another evidence
    row and rescored in full; otherwise a new claim is appended with its initial
    rating.
    """

    def __init__(
        self,
        *,
        default_evidence_type: EvidenceType = EvidenceType.SOCIAL_POST,
        policy: ScoringPolicy = DEFAULT_POLICY,
        clock: Clock = utcnow,
    ) -> None:
        self.default_evidence_type = default_evidence_type
        self.policy = policy
        self._clock = clock

    def __call__(
        self,
        repositories: IngestRepositories,
        record: IngestedRecord,
        item: NormalizedItem,
    ) -> str:
        text = item.body_text or item.title
        parsed = parse_claim(text)
        if parsed is None:
            log.debug("No claim found in %s %s", record.source_id, record.url)
            return UNPROCESSABLE

        evidence_type = self._evidence_type(item)
        subject_url = item.attribute("subject_url")
        if subject_url is None and evidence_type is EvidenceType.PUBLIC_DASHBOARD:
            subject_url = record.url

        recorded = self.record(
            repositories,
            parsed=parsed,
            evidence_type=evidence_type,
            source_url=record.url,
            source_date=record.published_at,
            subject_name=item.attribute("subject_name") or item.attribute("author") or item.title,
            subject_url=subject_url,
            author=item.attribute("author"),
        )
        return CLAIM_CORROBORATED if recorded.corroborated else CLAIM_CREATED

    def record(
        self,
        repositories: IngestRepositories,
        *,
        parsed: ParsedClaim,
        evidence_type: EvidenceType,
        source_url: str,
        source_date: datetime | None,
        subject_name: str,
        subject_url: str | None,
        author: str | None,
    ) -> RecordedClaim:
        now = self._clock()
        subject = resolve_subject(
            repositories, name=subject_name, url=subject_url, author=author, now=now
        )
        subject.merge_details(
            tags=extract_tags(parsed.raw_text),
            share_percent=extract_percent(parsed.raw_text),
            author=author,
            now=now,
        )

        existing = repositories.claims.find_by_value(subject.id, parsed.monthly_cents)
        if existing is not None:
            self._corroborate(
                repositories,
                existing,
                subject=subject,
                evidence_type=evidence_type,
                source_url=source_url,
                source_date=source_date,
                raw_text=parsed.raw_text,
            )
            return RecordedClaim(claim=existing, subject=subject, corroborated=True)

        prior_rows = repositories.evidence.count_for_subject(subject.id)
        flags = VerificationFlags(public_dashboard=evidence_type is EvidenceType.PUBLIC_DASHBOARD)
        claim = Claim(
            subject_id=subject.id,
            value=parsed.monthly_cents,
            secondary_value=parsed.annual_cents,
            currency=parsed.currency,
            claim_date=source_date or now,
            confidence_level=initial_confidence(evidence_type, flags.strong, prior_rows + 1),
            confidence_reason=_initial_reason(evidence_type, subject),
            verification=flags,
            derived=parsed.derived,
            speculative=parsed.speculative,
            extraction_confidence=parsed.confidence,
            created_at=now,
        )
        repositories.claims.add(claim)
        repositories.evidence.add(
            Evidence(
                claim_id=claim.id,
                evidence_type=evidence_type,
                source_url=source_url,
                source_date=source_date,
                raw_text=parsed.raw_text,
                created_at=now,
            )
        )
        log.info(
            "Recorded %s claim of %s cents/month for %s",
            claim.confidence_level,
            claim.value,
            subject.name,
        )
        return RecordedClaim(claim=claim, subject=subject, corroborated=False)

    def _corroborate(
        self,
        repositories: IngestRepositories,
        claim: Claim,
        *,
        subject: ClaimSubject,
        evidence_type: EvidenceType,
        source_url: str,
        source_date: datetime | None,
        raw_text: str,
    ) -> None:
        if not repositories.evidence.has_source(claim.id, source_url):
            repositories.evidence.add(
                Evidence(
                    claim_id=claim.id,
                    evidence_type=evidence_type,
                    source_url=source_url,
                    source_date=source_date,
                    raw_text=raw_text,
                    created_at=self._clock(),
                )
            )
        flags = claim.verification
        if evidence_type is EvidenceType.PUBLIC_DASHBOARD and not flags.public_dashboard:
            claim.verification = replace(flags, public_dashboard=True)

        evidence = repositories.evidence.for_claim(claim.id)
        result = score_confidence(claim, evidence, subject=subject, policy=self.policy)
        apply_confidence(claim, result)
        log.info("Corroborated claim %s: %s (%s)", claim.id, result.level, result.reason)

    def _evidence_type(self, item: NormalizedItem) -> EvidenceType:
        raw = item.attribute(EVIDENCE_TYPE_ATTRIBUTE)
        if raw is None:
            return self.default_evidence_type
        try:
            return EvidenceType(raw)
        except ValueError:
            log.warning("Unknown evidence type %r on %s, using default", raw, item.url)
            return self.default_evidence_type


def resolve_subject(
    repositories: IngestRepositories,
    *,
    name: str,
    url: str | None,
    author: str | None,
    now: datetime,
) -> ClaimSubject:
    """Find a subject by its natural key (URL, else name) or create it."""

    subject = (
        repositories.subjects.get_by_url(url)
        if url is not None
        else repositories.subjects.get_by_name(name)
    )
    if subject is None:
        subject = ClaimSubject(name=name, url=url, author=author, created_at=now, updated_at=now)
        repositories.subjects.add(subject)
    return subject


def _initial_reason(evidence_type: EvidenceType, subject: ClaimSubject) -> str:
    reason = INITIAL_REASONS[evidence_type]
    if subject.matched_by_name:
        return f"{reason}, {NAME_MATCH_LABEL}"
    return reason


# Manual submission -------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class SubmissionRequest:
    subject_name: str
    claim_text: str
    source_url: str
    subject_url: str | None = None
    author: str | None = None
    details_text: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    claim_id: UUID
    subject_id: UUID
    value: int
    currency: str
    derived: bool
    confidence_level: ConfidenceLevel
    confidence_reason: str


def submit_claim(
    request: SubmissionRequest,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Clock = utcnow,
) -> SubmissionResult:
    """Store a directly submitted claim with ``manual`` evidence.

    Raises ``InvalidSubmissionError`` when a required field is blank or the claim
    text holds no parseable revenue figure.
    """

    subject_name = request.subject_name.strip()
    claim_text = request.claim_text.strip()
    source_url = request.source_url.strip()
    missing = [
        label
        for label, value in (
            ("subject_name", subject_name),
            ("claim_text", claim_text),
            ("source_url", source_url),
        )
        if not value
    ]
    if missing:
        raise InvalidSubmissionError(f"Missing required fields: {', '.join(missing)}")

    parsed = parse_claim(claim_text)
    if parsed is None:
        raise InvalidSubmissionError(
            "Could not parse a revenue figure from the claim text. "
            "Include a single clear amount such as '$10k MRR' or '$10,000/month'."
        )

    now = clock()
    details = request.details_text or ""
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        subject = resolve_subject(
            repositories,
            name=subject_name,
            url=(request.subject_url or "").strip() or None,
            author=request.author,
            now=now,
        )
        subject.merge_details(
            tags=frozenset(tag.lower() for tag in request.tags)
            | extract_tags(f"{claim_text} {details}"),
            share_percent=extract_percent(details) or extract_percent(claim_text),
            author=request.author,
            now=now,
        )
        claim = Claim(
            subject_id=subject.id,
            value=parsed.monthly_cents,
            secondary_value=parsed.annual_cents,
            currency=parsed.currency,
            claim_date=now,
            confidence_level=initial_confidence(EvidenceType.MANUAL, False, 1),  # noqa: FBT003
            confidence_reason=INITIAL_REASONS[EvidenceType.MANUAL],
            derived=parsed.derived,
            speculative=parsed.speculative,
            extraction_confidence=parsed.confidence,
            created_at=now,
        )
        repositories.claims.add(claim)
        repositories.evidence.add(
            Evidence(
                claim_id=claim.id,
                evidence_type=EvidenceType.MANUAL,
                source_url=source_url,
                source_date=now,
                raw_text=claim_text,
                created_at=now,
            )
        )
        uow.commit()

    log.info("Accepted manual claim %s for %s", claim.id, subject.name)
    return SubmissionResult(
        claim_id=claim.id,
        subject_id=subject.id,
        value=claim.value,
        currency=claim.currency,
        derived=claim.derived,
        confidence_level=claim.confidence_level,
        confidence_reason=claim.confidence_reason,
    )


# Rescoring ---------------------------------------------------------------------


@dataclass(slots=True)
class RescoreReport:
    rescored: int = 0
    changed: int = 0
    flagged: list[UUID] = field(default_factory=list["UUID"])


def rescore_claims(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> RescoreReport:
    """Recompute every claim's full score from its stored evidence."""

    report = RescoreReport()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        for claim in repositories.claims.list_all():
            evidence: Sequence[Evidence] = repositories.evidence.for_claim(claim.id)
            subject = repositories.subjects.get(claim.subject_id)
            result = score_confidence(claim, evidence, subject=subject, policy=policy)
            if (claim.confidence_level, claim.confidence_score) != (result.level, result.score):
                report.changed += 1
            apply_confidence(claim, result)
            report.rescored += 1
            if should_flag_for_review(claim, evidence, policy=policy):
                report.flagged.append(claim.id)
        uow.commit()

    log.info(
        "Rescored %s claims (%s changed, %s flagged for review)",
        report.rescored,
        report.changed,
        len(report.flagged),
    )
    return report
