"""Evidence-based confidence scoring for claims."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from claimsync.domain.model import ConfidenceLevel, EvidenceType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from claimsync.domain.model import Claim, ClaimSubject, Evidence

NO_FACTORS_REASON: Final[str] = "No verification factors"
NAME_MATCH_LABEL: Final[str] = "Subject matched by name"


@dataclass(frozen=True, slots=True)
class ScoringPolicy:
    """Weights, caps and bucket thresholds.

    Factors are summed first. Caps are then applied in declaration order and only
    ever lower the total.
    """

    payment_verified_points: int = 40
    public_dashboard_points: int = 35
    corroborated_points: int = 25
    corroborated_min_rows: int = 3
    two_sources_points: int = 15
    narrative_points: int = 20
    diverse_types_points: int = 10

    no_evidence_cap: int = 20
    single_source_cap: int = 30
    social_only_cap: int = 35
    manual_only_cap: int = 25

    high_threshold: int = 70
    medium_threshold: int = 40

    def level_for(self, score: int) -> ConfidenceLevel:
        if score >= self.high_threshold:
            return ConfidenceLevel.HIGH
        if score >= self.medium_threshold:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW


DEFAULT_POLICY: Final[ScoringPolicy] = ScoringPolicy()


@dataclass(frozen=True, slots=True)
class ConfidenceResult:
    level: ConfidenceLevel
    reason: str
    score: int


def score_confidence(
    claim: Claim,
    evidence: Sequence[Evidence],
    *,
    subject: ClaimSubject | None = None,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> ConfidenceResult:
    """Rate a claim from its verification flags and evidence rows.

    Pure: neither the claim nor the evidence is modified.
    """

    score = 0
    reasons: list[str] = []
    rows = len(evidence)
    types = {row.evidence_type for row in evidence}
    has_dashboard = claim.verification.public_dashboard or EvidenceType.PUBLIC_DASHBOARD in types
    strong = claim.verification.payment_verified or has_dashboard

    if claim.verification.payment_verified:
        score += policy.payment_verified_points
        reasons.append("Payment processor verified")
    if has_dashboard:
        score += policy.public_dashboard_points
        reasons.append("Public dashboard")
    if rows >= policy.corroborated_min_rows:
        score += policy.corroborated_points
        reasons.append(f"{rows} corroborating sources")
    elif rows == 2:  # noqa: PLR2004
        score += policy.two_sources_points
        reasons.append("2 sources")
    if EvidenceType.NARRATIVE in types:
        score += policy.narrative_points
        reasons.append("Detailed narrative source")
    if len(types) >= 2:  # noqa: PLR2004
        score += policy.diverse_types_points
        reasons.append("Multiple evidence types")

    if rows == 0:
        score = min(score, policy.no_evidence_cap)
        reasons.append("No corroborating evidence")
    else:
        if rows == 1 and not strong:
            score = min(score, policy.single_source_cap)
            reasons.append("Single unverified source")
        if types == {EvidenceType.SOCIAL_POST} and rows < policy.corroborated_min_rows:
            score = min(score, policy.social_only_cap)
            reasons.append("Social-only sources")
        if types == {EvidenceType.MANUAL} and not strong:
            score = min(score, policy.manual_only_cap)
            reasons.append("Unverified manual submission")

    if subject is not None and subject.matched_by_name:
        reasons.append(NAME_MATCH_LABEL)

    score = max(0, min(100, score))
    return ConfidenceResult(
        level=policy.level_for(score),
        reason=", ".join(reasons) if reasons else NO_FACTORS_REASON,
        score=score,
    )


def initial_confidence(
    evidence_type: EvidenceType,
    strong_flags_present: bool,  # noqa: FBT001
    evidence_count: int,
) -> ConfidenceLevel:
    """Cheap first rating used when a claim is created from a single sighting."""

    if strong_flags_present or evidence_type is EvidenceType.PUBLIC_DASHBOARD:
        return ConfidenceLevel.HIGH
    if (
        evidence_type in (EvidenceType.NARRATIVE, EvidenceType.AGGREGATOR_LISTING)
        and evidence_count >= 1
    ):
        return ConfidenceLevel.MEDIUM
    if evidence_type is EvidenceType.SOCIAL_POST and evidence_count >= 3:  # noqa: PLR2004
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def should_flag_for_review(
    claim: Claim,
    evidence: Sequence[Evidence],
    *,
    policy: ScoringPolicy = DEFAULT_POLICY,
) -> bool:
    if not evidence:
        return True
    if all(row.evidence_type is EvidenceType.MANUAL for row in evidence):
        return True
    return score_confidence(claim, evidence, policy=policy).level is ConfidenceLevel.LOW


def apply_confidence(claim: Claim, result: ConfidenceResult) -> None:
    claim.confidence_level = result.level
    claim.confidence_reason = result.reason
    claim.confidence_score = result.score
