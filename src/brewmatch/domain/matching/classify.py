"""Resolution classification of ranked match candidates.

The verdict is a closed set of four variants. Rules are evaluated top to
bottom, first match wins:

1. no candidates                                   -> ``NoMatch``
2. best above auto threshold, nobody else above
   the candidate threshold                         -> ``AutoMatch``
3. several candidates above the ambiguity threshold,
   or several with keyword overlap                 -> ``DisambiguateMulti``
4. best above the ambiguity threshold or with
   keyword overlap                                 -> ``ConfirmSingle``
5. otherwise                                       -> ``NoMatch``

Ambiguity (3) is checked before single confirmation (4): offering one plausible
candidate while a second equally plausible one exists is worse than asking the
user to pick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from brewmatch.domain.model import AmbiguityReason, ResolutionStatus

from .candidates import rank_candidates
from .policy import DEFAULT_POLICY, MatchingPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from brewmatch.domain.model import CatalogRecord

    from .candidates import MatchCandidate, PartialNameMatch

log = logging.getLogger(__name__)

AMBIGUOUS_MATCH_FALLBACK = "AmbiguousMatchFallback"


@dataclass(frozen=True, slots=True, kw_only=True)
class AutoMatch:
    """Accepted without a human step."""

    record: CatalogRecord
    confidence: float
    candidate: MatchCandidate | None = None
    status: Literal[ResolutionStatus.AUTO_MATCH] = ResolutionStatus.AUTO_MATCH

    @property
    def candidates(self) -> tuple[MatchCandidate, ...]:
        return (self.candidate,) if self.candidate is not None else ()


@dataclass(frozen=True, slots=True, kw_only=True)
class ConfirmSingle:
    """One plausible match that needs an explicit yes/no."""

    record: CatalogRecord
    confidence: float
    candidate: MatchCandidate | None = None
    reason: str | None = None
    status: Literal[ResolutionStatus.CONFIRM_SINGLE] = ResolutionStatus.CONFIRM_SINGLE

    @property
    def candidates(self) -> tuple[MatchCandidate, ...]:
        return (self.candidate,) if self.candidate is not None else ()


@dataclass(frozen=True, slots=True, kw_only=True)
class DisambiguateMulti:
    """Several plausible matches; the user must pick one or create new."""

    candidates: tuple[MatchCandidate, ...]
    reason: AmbiguityReason
    status: Literal[ResolutionStatus.DISAMBIGUATE_MULTI] = ResolutionStatus.DISAMBIGUATE_MULTI

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValueError("Disambiguation requires at least one candidate")


@dataclass(frozen=True, slots=True, kw_only=True)
class NoMatch:
    """Nothing in the catalog is close enough; a new record will be created."""

    reason: str = "no_candidates"
    status: Literal[ResolutionStatus.NO_MATCH] = ResolutionStatus.NO_MATCH

    @property
    def candidates(self) -> tuple[MatchCandidate, ...]:
        return ()


type ResolutionDecision = AutoMatch | ConfirmSingle | DisambiguateMulti | NoMatch


def classify(
    candidates: Sequence[MatchCandidate],
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
) -> ResolutionDecision:
    """Turn matcher output into a resolution decision.

    The input is re-ranked so the verdict does not depend on its ordering.
    """

    if not candidates:
        return NoMatch(reason="no_candidates")

    ranked = rank_candidates(candidates)
    best = ranked[0]
    runners_up = ranked[1:]

    if best.name_similarity > policy.auto_match_threshold and not any(
        other.name_similarity > policy.candidate_threshold for other in runners_up
    ):
        log.info(
            "Auto-matched %r (similarity=%.3f, keyword=%s)",
            best.name,
            best.name_similarity,
            best.keyword_match,
        )
        return AutoMatch(record=best.record, confidence=best.name_similarity, candidate=best)

    similar = [c for c in ranked if c.name_similarity > policy.ambiguity_threshold]
    keyworded = [c for c in ranked if c.keyword_match]
    if len(similar) > 1 or len(keyworded) > 1:
        reason = (
            AmbiguityReason.MULTIPLE_KEYWORD_MATCHES
            if len(keyworded) > 1
            else AmbiguityReason.MULTIPLE_SIMILAR_MATCHES
        )
        plausible = tuple(
            c
            for c in ranked
            if c.name_similarity > policy.candidate_threshold or c.keyword_match
        )[: policy.max_candidates]
        log.info(
            "%s: %d candidates (%s), best %r similarity=%.3f",
            AMBIGUOUS_MATCH_FALLBACK,
            len(plausible),
            reason,
            best.name,
            best.name_similarity,
            extra={"signal": AMBIGUOUS_MATCH_FALLBACK, "ambiguity_reason": str(reason)},
        )
        return DisambiguateMulti(candidates=plausible, reason=reason)

    if best.name_similarity > policy.ambiguity_threshold or best.keyword_match:
        log.info(
            "Confirmation required for %r (similarity=%.3f, keyword=%s)",
            best.name,
            best.name_similarity,
            best.keyword_match,
        )
        return ConfirmSingle(
            record=best.record,
            confidence=best.name_similarity,
            candidate=best,
            reason="single_plausible_match",
        )

    return NoMatch(reason="below_threshold")


def classify_partial(
    matches: Sequence[PartialNameMatch],
    *,
    policy: MatchingPolicy = DEFAULT_POLICY,
) -> ResolutionDecision:
    """Classify the partial-name fallback: the best hit always needs confirmation."""

    if not matches:
        return NoMatch(reason="no_candidates")
    best = matches[0]
    log.info(
        "Partial name match %r (ratio=%.2f, tokens=%s)",
        best.record.name,
        best.ratio,
        best.matching_tokens,
    )
    return ConfirmSingle(
        record=best.record,
        confidence=best.ratio * policy.partial_confidence_factor,
        reason="partial_name_match",
    )
