"""Threshold configuration for candidate matching and classification."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchingPolicy:
    """Tunable thresholds.

    Defaults reproduce the empirically tuned behaviour of the review platform:
    candidates survive above 0.6, two candidates above 0.7 are ambiguous and a
    lone candidate above 0.85 is accepted without confirmation.
    """

    candidate_threshold: float = 0.6
    ambiguity_threshold: float = 0.7
    auto_match_threshold: float = 0.85
    max_candidates: int = 5
    auxiliary_near_threshold: float = 0.9
    abv_tolerance: float = 0.2
    partial_name_fallback: bool = False
    partial_min_ratio: float = 0.5
    partial_confidence_factor: float = 0.8

    def __post_init__(self) -> None:
        ordered = (
            0.0
            <= self.candidate_threshold
            <= self.ambiguity_threshold
            <= self.auto_match_threshold
            <= 1.0
        )
        if not ordered:
            raise ValueError(
                "Thresholds must satisfy 0 <= candidate <= ambiguity <= auto_match <= 1 "
                f"(got {self.candidate_threshold}, {self.ambiguity_threshold}, "
                f"{self.auto_match_threshold})"
            )
        if self.max_candidates < 1:
            raise ValueError("max_candidates must be at least 1")
        if self.abv_tolerance < 0:
            raise ValueError("abv_tolerance must be non-negative")


DEFAULT_POLICY = MatchingPolicy()
