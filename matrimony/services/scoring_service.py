"""
Matrimony Matching — Weighted compatibility aggregation.

Combines the eight criterion sub-scores into a single directional
ScoreDetail::

    score = clamp(round(Σ(subscore × weight) / Σ weight), 1, 100)

Default weights (must sum to exactly 100):
  age 15, community 10, location 15, marital_status 15,
  education 15, alcohol 10, profession 10, diet 10.

The weight table is validated when the aggregator is constructed, not at
import, so a bad ``SCORE_WEIGHTS`` setting fails service start-up with a
``WeightConfigurationError`` instead of breaking every import.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping

import structlog

from matrimony.schemas.match import ScoreDetail
from matrimony.services.preferences import PreferenceSet, parse_flag
from matrimony.services import scorers
from matrimony.utils.dates import calculate_age

logger = structlog.get_logger("matrimony.scoring_service")

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

CRITERIA: tuple[str, ...] = (
    "age",
    "community",
    "location",
    "marital_status",
    "education",
    "alcohol",
    "profession",
    "diet",
)

DEFAULT_WEIGHTS: dict[str, int] = {
    "age": 15,
    "community": 10,
    "location": 15,
    "marital_status": 15,
    "education": 15,
    "alcohol": 10,
    "profession": 10,
    "diet": 10,
}

_REQUIRED_WEIGHT_SUM = 100

# (criterion, threshold, reason), appended in this order
_REASON_RULES: list[tuple[str, int, str]] = [
    ("age", 80, "Age within preferred range"),
    ("community", 50, "Community preference matched"),
    ("marital_status", 50, "Marital status match"),
    ("education", 80, "Education matches"),
    ("alcohol", 50, "Alcohol preference matches"),
    ("profession", 50, "Profession preference matched"),
    ("diet", 100, "Diet preference matched"),
]


class WeightConfigurationError(ValueError):
    """Raised when the criterion weight table is incomplete or mis-summed."""


def build_weight_table(weights: Mapping[str, int] | None = None) -> dict[str, int]:
    """Validate and return a criterion -> weight table.

    Raises
    ------
    WeightConfigurationError
        If a criterion is missing, an unknown criterion is present, a
        weight is negative, or the weights do not sum to exactly 100.
    """
    table = dict(DEFAULT_WEIGHTS if weights is None else weights)

    missing = [c for c in CRITERIA if c not in table]
    if missing:
        raise WeightConfigurationError(f"Missing weights for: {', '.join(missing)}")

    unknown = sorted(set(table) - set(CRITERIA))
    if unknown:
        raise WeightConfigurationError(f"Unknown criteria: {', '.join(unknown)}")

    for criterion, weight in table.items():
        if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
            raise WeightConfigurationError(
                f"Weight for {criterion!r} must be a non-negative integer, got {weight!r}"
            )

    total = sum(table.values())
    if total != _REQUIRED_WEIGHT_SUM:
        raise WeightConfigurationError(
            f"Weights must sum to {_REQUIRED_WEIGHT_SUM}, got {total}"
        )
    return table


# ──────────────────────────────────────────────────────────────────────────────
# Candidate facts
# ──────────────────────────────────────────────────────────────────────────────


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class CandidateProfile:
    """The subset of a candidate's attributes that scoring reads."""

    age: int | None = None
    community: list[str] = field(default_factory=list)
    country: str | None = None
    state: str | None = None
    marital_status: list[str] = field(default_factory=list)
    education: str | None = None
    drinks_alcohol: bool | None = None
    profession: list[str] = field(default_factory=list)
    diet: list[str] = field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        user: Any,
        personal: Any = None,
        education: Any = None,
        profession: Any = None,
        health: Any = None,
    ) -> "CandidateProfile":
        """Build from identity + sub-records; any sub-record may be missing."""
        religion = _text(getattr(personal, "religion", None))
        sub_caste = _text(getattr(personal, "sub_caste", None))
        community = [t for t in (religion, sub_caste) if t] if religion else []

        marital = _text(getattr(personal, "marital_status", None))
        occupation = _text(getattr(profession, "occupation", None))
        diet = _text(getattr(health, "diet", None))

        return cls(
            age=calculate_age(getattr(user, "date_of_birth", None)),
            community=community,
            country=_text(getattr(personal, "residing_country", None)),
            state=_text(getattr(personal, "state", None)),
            marital_status=[marital] if marital else [],
            education=_text(getattr(education, "highest_education", None)),
            drinks_alcohol=parse_flag(getattr(health, "alcohol", None)),
            profession=[occupation] if occupation else [],
            diet=[diet] if diet else [],
        )


# ──────────────────────────────────────────────────────────────────────────────
# Aggregator
# ──────────────────────────────────────────────────────────────────────────────


class ScoreAggregator:
    """Pure, deterministic ScoreDetail computation.

    Holds no state beyond the validated weight table, so a single
    instance is safely shared by concurrent scoring tasks.
    """

    def __init__(self, weights: Mapping[str, int] | None = None) -> None:
        self.weights = build_weight_table(weights)
        self._total_weight = sum(self.weights.values())

    def sub_scores(
        self, prefs: PreferenceSet, candidate: CandidateProfile
    ) -> tuple[dict[str, int], list[str]]:
        """Return ``(criterion -> sub-score, location reasons)``."""
        location, location_reasons = scorers.location_score(
            prefs.country, prefs.state, candidate.country, candidate.state
        )
        scores = {
            "age": scorers.age_score(prefs.age_from, prefs.age_to, candidate.age),
            "community": scorers.include_exclude_score(
                prefs.community, candidate.community
            ),
            "location": location,
            "marital_status": scorers.include_exclude_score(
                prefs.marital_status, candidate.marital_status
            ),
            "education": scorers.education_score(prefs.education, candidate.education),
            "alcohol": scorers.alcohol_score(prefs.alcohol, candidate.drinks_alcohol),
            "profession": scorers.include_exclude_score(
                prefs.profession, candidate.profession
            ),
            "diet": scorers.diet_score(prefs.diet, candidate.diet),
        }
        return scores, location_reasons

    def aggregate(self, prefs: PreferenceSet, candidate: CandidateProfile) -> ScoreDetail:
        scores, location_reasons = self.sub_scores(prefs, candidate)

        reasons: list[str] = []
        for criterion, threshold, reason in _REASON_RULES:
            if scores[criterion] >= threshold:
                reasons.append(reason)
            if criterion == "community":
                # location reasons sit between community and marital status
                reasons.extend(location_reasons)

        weighted = sum(scores[c] * self.weights[c] for c in CRITERIA)
        averaged = weighted / self._total_weight
        score = max(scorers.MIN_SCORE, min(scorers.MAX_SCORE, _round_half_up(averaged)))

        logger.debug("score_aggregated", score=score, **scores)
        return ScoreDetail(score=score, reasons=list(dict.fromkeys(reasons)))


def _round_half_up(value: float) -> int:
    # .5 rounds up, not to even
    return math.floor(value + 0.5)
