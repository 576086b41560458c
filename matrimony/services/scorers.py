"""
Matrimony Matching — Per-criterion compatibility scorers.

Every scorer is a pure function over canonical token lists (see
``matrimony.services.preferences``) and returns an integer.  Specific
preferences always yield a value in [1, 100]; 0 is only returned when the
seeker has no preference *and* the candidate has no data, which the
aggregator weights like any other value.

Scorers
-------
- ``age_score``            — in-range 100, otherwise 10 points lost per year.
- ``include_exclude_score`` — shared by community, profession, marital status.
- ``diet_score``           — canonical categories over a compatibility lattice.
- ``education_score``      — token match with a 70 partial and 50 fallback.
- ``alcohol_score``        — yes / no / occasionally.
- ``location_score``       — country pass then state pass; state overwrites.
"""

from __future__ import annotations

import re

from matrimony.services.preferences import is_no_preference, split_include_exclude

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

MAX_SCORE = 100
MIN_SCORE = 1
NEUTRAL_SCORE = 50

EDUCATION_PARTIAL_SCORE = 70
EDUCATION_MISSING_SCORE = 50
COUNTRY_MATCH_SCORE = 80

VEGETARIAN = "vegetarian"
NON_VEGETARIAN = "non-vegetarian"
EGGETARIAN = "eggetarian"
JAIN = "jain"
SWAMINARAYAN = "swaminarayan"
VEG_AND_NON_VEG = "veg & non-veg"

DIET_CATEGORIES: tuple[str, ...] = (
    VEGETARIAN,
    NON_VEGETARIAN,
    EGGETARIAN,
    JAIN,
    SWAMINARAYAN,
    VEG_AND_NON_VEG,
)

# Preferred category -> candidate categories it accepts.
DIET_LATTICE: dict[str, frozenset[str]] = {
    VEGETARIAN: frozenset({VEGETARIAN, JAIN, SWAMINARAYAN}),
    EGGETARIAN: frozenset({EGGETARIAN, VEGETARIAN, SWAMINARAYAN}),
    SWAMINARAYAN: frozenset({SWAMINARAYAN}),
    JAIN: frozenset({JAIN}),
    NON_VEGETARIAN: frozenset(DIET_CATEGORIES),
    VEG_AND_NON_VEG: frozenset(DIET_CATEGORIES),
}

_EDUCATION_SPLIT = re.compile(r"[\s\-_]+")
_DIET_CONJUNCTIONS = ("&", " and ", "/", "+")


# ──────────────────────────────────────────────────────────────────────────────
# Age
# ──────────────────────────────────────────────────────────────────────────────


def age_score(age_from: int, age_to: int, candidate_age: int | None) -> int:
    """Score a candidate's age against ``[age_from, age_to]``.

    Returns ``NEUTRAL_SCORE`` when the candidate's age is unknown.
    """
    if candidate_age is None:
        return NEUTRAL_SCORE
    if age_from <= candidate_age <= age_to:
        return MAX_SCORE
    distance = min(abs(candidate_age - age_from), abs(candidate_age - age_to))
    return max(MIN_SCORE, round(MAX_SCORE - 10 * distance))


# ──────────────────────────────────────────────────────────────────────────────
# Include / exclude
# ──────────────────────────────────────────────────────────────────────────────


def include_exclude_matches(preference: list[str], candidate: list[str]) -> bool:
    """Return True if *candidate* satisfies the include/exclude tokens.

    An empty include list allows everything.  Comparison is exact on
    lower-cased tokens.
    """
    include, exclude = split_include_exclude(preference)
    candidate_lower = {token.strip().lower() for token in candidate if token.strip()}

    in_include = not include or any(inc.lower() in candidate_lower for inc in include)
    in_exclude = any(exc in candidate_lower for exc in exclude)
    return in_include and not in_exclude


def include_exclude_score(preference: list[str], candidate: list[str]) -> int:
    if is_no_preference(preference):
        return MAX_SCORE if candidate else 0
    if not candidate:
        return MIN_SCORE
    return MAX_SCORE if include_exclude_matches(preference, candidate) else MIN_SCORE


# ──────────────────────────────────────────────────────────────────────────────
# Diet
# ──────────────────────────────────────────────────────────────────────────────


def canonical_diet(value: str) -> str:
    """Map a free-form diet string onto a canonical category.

    Unknown strings are returned lower-cased so they can still match
    themselves exactly.
    """
    x = value.strip().lower()
    if "swamin" in x:
        return SWAMINARAYAN
    if "jain" in x:
        return JAIN
    if "egg" in x:
        return EGGETARIAN
    if x in ("both", "flexible") or (
        "veg" in x and "non" in x and any(c in x for c in _DIET_CONJUNCTIONS)
    ):
        return VEG_AND_NON_VEG
    if "non" in x:
        return NON_VEGETARIAN
    if "veget" in x or x == "veg":
        return VEGETARIAN
    return x


def allowed_diets(preference: list[str]) -> set[str]:
    """Resolve preference tokens to the set of acceptable candidate categories."""
    include, exclude = split_include_exclude(preference)

    allowed: set[str] = set()
    if not include:
        allowed.update(DIET_CATEGORIES)
    else:
        for pref in include:
            category = canonical_diet(pref)
            allowed.update(DIET_LATTICE.get(category, {category}))

    for exc in exclude:
        allowed.discard(canonical_diet(exc))
    return allowed


def diet_score(preference: list[str], candidate: list[str]) -> int:
    if is_no_preference(preference):
        return MAX_SCORE if candidate else 0
    if not candidate:
        return MIN_SCORE

    allowed = allowed_diets(preference)
    if not allowed:
        return MIN_SCORE
    return (
        MAX_SCORE
        if any(canonical_diet(c) in allowed for c in candidate)
        else MIN_SCORE
    )


# ──────────────────────────────────────────────────────────────────────────────
# Education
# ──────────────────────────────────────────────────────────────────────────────


def education_score(preference: list[str], candidate_education: str | None) -> int:
    """Score the candidate's highest education against the preference.

    Unlike the generic include/exclude scorer, a specific preference with
    no candidate data yields 50 and an unmatched include yields 70.
    """
    candidate = (candidate_education or "").strip()
    if is_no_preference(preference):
        return MAX_SCORE if candidate else 0
    if not candidate:
        return EDUCATION_MISSING_SCORE

    lowered = candidate.lower()
    tokens = [t for t in _EDUCATION_SPLIT.split(lowered) if t]
    include, exclude = split_include_exclude(preference)

    if any(exc in tokens or exc in lowered for exc in exclude):
        return MIN_SCORE

    for inc in include:
        wanted = inc.lower()
        if wanted == lowered or wanted in tokens:
            return MAX_SCORE
    return EDUCATION_PARTIAL_SCORE


# ──────────────────────────────────────────────────────────────────────────────
# Alcohol
# ──────────────────────────────────────────────────────────────────────────────


def alcohol_score(preference: str | None, candidate_drinks: bool | None) -> int:
    """Score alcohol compatibility.

    ``"occasionally"`` accepts every candidate, including those with no
    recorded status.  The explicit values are matched before the
    no-preference sentinel, which would otherwise swallow ``"no"``.
    """
    pref = (preference or "").strip().lower()
    if pref == "occasionally":
        return MAX_SCORE
    if pref == "yes":
        return MAX_SCORE if candidate_drinks is True else MIN_SCORE
    if pref == "no":
        return MAX_SCORE if candidate_drinks is False else MIN_SCORE
    if is_no_preference([pref] if pref else []):
        return MAX_SCORE if candidate_drinks is not None else 0
    return MIN_SCORE


# ──────────────────────────────────────────────────────────────────────────────
# Location
# ──────────────────────────────────────────────────────────────────────────────


def location_score(
    country_pref: list[str],
    state_pref: list[str],
    candidate_country: str | None,
    candidate_state: str | None,
) -> tuple[int, list[str]]:
    """Two-pass location score.

    Pass 1 scores the country (no preference is a perfect 100, a match is
    80).  Pass 2 overwrites the result with 100 when the candidate's state
    matches a specific state preference.  Returns ``(score, reasons)``.
    """
    score = MIN_SCORE
    reasons: list[str] = []

    if is_no_preference(country_pref):
        score = MAX_SCORE
    elif candidate_country and include_exclude_matches(
        country_pref, [candidate_country]
    ):
        score = COUNTRY_MATCH_SCORE
        reasons.append("Same country")

    if (
        candidate_state
        and not is_no_preference(state_pref)
        and include_exclude_matches(state_pref, [candidate_state])
    ):
        score = MAX_SCORE
        reasons.append("Same state")

    return score, reasons
