"""
Matrimony Matching — Preference normalisation.

Partner preferences arrive as free-form JSON: a bare string, a list of
strings, an object whose values are the interesting part, a number, or
nothing at all.  Everything downstream works on a canonical ordered list
of trimmed, non-empty strings produced here; scorers never see raw input.

A token list is a *no-preference sentinel* when it is empty, or when any
token (lower-cased) equals, contains, or is contained by one of the
indicator strings ``"no preference"`` / ``"any"``.  The containment rule is
deliberately loose and reproduces existing behaviour: ``"Germany"``
contains ``"any"`` and therefore reads as "no preference".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

NO_PREFERENCE_INDICATORS: tuple[str, ...] = ("no preference", "any")

_NEGATION_PREFIX = "not "

DEFAULT_AGE_FROM = 21
DEFAULT_AGE_TO = 36
DEFAULT_ALCOHOL = "occasionally"
_NO_PREFERENCE = "No Preference"


# ──────────────────────────────────────────────────────────────────────────────
# Token helpers
# ──────────────────────────────────────────────────────────────────────────────


def _flatten(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, dict):
        out: list[str] = []
        for item in value.values():
            out.extend(_flatten(item))
        return out
    if isinstance(value, (list, tuple, set)):
        out = []
        for item in value:
            out.extend(_flatten(item))
        return out
    text = str(value).strip()
    return [text] if text else []


def to_token_list(value: Any) -> list[str]:
    """Convert a free-form preference value into an ordered token list.

    ``None`` becomes ``[]``; strings and numbers become a single trimmed
    token; lists and dict values are flattened recursively.  Blank tokens
    are dropped, order is preserved, duplicates are kept.
    """
    if isinstance(value, bool):
        # bools are ints in Python; treat them as their display string
        return [str(value).lower()]
    return _flatten(value)


def is_no_preference(tokens: list[str] | None) -> bool:
    """Return True if *tokens* represents "accept anything"."""
    if not tokens:
        return True
    for token in tokens:
        lowered = token.strip().lower()
        if not lowered:
            continue
        for indicator in NO_PREFERENCE_INDICATORS:
            if lowered == indicator or indicator in lowered or lowered in indicator:
                return True
    return False


def split_include_exclude(tokens: list[str]) -> tuple[list[str], list[str]]:
    """Split tokens into ``(include, exclude)``.

    Tokens starting with ``"not "`` (case-insensitive) are excludes; the
    prefix is stripped and the remainder lower-cased.  Includes are kept
    as given.
    """
    include: list[str] = []
    exclude: list[str] = []
    for token in tokens:
        stripped = token.strip()
        if stripped.lower().startswith(_NEGATION_PREFIX):
            rest = stripped[len(_NEGATION_PREFIX):].strip().lower()
            if rest:
                exclude.append(rest)
        elif stripped:
            include.append(stripped)
    return include, exclude


def parse_flag(value: Any) -> bool | None:
    """Parse a ternary yes/no flag.

    Returns True / False for explicit values and ``None`` when the value is
    unset or unrecognised.  ``"occasional"`` counts as True.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    if text in ("yes", "true", "y", "1") or text.startswith("occasional"):
        return True
    if text in ("no", "false", "n", "0"):
        return False
    return None


# ──────────────────────────────────────────────────────────────────────────────
# PreferenceSet
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PreferenceSet:
    """A seeker's partner preferences in canonical form."""

    age_from: int = DEFAULT_AGE_FROM
    age_to: int = DEFAULT_AGE_TO
    community: list[str] = field(default_factory=list)
    country: list[str] = field(default_factory=lambda: [_NO_PREFERENCE])
    state: list[str] = field(default_factory=lambda: [_NO_PREFERENCE])
    marital_status: list[str] = field(default_factory=lambda: [_NO_PREFERENCE])
    education: list[str] = field(default_factory=lambda: [_NO_PREFERENCE])
    alcohol: str = DEFAULT_ALCOHOL
    profession: list[str] = field(default_factory=list)
    diet: list[str] = field(default_factory=list)


# Raw key -> PreferenceSet attribute.  Accepts both the ORM attribute names
# and the camelCase keys that older clients still submit.
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "community": ("community",),
    "country": ("living_in_country", "livingInCountry", "country"),
    "state": ("living_in_state", "livingInState", "state"),
    "marital_status": ("marital_status", "maritalStatus"),
    "education": ("education_level", "educationLevel", "education"),
    "profession": ("profession",),
    "diet": ("diet",),
}


def _read(raw: Any, key: str) -> Any:
    if isinstance(raw, dict):
        return raw.get(key)
    return getattr(raw, key, None)


def _first_present(raw: Any, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = _read(raw, key)
        if value is not None:
            return value
    return None


def _as_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def normalize_preferences(raw: Any) -> PreferenceSet:
    """Build a :class:`PreferenceSet` from a preference record or dict.

    Only fields that are actually present override the permissive
    defaults.  *raw* may be ``None`` (no preferences saved), a plain dict,
    or a ``PartnerPreference`` ORM instance.
    """
    if raw is None:
        return PreferenceSet()

    defaults = PreferenceSet()
    overrides: dict[str, Any] = {}

    age = _first_present(raw, ("age",))
    age_from = _first_present(raw, ("age_from", "ageFrom"))
    age_to = _first_present(raw, ("age_to", "ageTo"))
    if isinstance(age, dict):
        age_from = age.get("from", age_from)
        age_to = age.get("to", age_to)
    overrides["age_from"] = _as_int(age_from, defaults.age_from)
    overrides["age_to"] = _as_int(age_to, defaults.age_to)

    for attr, keys in _FIELD_ALIASES.items():
        value = _first_present(raw, keys)
        if value is not None:
            overrides[attr] = to_token_list(value)

    alcohol = _first_present(raw, ("alcohol",))
    if alcohol is not None and str(alcohol).strip():
        overrides["alcohol"] = str(alcohol).strip()

    return PreferenceSet(**{**defaults.__dict__, **overrides})
