"""
Matrimony Matching — Privacy-tiered profile assembly.

Pure functions only: no I/O, no logging.  Callers load the records and the
connection state; these functions decide what a given viewer may see.

Visibility rules
----------------
- Income, phone and email are shown in full only when the connection
  state between viewer and candidate is ``accepted``; otherwise masked.
- Photo tiers:
    public          closer photo, always shown.
    connectionOnly  personal / family / other photos.  The URL is always
                    returned; ``is_blurred`` is set unless the viewer is the
                    owner, an admin, or has an accepted connection.
    adminOnly       government-ID image, only for admin viewers.
- Marital sub-fields are included by substring on the marital status:
  children fields unless "never", separation fields when "separat" or the
  separation flag is set, divorce fields when "divorc".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from matrimony.models.connection import ConnectionState
from matrimony.schemas.match import CloserPhoto, ListingProfile, ScoreDetail
from matrimony.schemas.profile import DetailedProfile, PhotoSet, PhotoView
from matrimony.utils.dates import calculate_age
from matrimony.utils.masking import mask_email, mask_income, mask_phone

DETAILED_OTHER_PHOTO_LIMIT = 2


@dataclass(frozen=True)
class VisibilityPolicy:
    is_self: bool = False
    is_admin: bool = False
    is_accepted: bool = False

    @classmethod
    def for_viewer(
        cls,
        viewer_id: Any,
        owner_id: Any,
        viewer_role: str = "user",
        state: ConnectionState = ConnectionState.NONE,
    ) -> "VisibilityPolicy":
        return cls(
            is_self=str(viewer_id) == str(owner_id),
            is_admin=(viewer_role or "").lower() == "admin",
            is_accepted=state is ConnectionState.ACCEPTED,
        )

    @property
    def blur_connection_only(self) -> bool:
        return not (self.is_self or self.is_admin or self.is_accepted)

    @property
    def show_government_id(self) -> bool:
        return self.is_admin

    @property
    def unmask_contact(self) -> bool:
        return self.is_accepted


def _get(record: Any, name: str, default: Any = None) -> Any:
    if record is None:
        return default
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


# ── Photos ────────────────────────────────────────────────────────────────


def _photo(entry: Any, blurred: bool, with_title: bool = False) -> PhotoView | None:
    if entry is None:
        return None
    return PhotoView(
        url=_get(entry, "url"),
        title=_get(entry, "title") if with_title else None,
        is_blurred=blurred,
    )


def closer_photo_url(profile: Any) -> str | None:
    return _get(_get(_get(profile, "photos"), "closer_photo"), "url")


def build_photo_set(
    profile: Any,
    policy: VisibilityPolicy,
    other_photo_limit: int | None = DETAILED_OTHER_PHOTO_LIMIT,
) -> PhotoSet:
    photos = _get(profile, "photos") or {}
    blurred = policy.blur_connection_only

    closer = _get(photos, "closer_photo")
    personal = _get(photos, "personal_photos") or []
    family = _get(photos, "family_photo")
    others = _get(photos, "other_photos") or []
    if other_photo_limit is not None:
        others = others[:other_photo_limit]

    government_id = None
    if policy.show_government_id:
        government_id = _photo(_get(profile, "government_id_image"), blurred=False)

    return PhotoSet(
        closer_photo=_photo(closer, blurred=False),
        personal_photos=[p for p in (_photo(e, blurred) for e in personal) if p],
        family_photo=_photo(family, blurred),
        other_photos=[p for p in (_photo(e, blurred, with_title=True) for e in others) if p],
        government_id_image=government_id,
    )


# ── Listing view ──────────────────────────────────────────────────────────


def build_listing(
    candidate: Any,
    personal: Any = None,
    profile: Any = None,
    profession: Any = None,
    status: ConnectionState = ConnectionState.NONE,
    favorites: set[str] | None = None,
) -> ListingProfile:
    return ListingProfile(
        user_id=candidate.id,
        first_name=_get(candidate, "first_name"),
        last_name=_get(candidate, "last_name"),
        age=calculate_age(_get(candidate, "date_of_birth")),
        status=status,
        city=_get(personal, "city"),
        state=_get(personal, "state"),
        country=_get(personal, "residing_country"),
        religion=_get(personal, "religion"),
        sub_caste=_get(personal, "sub_caste"),
        profession=_get(profession, "occupation"),
        is_favorite=str(candidate.id) in (favorites or set()),
        closer_photo=CloserPhoto(url=closer_photo_url(profile)),
        created_at=_get(candidate, "created_at"),
    )


# ── Detailed view ─────────────────────────────────────────────────────────


def _children_fields(personal: Any) -> dict[str, Any]:
    return {
        "number_of_children": _get(personal, "number_of_children") or 0,
        "children_living_with_you": _get(personal, "children_living_with_you"),
    }


def marital_detail_fields(personal: Any) -> dict[str, Any]:
    """Conditional sub-fields keyed by substring of the marital status."""
    status = str(_get(personal, "marital_status") or "").lower()
    has_children = bool(_get(personal, "has_children"))
    legally_separated = bool(_get(personal, "legally_separated"))
    fields: dict[str, Any] = {}

    if status and "never" not in status:
        fields["has_children"] = has_children
        if has_children:
            fields.update(_children_fields(personal))

    if "separat" in status or legally_separated:
        fields["legally_separated"] = legally_separated
        if legally_separated:
            fields["separated_since"] = _get(personal, "separated_since")

    if "divorc" in status:
        fields["divorce_status"] = _get(personal, "divorce_status")
        if has_children:
            fields["has_children"] = True
            fields.update(_children_fields(personal))

    return fields


def _family_fields(family: Any) -> dict[str, Any]:
    out: dict[str, Any] = {
        "father_name": _get(family, "father_name"),
        "mother_name": _get(family, "mother_name"),
        "father_occupation": _get(family, "father_occupation"),
        "mother_occupation": _get(family, "mother_occupation"),
        "father_native_place": _get(family, "father_native_place"),
        "grandfather_name": _get(family, "grandfather_name"),
        "grandmother_name": _get(family, "grandmother_name"),
        "nana_name": _get(family, "nana_name"),
        "nana_native_place": _get(family, "nana_native_place"),
        "nani_name": _get(family, "nani_name"),
        "family_type": _get(family, "family_type"),
    }
    if _get(family, "has_siblings"):
        out["siblings"] = _get(family, "sibling_count")
        out["sibling_details"] = [
            {
                "name": _get(s, "name"),
                "relation": _get(s, "relation"),
                "marital_status": _get(s, "marital_status"),
            }
            for s in (_get(family, "sibling_details") or [])
        ]
    return out


def build_detailed(
    candidate: Any,
    policy: VisibilityPolicy,
    state: ConnectionState = ConnectionState.NONE,
    personal: Any = None,
    education: Any = None,
    profession: Any = None,
    health: Any = None,
    family: Any = None,
    profile: Any = None,
    score_detail: ScoreDetail | None = None,
    is_favorite: bool = False,
) -> DetailedProfile:
    unmask = policy.unmask_contact

    email = _get(candidate, "email")
    phone = _get(candidate, "phone_number")
    income = _get(profession, "annual_income")

    personal_fields = {
        "city": _get(personal, "city"),
        "state": _get(personal, "state"),
        "country": _get(personal, "residing_country"),
        "nationality": _get(personal, "nationality"),
        "religion": _get(personal, "religion"),
        "sub_caste": _get(personal, "sub_caste"),
        "height": _get(personal, "height"),
        "weight": _get(personal, "weight"),
        "marital_status": _get(personal, "marital_status"),
        "marry_to_other_religion": _get(personal, "marry_to_other_religion"),
        "astrological_sign": _get(personal, "astrological_sign"),
        "birth_place": _get(personal, "birth_place"),
        "birth_state": _get(personal, "birth_state"),
        "time_of_birth": _get(personal, "time_of_birth"),
        "dosh": _get(personal, "dosh"),
    }
    personal_fields.update(marital_detail_fields(personal))

    return DetailedProfile(
        user_id=candidate.id,
        first_name=_get(candidate, "first_name"),
        middle_name=_get(candidate, "middle_name"),
        last_name=_get(candidate, "last_name"),
        gender=_get(candidate, "gender"),
        age=calculate_age(_get(candidate, "date_of_birth")),
        date_of_birth=_get(candidate, "date_of_birth"),
        custom_id=_get(candidate, "custom_id"),
        email=email if (unmask and email) else mask_email(email),
        phone_number=phone if (unmask and phone) else mask_phone(phone),
        is_favorite=is_favorite,
        status=state,
        score_detail=score_detail,
        created_at=_get(candidate, "created_at"),
        personal=personal_fields,
        family=_family_fields(family),
        education={
            "school_name": _get(education, "school_name"),
            "highest_education": _get(education, "highest_education"),
            "field_of_study": _get(education, "field_of_study"),
            "university": _get(education, "university"),
            "country_of_education": _get(education, "country_of_education"),
        },
        professional={
            "organization_name": _get(profession, "organization_name"),
            "employment_status": _get(profession, "employment_status"),
            "annual_income": income if (unmask and income) else mask_income(income),
            "occupation": _get(profession, "occupation"),
        },
        health_and_lifestyle={
            "alcohol": _get(health, "alcohol"),
            "tobacco": _get(health, "tobacco"),
            "tattoos": _get(health, "tattoos"),
            "diet": _get(health, "diet"),
        },
        photos=build_photo_set(profile, policy),
    )
