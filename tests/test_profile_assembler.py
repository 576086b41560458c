"""Tests for privacy-tiered profile assembly (pure functions)."""
import uuid
from types import SimpleNamespace

import pytest

from matrimony.models.connection import ConnectionState
from matrimony.services.profile_assembler import (
    VisibilityPolicy,
    build_detailed,
    build_listing,
    build_photo_set,
    closer_photo_url,
    marital_detail_fields,
)


@pytest.fixture
def photo_profile():
    return SimpleNamespace(
        photos={
            "closer_photo": {"url": "close.jpg"},
            "personal_photos": [{"url": "p1.jpg"}, {"url": "p2.jpg"}],
            "family_photo": {"url": "family.jpg"},
            "other_photos": [{"url": f"o{i}.jpg", "title": f"T{i}"} for i in range(5)],
        },
        government_id_image={"url": "id.jpg"},
    )


class TestVisibilityPolicy:
    def test_stranger(self):
        policy = VisibilityPolicy.for_viewer(uuid.uuid4(), uuid.uuid4())
        assert policy.blur_connection_only is True
        assert policy.unmask_contact is False
        assert policy.show_government_id is False

    def test_owner(self):
        owner = uuid.uuid4()
        policy = VisibilityPolicy.for_viewer(owner, str(owner))
        assert policy.is_self is True
        assert policy.blur_connection_only is False

    def test_accepted(self):
        policy = VisibilityPolicy.for_viewer(
            uuid.uuid4(), uuid.uuid4(), state=ConnectionState.ACCEPTED
        )
        assert policy.unmask_contact is True
        assert policy.blur_connection_only is False

    @pytest.mark.parametrize(
        "state",
        [ConnectionState.PENDING, ConnectionState.REJECTED, ConnectionState.WITHDRAWN],
    )
    def test_non_accepted_states_mask(self, state):
        policy = VisibilityPolicy.for_viewer(uuid.uuid4(), uuid.uuid4(), state=state)
        assert policy.unmask_contact is False

    def test_admin(self):
        policy = VisibilityPolicy.for_viewer(uuid.uuid4(), uuid.uuid4(), viewer_role="ADMIN")
        assert policy.show_government_id is True
        assert policy.blur_connection_only is False
        assert policy.unmask_contact is False


class TestPhotoSet:
    def test_stranger_sees_blurred_connection_tier(self, photo_profile):
        photos = build_photo_set(photo_profile, VisibilityPolicy())
        assert photos.closer_photo.url == "close.jpg"
        assert photos.closer_photo.is_blurred is False
        assert [p.is_blurred for p in photos.personal_photos] == [True, True]
        assert photos.family_photo.url == "family.jpg"
        assert photos.family_photo.is_blurred is True
        assert photos.government_id_image is None

    def test_other_photos_limited_to_two(self, photo_profile):
        photos = build_photo_set(photo_profile, VisibilityPolicy())
        assert [p.url for p in photos.other_photos] == ["o0.jpg", "o1.jpg"]
        assert photos.other_photos[0].title == "T0"

    def test_no_limit(self, photo_profile):
        photos = build_photo_set(photo_profile, VisibilityPolicy(), other_photo_limit=None)
        assert len(photos.other_photos) == 5

    def test_admin_sees_government_id(self, photo_profile):
        photos = build_photo_set(photo_profile, VisibilityPolicy(is_admin=True))
        assert photos.government_id_image.url == "id.jpg"

    def test_missing_profile(self):
        photos = build_photo_set(None, VisibilityPolicy())
        assert photos.closer_photo is None
        assert photos.personal_photos == []
        assert closer_photo_url(None) is None


class TestMaritalFields:
    def test_never_married_has_no_sub_fields(self):
        personal = SimpleNamespace(marital_status="Never Married", has_children=True)
        assert marital_detail_fields(personal) == {}

    def test_widowed_with_children(self):
        personal = SimpleNamespace(
            marital_status="Widowed",
            has_children=True,
            number_of_children=2,
            children_living_with_you=True,
            legally_separated=False,
        )
        assert marital_detail_fields(personal) == {
            "has_children": True,
            "number_of_children": 2,
            "children_living_with_you": True,
        }

    def test_separated(self):
        personal = SimpleNamespace(
            marital_status="Awaiting Divorce / Separated",
            has_children=False,
            legally_separated=True,
            separated_since="2024",
        )
        fields = marital_detail_fields(personal)
        assert fields["legally_separated"] is True
        assert fields["separated_since"] == "2024"
        assert fields["has_children"] is False

    def test_divorced(self):
        personal = SimpleNamespace(
            marital_status="Divorced",
            has_children=True,
            number_of_children=None,
            children_living_with_you=False,
            divorce_status="Finalised",
        )
        fields = marital_detail_fields(personal)
        assert fields["divorce_status"] == "Finalised"
        assert fields["has_children"] is True
        assert fields["number_of_children"] == 0

    def test_missing_personal(self):
        assert marital_detail_fields(None) == {}


class TestListing:
    def test_listing_fields(self):
        candidate = SimpleNamespace(
            id=uuid.uuid4(), first_name="Meera", last_name="Shah", date_of_birth=None, created_at=None
        )
        personal = SimpleNamespace(city="Pune", state="MH", residing_country="India",
                                   religion="Hindu", sub_caste=None)
        listing = build_listing(
            candidate,
            personal=personal,
            profile=SimpleNamespace(photos={"closer_photo": {"url": "c.jpg"}}),
            profession={"occupation": "Architect"},
            favorites={str(candidate.id)},
        )
        assert listing.first_name == "Meera"
        assert listing.city == "Pune"
        assert listing.profession == "Architect"
        assert listing.is_favorite is True
        assert listing.closer_photo.url == "c.jpg"
        assert listing.status is ConnectionState.NONE


class TestDetailed:
    def _candidate(self):
        return SimpleNamespace(
            id=uuid.uuid4(),
            first_name="Meera",
            middle_name=None,
            last_name="Shah",
            gender="female",
            date_of_birth=None,
            custom_id="MM-1001",
            email="meera@example.com",
            phone_number="+91 98765 43219",
            created_at=None,
        )

    def test_masked_contact(self):
        candidate = self._candidate()
        detailed = build_detailed(
            candidate,
            VisibilityPolicy(),
            state=ConnectionState.PENDING,
            profession=SimpleNamespace(annual_income="20 LPA", occupation="Architect",
                                       organization_name=None, employment_status=None),
        )
        assert detailed.email == "m***@example.com"
        assert detailed.phone_number == "********19"
        assert detailed.professional["annual_income"] == "****"
        assert detailed.professional["occupation"] == "Architect"
        assert detailed.status is ConnectionState.PENDING

    def test_unmasked_contact(self):
        candidate = self._candidate()
        detailed = build_detailed(
            candidate,
            VisibilityPolicy(is_accepted=True),
            state=ConnectionState.ACCEPTED,
            profession=SimpleNamespace(annual_income="20 LPA"),
        )
        assert detailed.email == "meera@example.com"
        assert detailed.phone_number == "+91 98765 43219"
        assert detailed.professional["annual_income"] == "20 LPA"

    def test_siblings_only_when_flagged(self):
        candidate = self._candidate()
        family = SimpleNamespace(
            father_name="Raj",
            has_siblings=True,
            sibling_count=1,
            sibling_details=[{"name": "Kiran", "relation": "Brother", "marital_status": "Married"}],
        )
        detailed = build_detailed(candidate, VisibilityPolicy(), family=family)
        assert detailed.family["father_name"] == "Raj"
        assert detailed.family["siblings"] == 1
        assert detailed.family["sibling_details"][0]["name"] == "Kiran"

        family.has_siblings = False
        detailed = build_detailed(candidate, VisibilityPolicy(), family=family)
        assert "siblings" not in detailed.family

    def test_marital_fields_merged_into_personal(self):
        candidate = self._candidate()
        personal = SimpleNamespace(marital_status="Divorced", divorce_status="Finalised",
                                   has_children=False)
        detailed = build_detailed(candidate, VisibilityPolicy(), personal=personal)
        assert detailed.personal["marital_status"] == "Divorced"
        assert detailed.personal["divorce_status"] == "Finalised"
