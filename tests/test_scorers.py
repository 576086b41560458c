"""Tests for the per-criterion compatibility scorers."""
import pytest

from matrimony.services import scorers
from matrimony.services.scorers import (
    COUNTRY_MATCH_SCORE,
    EDUCATION_MISSING_SCORE,
    EDUCATION_PARTIAL_SCORE,
    MAX_SCORE,
    MIN_SCORE,
    NEUTRAL_SCORE,
)


class TestAgeScore:
    def test_in_range(self):
        assert scorers.age_score(25, 30, 27) == MAX_SCORE

    def test_bounds_are_inclusive(self):
        assert scorers.age_score(25, 30, 25) == MAX_SCORE
        assert scorers.age_score(25, 30, 30) == MAX_SCORE

    def test_two_years_above(self):
        """[25, 30] with a 32-year-old loses 20 points."""
        assert scorers.age_score(25, 30, 32) == 80

    def test_below_range_uses_nearest_bound(self):
        assert scorers.age_score(25, 30, 22) == 70

    def test_floor_is_one(self):
        assert scorers.age_score(25, 30, 60) == MIN_SCORE

    def test_unknown_age_is_neutral(self):
        assert scorers.age_score(25, 30, None) == NEUTRAL_SCORE


class TestIncludeExclude:
    def test_no_preference_with_data(self):
        assert scorers.include_exclude_score([], ["Hindu"]) == MAX_SCORE

    def test_no_preference_without_data(self):
        assert scorers.include_exclude_score(["No Preference"], []) == 0

    def test_specific_preference_without_data(self):
        assert scorers.include_exclude_score(["Hindu"], []) == MIN_SCORE

    def test_include_match_is_case_insensitive(self):
        assert scorers.include_exclude_score(["hindu"], ["Hindu", "Patel"]) == MAX_SCORE

    def test_include_miss(self):
        assert scorers.include_exclude_score(["Sikh"], ["Hindu"]) == MIN_SCORE

    def test_exclude_only_rejects_match(self):
        """['not doctor'] against a Doctor scores the minimum."""
        assert scorers.include_exclude_score(["not doctor"], ["Doctor"]) == MIN_SCORE

    def test_exclude_only_accepts_others(self):
        assert scorers.include_exclude_score(["not doctor"], ["Engineer"]) == MAX_SCORE

    def test_exclude_wins_over_include(self):
        assert scorers.include_exclude_score(["Hindu", "not patel"], ["Hindu", "Patel"]) == MIN_SCORE

    def test_matching_is_exact_not_substring(self):
        assert scorers.include_exclude_score(["Engineer"], ["Software Engineer"]) == MIN_SCORE


class TestCanonicalDiet:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Vegetarian", scorers.VEGETARIAN),
            ("veg", scorers.VEGETARIAN),
            ("Non-Vegetarian", scorers.NON_VEGETARIAN),
            ("non veg", scorers.NON_VEGETARIAN),
            ("Eggetarian", scorers.EGGETARIAN),
            ("Jain", scorers.JAIN),
            ("Swaminarayan", scorers.SWAMINARAYAN),
            ("Veg & Non-Veg", scorers.VEG_AND_NON_VEG),
            ("veg and non veg", scorers.VEG_AND_NON_VEG),
            ("both", scorers.VEG_AND_NON_VEG),
            ("Flexible", scorers.VEG_AND_NON_VEG),
            ("Vegan", "vegan"),
        ],
    )
    def test_mapping(self, raw, expected):
        assert scorers.canonical_diet(raw) == expected


class TestDietScore:
    def test_vegetarian_accepts_jain(self):
        assert scorers.diet_score(["vegetarian"], ["Jain"]) == MAX_SCORE

    def test_vegetarian_accepts_swaminarayan(self):
        assert scorers.diet_score(["Vegetarian"], ["Swaminarayan"]) == MAX_SCORE

    def test_vegetarian_rejects_non_veg(self):
        assert scorers.diet_score(["vegetarian"], ["Non-Vegetarian"]) == MIN_SCORE

    def test_jain_is_strict(self):
        assert scorers.diet_score(["Jain"], ["Vegetarian"]) == MIN_SCORE

    def test_eggetarian_accepts_vegetarian(self):
        assert scorers.diet_score(["Eggetarian"], ["Vegetarian"]) == MAX_SCORE

    def test_non_veg_accepts_everything(self):
        for diet in ("Vegetarian", "Jain", "Eggetarian", "Non-Veg"):
            assert scorers.diet_score(["Non-Vegetarian"], [diet]) == MAX_SCORE

    def test_exclusion_removes_category(self):
        assert scorers.diet_score(["not jain"], ["Jain"]) == MIN_SCORE
        assert scorers.diet_score(["not jain"], ["Vegetarian"]) == MAX_SCORE

    def test_no_preference(self):
        assert scorers.diet_score([], ["Jain"]) == MAX_SCORE
        assert scorers.diet_score([], []) == 0

    def test_specific_preference_without_data(self):
        assert scorers.diet_score(["Vegetarian"], []) == MIN_SCORE


class TestEducationScore:
    def test_exact_match(self):
        assert scorers.education_score(["B.Tech"], "b.tech") == MAX_SCORE

    def test_token_match(self):
        assert scorers.education_score(["Masters"], "Masters in Computer Science") == MAX_SCORE

    def test_partial_when_unmatched(self):
        assert scorers.education_score(["PhD"], "Bachelors") == EDUCATION_PARTIAL_SCORE

    def test_missing_data_is_fifty(self):
        assert scorers.education_score(["PhD"], None) == EDUCATION_MISSING_SCORE

    def test_exclusion(self):
        assert scorers.education_score(["not diploma"], "Diploma in Design") == MIN_SCORE

    def test_no_preference(self):
        assert scorers.education_score(["No Preference"], "MBA") == MAX_SCORE
        assert scorers.education_score(["No Preference"], "  ") == 0


class TestAlcoholScore:
    def test_occasionally_accepts_non_drinker(self):
        assert scorers.alcohol_score("occasionally", False) == MAX_SCORE

    def test_occasionally_accepts_unknown(self):
        assert scorers.alcohol_score("Occasionally", None) == MAX_SCORE

    def test_yes_requires_drinker(self):
        assert scorers.alcohol_score("yes", True) == MAX_SCORE
        assert scorers.alcohol_score("yes", False) == MIN_SCORE

    def test_no_requires_non_drinker(self):
        assert scorers.alcohol_score("No", False) == MAX_SCORE
        assert scorers.alcohol_score("no", True) == MIN_SCORE
        assert scorers.alcohol_score("no", None) == MIN_SCORE

    def test_no_preference(self):
        assert scorers.alcohol_score("No Preference", True) == MAX_SCORE
        assert scorers.alcohol_score(None, None) == 0


class TestLocationScore:
    def test_country_match_without_state_preference(self):
        """India / no state preference against an Indian candidate scores 80."""
        score, reasons = scorers.location_score(["India"], ["No Preference"], "India", "Gujarat")
        assert score == COUNTRY_MATCH_SCORE
        assert reasons == ["Same country"]

    def test_state_match_overwrites(self):
        score, reasons = scorers.location_score(["India"], ["Gujarat"], "India", "Gujarat")
        assert score == MAX_SCORE
        assert reasons == ["Same country", "Same state"]

    def test_state_match_without_country_match(self):
        score, reasons = scorers.location_score(["Canada"], ["Gujarat"], "India", "Gujarat")
        assert score == MAX_SCORE
        assert reasons == ["Same state"]

    def test_no_country_preference(self):
        score, reasons = scorers.location_score([], [], None, None)
        assert score == MAX_SCORE
        assert reasons == []

    def test_country_miss(self):
        score, reasons = scorers.location_score(["Canada"], [], "India", "Gujarat")
        assert score == MIN_SCORE
        assert reasons == []

    def test_missing_candidate_country(self):
        score, _ = scorers.location_score(["India"], [], None, None)
        assert score == MIN_SCORE
