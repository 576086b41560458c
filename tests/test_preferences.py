"""Tests for preference normalisation and the no-preference sentinel."""
from types import SimpleNamespace

import pytest

from matrimony.services.preferences import (
    PreferenceSet,
    is_no_preference,
    normalize_preferences,
    parse_flag,
    split_include_exclude,
    to_token_list,
)


class TestTokenList:
    def test_none_is_empty(self):
        assert to_token_list(None) == []

    def test_string_is_trimmed_single_token(self):
        assert to_token_list("  Hindu ") == ["Hindu"]

    def test_blank_string_is_dropped(self):
        assert to_token_list("   ") == []

    def test_number_becomes_string(self):
        assert to_token_list(42) == ["42"]

    def test_bool_becomes_lowercase_string(self):
        assert to_token_list(True) == ["true"]

    def test_list_keeps_order_and_duplicates(self):
        assert to_token_list(["B", " A ", "", "B"]) == ["B", "A", "B"]

    def test_dict_values_are_flattened(self):
        """Only the values of a mapping are interesting, nested lists included."""
        value = {"primary": "Hindu", "others": ["Jain", {"x": "Sikh"}]}
        assert to_token_list(value) == ["Hindu", "Jain", "Sikh"]


class TestNoPreference:
    @pytest.mark.parametrize(
        "tokens",
        [[], None, ["No Preference"], ["ANY"], ["no preference at all"], ["Hindu", "Any"]],
    )
    def test_sentinels(self, tokens):
        assert is_no_preference(tokens) is True

    def test_specific_tokens(self):
        assert is_no_preference(["Hindu", "Jain"]) is False

    def test_containment_is_loose(self):
        """'Germany' contains 'any' and reads as no preference."""
        assert is_no_preference(["Germany"]) is True

    def test_token_contained_in_indicator(self):
        """'no' is a substring of 'no preference'."""
        assert is_no_preference(["no"]) is True


class TestSplitIncludeExclude:
    def test_mixed(self):
        include, exclude = split_include_exclude(["Hindu", "not Muslim", "NOT  Christian "])
        assert include == ["Hindu"]
        assert exclude == ["muslim", "christian"]

    def test_bare_not_is_ignored(self):
        include, exclude = split_include_exclude(["not "])
        assert include == []
        assert exclude == []


class TestParseFlag:
    @pytest.mark.parametrize("value", ["yes", "Yes", "true", "Y", "1", "occasional", "Occasionally", True])
    def test_true(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", ["no", "FALSE", "n", "0", False])
    def test_false(self, value):
        assert parse_flag(value) is False

    @pytest.mark.parametrize("value", [None, "", "maybe", "  "])
    def test_unset(self, value):
        assert parse_flag(value) is None


class TestNormalizePreferences:
    def test_none_gives_permissive_defaults(self):
        prefs = normalize_preferences(None)
        assert prefs == PreferenceSet()
        assert prefs.age_from == 21
        assert prefs.age_to == 36
        assert prefs.alcohol == "occasionally"
        assert is_no_preference(prefs.country)
        assert prefs.community == []

    def test_orm_style_record(self):
        raw = SimpleNamespace(
            age_from=25,
            age_to=30,
            community=["Hindu"],
            living_in_country="India",
            living_in_state=None,
            marital_status=None,
            education_level={"level": "Masters"},
            profession=["not doctor"],
            diet=None,
            alcohol=" no ",
        )
        prefs = normalize_preferences(raw)
        assert (prefs.age_from, prefs.age_to) == (25, 30)
        assert prefs.community == ["Hindu"]
        assert prefs.country == ["India"]
        assert prefs.state == ["No Preference"]
        assert prefs.education == ["Masters"]
        assert prefs.profession == ["not doctor"]
        assert prefs.diet == []
        assert prefs.alcohol == "no"

    def test_camel_case_and_age_object(self):
        raw = {
            "age": {"from": "26", "to": 33},
            "livingInCountry": ["India", "Canada"],
            "maritalStatus": "Never Married",
        }
        prefs = normalize_preferences(raw)
        assert (prefs.age_from, prefs.age_to) == (26, 33)
        assert prefs.country == ["India", "Canada"]
        assert prefs.marital_status == ["Never Married"]

    def test_unparseable_age_falls_back(self):
        prefs = normalize_preferences({"age_from": "abc", "age_to": None})
        assert (prefs.age_from, prefs.age_to) == (21, 36)

    def test_blank_alcohol_keeps_default(self):
        assert normalize_preferences({"alcohol": "  "}).alcohol == "occasionally"
