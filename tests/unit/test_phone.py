"""
Unit tests for phone number normalization.
"""

import pytest

from slotbook.auth import normalize_phone, digits_only, is_plausible_phone, mask_phone


class TestNormalizePhone:
    """Tests for normalize_phone."""

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", [
        "4148616375",
        "(414) 861-6375",
        "414.861.6375",
        "414 861 6375",
    ])
    def test_ten_digits_get_default_country_code(self, raw):
        assert normalize_phone(raw) == "+14148616375"

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", [
        "14148616375",
        "+14148616375",
        "+1 (414) 861-6375",
        "1-414-861-6375",
    ])
    def test_eleven_digits_with_country_code_get_plus_only(self, raw):
        assert normalize_phone(raw) == "+14148616375"

    @pytest.mark.unit
    def test_other_lengths_pass_through_with_plus(self):
        """Numbers of other lengths are assumed to carry their own country code."""
        assert normalize_phone("+44 20 7946 0958") == "+442079460958"
        assert normalize_phone("5511999999999") == "+5511999999999"

    @pytest.mark.unit
    def test_eleven_digits_not_starting_with_one_pass_through(self):
        assert normalize_phone("44207946095") == "+44207946095"

    @pytest.mark.unit
    def test_same_number_same_key(self):
        """Every format of one number produces one canonical key."""
        forms = ["(414) 861-6375", "4148616375", "14148616375", "+14148616375"]
        assert len({normalize_phone(f) for f in forms}) == 1


class TestPhoneHelpers:
    """Tests for the smaller helpers."""

    @pytest.mark.unit
    def test_digits_only(self):
        assert digits_only("(414) 861-6375") == "4148616375"
        assert digits_only("") == ""
        assert digits_only(None) == ""

    @pytest.mark.unit
    def test_is_plausible_phone(self):
        assert is_plausible_phone("(414) 861-6375") is True
        assert is_plausible_phone("861-6375") is False
        assert is_plausible_phone("abc") is False
        assert is_plausible_phone(None) is False

    @pytest.mark.unit
    def test_mask_phone(self):
        assert mask_phone("+14148616375") == "***6375"
        assert mask_phone("12") == "***"
