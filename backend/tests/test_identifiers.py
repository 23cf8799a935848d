"""Tests for Goodreads identifier extraction and validation."""
import pytest

from bookblend.core.errors import InvalidIdentifier
from bookblend.core.identifiers import (
    NumericId,
    UsernameId,
    extract_goodreads_user_id,
    validate_user_id,
)


@pytest.mark.parametrize(
    "raw",
    [
        "https://www.goodreads.com/user/show/42944663-ben-wallace",
        "https://www.goodreads.com/user/show/42944663",
        "https://goodreads.com/user/show/42944663-ben-wallace",
        "https://www.goodreads.com/user/show/42944663-ben-wallace/",
        "  https://www.goodreads.com/user/show/42944663-ben-wallace  ",
        "http://www.goodreads.com/user/show/42944663?utm_source=share",
    ],
)
def test_profile_urls_yield_leading_digit_run(raw):
    assert extract_goodreads_user_id(raw) == NumericId("42944663")


def test_username_url():
    assert extract_goodreads_user_id("https://www.goodreads.com/bewal416") == UsernameId("bewal416")


def test_bare_username():
    assert extract_goodreads_user_id("bewal416") == UsernameId("bewal416")


@pytest.mark.parametrize("raw", ["123", "42944663", "0001"])
def test_bare_digit_strings_of_three_or_more(raw):
    assert extract_goodreads_user_id(raw) == NumericId(raw)


@pytest.mark.parametrize("raw", ["1", "12", " 12 "])
def test_short_digit_strings_are_rejected(raw):
    assert extract_goodreads_user_id(raw) is None


def test_id_with_slug_suffix():
    assert extract_goodreads_user_id("42944663-ben-wallace") == NumericId("42944663")
    assert extract_goodreads_user_id("42944663-Ben-Wallace") == NumericId("42944663")


def test_digits_glued_to_letters_are_not_an_id():
    assert extract_goodreads_user_id("123abc") is None


def test_standalone_digit_run_anywhere_in_string():
    assert extract_goodreads_user_id("my id is 42944663, thanks") == NumericId("42944663")
    assert extract_goodreads_user_id("https://example.com/people/42944663") == NumericId("42944663")


def test_unknown_goodreads_path_falls_through_to_digit_search():
    assert extract_goodreads_user_id("https://www.goodreads.com/review/list/42944663") == NumericId("42944663")


def test_goodreads_url_without_any_id():
    assert extract_goodreads_user_id("https://www.goodreads.com/review/list") is None


@pytest.mark.parametrize("raw", [None, "", "   ", "!!!", "@@"])
def test_empty_or_unusable_input(raw):
    assert extract_goodreads_user_id(raw) is None


def test_numeric_and_username_ids_are_never_equal():
    assert NumericId("123") != UsernameId("123")


def test_serialized_forms():
    assert str(NumericId("42944663")) == "42944663"
    assert str(UsernameId("bewal416")) == "username:bewal416"


def test_validate_user_id_accepts_ids_and_usernames():
    assert validate_user_id("42944663-ben-wallace") == NumericId("42944663")
    assert validate_user_id("https://www.goodreads.com/bewal416") == UsernameId("bewal416")


@pytest.mark.parametrize(
    "raw",
    ["", "12", "123abc", "!!!", "https://www.goodreads.com/user/show/12"],
)
def test_validate_user_id_rejects_bad_input(raw):
    with pytest.raises(InvalidIdentifier) as exc_info:
        validate_user_id(raw)

    assert "valid Goodreads user ID" in exc_info.value.message


def test_invalid_identifier_is_a_value_error():
    with pytest.raises(ValueError):
        validate_user_id("12")


@pytest.mark.parametrize(
    "raw",
    [
        "٤٢٩٤٤٦٦٣",
        "my id is ٤٢٩٤٤٦٦٣",
        "https://www.goodreads.com/user/show/٤٢٩٤٤٦٦٣",
        "４２９４４６６３",
    ],
)
def test_only_ascii_digits_count(raw):
    assert extract_goodreads_user_id(raw) is None
    with pytest.raises(InvalidIdentifier):
        validate_user_id(raw)


def test_short_user_show_id_is_not_extracted():
    assert extract_goodreads_user_id("https://www.goodreads.com/user/show/12") is None
    assert extract_goodreads_user_id("https://www.goodreads.com/user/show/12-ben") is None
