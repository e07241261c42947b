"""Test form rules and the checked-genre helper."""
from datetime import date

import pytest

from patterns.rules_engine import FieldRule, as_list, parse_iso_date, validate
from verticals.catalog.rules import author_rules, book_rules, genre_rules, mark_checked


def test_author_rules_accept_clean_input():
    result = validate(
        {"first_name": "  Jane ", "family_name": "Austen", "date_of_birth": "1775-12-16"},
        author_rules(),
    )
    assert result.is_valid
    assert result.values["first_name"] == "Jane"
    assert result.values["date_of_birth"] == date(1775, 12, 16)
    assert result.values["date_of_death"] is None


def test_non_alphanumeric_first_name_is_attributed_to_field():
    result = validate({"first_name": "Jo<hn", "family_name": "Smith"}, author_rules())
    assert not result.is_valid
    assert result.messages_for("first_name") == ["First name has non-alphanumeric characters."]
    assert result.messages_for("family_name") == []
    assert result.errors[0].value == "Jo<hn"


def test_empty_first_name_reports_every_failed_check():
    result = validate({"first_name": "   ", "family_name": "Smith"}, author_rules())
    assert "First name must be specified." in result.messages_for("first_name")
    assert "First name has non-alphanumeric characters." in result.messages_for("first_name")


def test_invalid_date_uses_field_message():
    result = validate(
        {"first_name": "Jane", "family_name": "Austen", "date_of_death": "yesterday"},
        author_rules(),
    )
    assert result.messages_for("date_of_death") == ["Invalid date of death"]


def test_escape_rewrites_markup():
    result = validate({"title": "Tom & Jerry", "author": "a1", "summary": "<b>x</b>", "isbn": "1"}, book_rules())
    assert result.is_valid
    assert result.values["title"] == "Tom &amp; Jerry"
    assert result.values["summary"] == "&lt;b&gt;x&lt;/b&gt;"


def test_book_rules_missing_fields():
    result = validate({"genre": []}, book_rules())
    fields = {e.field for e in result.errors}
    assert fields == {"title", "author", "summary", "isbn"}
    assert result.values["genre"] == []


def test_genre_rules_require_name():
    result = validate({"name": ""}, genre_rules())
    assert result.messages_for("name")[0] == "Genre name required"


def test_genre_rules_require_three_characters():
    result = validate({"name": " Sf "}, genre_rules())
    assert result.messages_for("name") == ["Genre name must be at least 3 characters."]
    assert validate({"name": "Art"}, genre_rules()).is_valid


def test_with_message_requires_a_check():
    with pytest.raises(ValueError, match="must follow a check"):
        FieldRule("x").trim().with_message("nope")


def test_each_applies_chain_to_items():
    value, errors = FieldRule("genre").each().escape().run(["a&b", "c"])
    assert value == ["a&amp;b", "c"]
    assert errors == []


def test_as_list_normalises_multi_values():
    assert as_list(None) == []
    assert as_list("g1") == ["g1"]
    assert as_list(["g1", "g2"]) == ["g1", "g2"]


def test_parse_iso_date_variants():
    assert parse_iso_date("2020-02-29") == date(2020, 2, 29)
    assert parse_iso_date("2020-02-29T10:00:00Z") == date(2020, 2, 29)
    assert parse_iso_date("29/02/2020") is None
    assert parse_iso_date("") is None


def test_mark_checked_compares_identities():
    genres = [{"id": "g1", "name": "Poetry"}, {"id": "g2", "name": "Fantasy"}]
    marked = mark_checked(genres, ["g2"])
    assert [g["checked"] for g in marked] == [False, True]
    # Originals are not mutated.
    assert "checked" not in genres[0]
